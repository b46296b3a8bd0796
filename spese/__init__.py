"""Applicazione Flask per la gestione delle spese personali"""

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import os
from spese.config import config

# Istanze globali
db = SQLAlchemy()


def create_app(config_name='default', start_scheduler=None):
    """Factory pattern per creare l'applicazione Flask

    `start_scheduler` sovrascrive RECURRING_SCHEDULER_ENABLED (la CLI lo
    disattiva per non avviare il thread periodico durante un run manuale).
    """
    app = Flask(__name__)

    # Carica la configurazione richiesta ('default' o 'testing')
    app.config.from_object(config[config_name])

    # Inizializza le estensioni
    db.init_app(app)

    # Importa e registra i blueprint
    from spese.views.ricorrenti import ricorrenti_bp
    app.register_blueprint(ricorrenti_bp, url_prefix='/ricorrenti')

    # Importa i modelli così che i metadati SQLAlchemy siano popolati
    # prima di create_all()
    from spese import models  # noqa: F401

    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('sqlite:///'):
        # Crea la cartella del file SQLite se manca
        db_dir = os.path.dirname(db_uri[len('sqlite:///'):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    with app.app_context():
        db.create_all()

    # Generazione periodica delle spese ricorrenti
    if start_scheduler is None:
        start_scheduler = app.config.get('RECURRING_SCHEDULER_ENABLED', False)
    if start_scheduler:
        from spese.services.spese.scheduler import RecurringGenerationScheduler
        scheduler = RecurringGenerationScheduler(
            app, interval=app.config.get('RECURRING_SCHEDULER_INTERVAL', 3600)
        )
        scheduler.start()
        app.extensions['recurring_scheduler'] = scheduler
        app.logger.info('Recurring expense scheduler started (interval=%ss)', scheduler.interval)

    return app
