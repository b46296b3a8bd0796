"""Configurazione per l'applicazione di gestione spese"""
import os


class Config:
    """Configurazione principale dell'applicazione"""

    # Database
    # Path assoluto verso la cartella `db/` nella root del progetto; la
    # variabile d'ambiente DATABASE_URL ha la precedenza.
    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL', f'sqlite:///{os.path.join(BASE_DIR, "db", "spese.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'gestione-spese-secret-key')

    # Server
    HOST = '0.0.0.0'
    PORT = 5001

    FORMATO_VALUTA = "$ {:.2f}"

    # Generazione automatica delle spese ricorrenti
    RECURRING_SCHEDULER_ENABLED = os.environ.get('RECURRING_SCHEDULER_ENABLED', '1') == '1'
    RECURRING_SCHEDULER_INTERVAL = int(os.environ.get('RECURRING_SCHEDULER_INTERVAL', 3600))

    # Mesi di storico usati per i suggerimenti di budget
    BUDGET_HISTORY_MONTHS = 3


class TestingConfig(Config):
    """Configurazione per i test: database in memoria, nessun thread in background"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    RECURRING_SCHEDULER_ENABLED = False


config = {
    'default': Config,
    'testing': TestingConfig,
}
