"""Entry point per l'applicazione.

Questo script avvia l'app Flask e può inizializzare un utente demo con le
categorie predefinite se la variabile d'ambiente `INIT_DB` è impostata
(es. INIT_DB=1).
"""

import os
from spese import create_app, db


def init_database():
    """Crea l'utente demo e le sue categorie predefinite se il DB è vuoto.
    Viene eseguita solo quando INIT_DB=1 per evitare side-effect non voluti.
    """
    from spese.models.User import User
    from spese.services.categorie.categorie_service import CategorieService

    if User.query.count() == 0:
        user = User(name='Demo', email='demo@example.com')
        db.session.add(user)
        db.session.commit()
        CategorieService().create_default_categories(user.id)


def main():
    app = create_app()

    # Optional DB init (usare solo in fase di provisioning)
    if os.environ.get('INIT_DB') == '1':
        with app.app_context():
            init_database()

    # Il reloader avvierebbe un secondo scheduler nel processo padre
    app.run(host=app.config.get('HOST', '0.0.0.0'), port=app.config.get('PORT', 5001), use_reloader=False)


if __name__ == '__main__':
    main()
