"""
Default data values separated from operational configuration.

Questo modulo contiene valori di 'contenuto' usati dall'app (lista delle
categorie proposte a un nuovo utente) che non dovrebbero essere miscelati con
le impostazioni operative del runtime (DB, SECRET_KEY, flags, ecc.).
"""

# Categorie predefinite (nome, colore)
CATEGORIE_DEFAULT = [
    ('Food', '#22C55E'),
    ('Transport', '#0EA5E9'),
    ('Housing', '#6366F1'),
    ('Utilities', '#F59E0B'),
    ('Subscriptions', '#A855F7'),
    ('Health', '#EF4444'),
    ('Other', '#3B82F6'),
]

COLORE_DEFAULT = '#3B82F6'
