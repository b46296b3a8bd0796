"""
Modelli del database

Import esplicito dei modelli per assicurare che siano registrati sui metadati
SQLAlchemy quando l'app importa il package.
"""
from spese.models.User import User  # noqa: F401
from spese.models.Category import Category  # noqa: F401
from spese.models.Expense import Expense  # noqa: F401
from spese.models.Budget import Budget  # noqa: F401
