"""
Servizio base per la gestione della business logic
"""
from spese import db
from datetime import datetime, date
from dateutil.relativedelta import relativedelta
import calendar

# Esporta le funzioni per l'import diretto
__all__ = ['BaseService', 'get_month_boundaries', 'get_month_name', 'shift_month']


class BaseService:
    """Classe base per i servizi con metodi comuni"""

    def __init__(self):
        self.db = db

    def save(self, obj):
        """Salva un oggetto nel database"""
        try:
            self.db.session.add(obj)
            self.db.session.commit()
            return True, "Operazione completata con successo"
        except Exception as e:
            self.db.session.rollback()
            return False, str(e)

    def delete(self, obj):
        """Elimina un oggetto dal database"""
        try:
            self.db.session.delete(obj)
            self.db.session.commit()
            return True, "Eliminazione completata con successo"
        except Exception as e:
            self.db.session.rollback()
            return False, str(e)

    def update(self, obj, **kwargs):
        """Aggiorna un oggetto con i parametri forniti"""
        try:
            for key, value in kwargs.items():
                if hasattr(obj, key):
                    setattr(obj, key, value)

            obj.updated_at = datetime.utcnow()
            self.db.session.commit()
            return True, "Aggiornamento completato con successo"
        except Exception as e:
            self.db.session.rollback()
            return False, str(e)


def get_month_boundaries(year, month):
    """Primo e ultimo giorno del mese di calendario (year, month)"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def get_month_name(year, month):
    """Nome del mese nel formato 'January 2025'"""
    return date(year, month, 1).strftime('%B %Y')


def shift_month(year, month, months):
    """Sposta (year, month) di `months` mesi (negativo = indietro).

    Restituisce la nuova coppia (year, month); il cambio d'anno è gestito
    da relativedelta (gennaio - 1 = dicembre dell'anno precedente).
    """
    shifted = date(year, month, 1) + relativedelta(months=months)
    return shifted.year, shifted.month
