"""
Regole di ricorrenza: calcolo della prossima data di una spesa ricorrente e
condizione di arresto della generazione.

Funzioni pure, senza accesso al database.
"""
from datetime import date, datetime
from dateutil.relativedelta import relativedelta

from spese.models.Expense import TYPE_RECURRING

FREQ_DAILY = 'daily'
FREQ_WEEKLY = 'weekly'
FREQ_MONTHLY = 'monthly'
FREQ_YEARLY = 'yearly'

# Un periodo per ciascuna frequenza. Mesi e anni usano l'aritmetica di
# calendario di relativedelta: 31/01 + 1 mese = ultimo giorno di febbraio.
PERIODS = {
    FREQ_DAILY: relativedelta(days=1),
    FREQ_WEEKLY: relativedelta(weeks=1),
    FREQ_MONTHLY: relativedelta(months=1),
    FREQ_YEARLY: relativedelta(years=1),
}

FREQUENCIES = tuple(PERIODS)


def as_date(value):
    """Riduce un datetime alla sua data; le date passano invariate"""
    if isinstance(value, datetime):
        return value.date()
    return value


def next_occurrence_date(base_date, frequency):
    """Data successiva a `base_date` secondo `frequency`.

    Restituisce None se la frequenza non è riconosciuta: il chiamante lo
    tratta come condizione di arresto.
    """
    period = PERIODS.get(frequency)
    if period is None or base_date is None:
        return None
    return as_date(base_date) + period


def should_continue_generating(template, now):
    """False se il record non è ricorrente o se la sua data di fine è già passata"""
    if template.type != TYPE_RECURRING:
        return False
    end_date = template.recurring_end_date
    if end_date is not None and end_date < as_date(now):
        return False
    return True
