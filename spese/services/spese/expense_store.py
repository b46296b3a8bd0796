"""
Accesso alla tabella `expenses` per il generatore delle spese ricorrenti.

Le occorrenze eliminate con soft-delete sono ignorate sia dal controllo di
esistenza sia dal calcolo della data di ancoraggio: una occorrenza nel cestino
non occupa la sua data e la run successiva la rigenera.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from spese import db
from spese.models.Expense import Expense, TYPE_RECURRING

logger = logging.getLogger(__name__)


class ExpenseStore:
    """Store SQLAlchemy usato dal generatore delle occorrenze"""

    def find_recurring_templates(self, exclude_soft_deleted: bool = True) -> List[Expense]:
        query = Expense.query.filter(Expense.type == TYPE_RECURRING)
        if exclude_soft_deleted:
            query = query.filter(Expense.deleted_at.is_(None))
        return query.order_by(Expense.id.asc()).all()

    def get_template(self, template_id: int) -> Optional[Expense]:
        """Template ricorrente attivo con questo id, o None"""
        template = db.session.get(Expense, template_id)
        if template is None or template.type != TYPE_RECURRING or template.deleted_at is not None:
            return None
        return template

    def find_child_occurrence(self, template_id: int, occurrence_date) -> Optional[Expense]:
        return (
            Expense.active()
            .filter_by(parent_expense_id=template_id, date=occurrence_date)
            .first()
        )

    def most_recent_child(self, template_id: int) -> Optional[Expense]:
        return (
            Expense.active()
            .filter_by(parent_expense_id=template_id)
            .order_by(Expense.date.desc())
            .first()
        )

    def create_occurrence(self, occurrence: Expense) -> Optional[Expense]:
        """Inserisce una occorrenza in una transazione breve.

        Se l'indice unico (parent_expense_id, date) sulle occorrenze attive
        scatta, un'altra run ha già creato la stessa occorrenza: rollback e
        None. Gli altri errori di persistenza vengono propagati al generatore.
        """
        try:
            db.session.add(occurrence)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning(
                'Occurrence for template %s on %s already exists, skipped',
                occurrence.parent_expense_id, occurrence.date,
            )
            return None
        except Exception:
            db.session.rollback()
            raise
        return occurrence
