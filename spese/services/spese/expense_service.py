"""
Service per la gestione delle spese (singole e ricorrenti).
Fornisce operazioni CRUD complete per Expense con le regole di validazione
del form di inserimento.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_

from spese import db
from spese.models.Category import Category
from spese.models.Expense import Expense, EXPENSE_TYPES, TYPE_ONE_TIME, TYPE_RECURRING
from spese.services.spese.expense_store import ExpenseStore
from spese.services.spese.recurrence_policy import FREQUENCIES
from spese.utils import ValidationUtils

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service per gestire le spese di un utente"""

    def get_by_id(self, expense_id: int, include_deleted: bool = False) -> Optional[Expense]:
        expense = db.session.get(Expense, expense_id)
        if expense is None or (expense.deleted_at is not None and not include_deleted):
            return None
        return expense

    def _filtered_query(self, user_id, search=None, category_id=None, start_date=None, end_date=None,
                        base=None):
        query = (base if base is not None else Expense.active()).filter(Expense.user_id == user_id)
        if search:
            pattern = f'%{search.strip()}%'
            query = query.filter(or_(Expense.title.ilike(pattern), Expense.description.ilike(pattern)))
        if category_id:
            query = query.filter(Expense.category_id == category_id)
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)
        return query

    def list_expenses(self, user_id: int, search: str = None, category_id: int = None,
                      start_date=None, end_date=None) -> List[Expense]:
        """
        Spese attive dell'utente filtrate per testo, categoria e intervallo di date

        Returns:
            Lista di Expense ordinata per data decrescente
        """
        query = self._filtered_query(user_id, search, category_id, start_date, end_date)
        return query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()

    def total(self, user_id: int, search: str = None, category_id: int = None,
              start_date=None, end_date=None) -> Decimal:
        """Somma degli importi delle spese che corrispondono agli stessi filtri di list_expenses

        I template ricorrenti non sono una spesa e non entrano nel totale.
        """
        query = self._filtered_query(user_id, search, category_id, start_date, end_date,
                                     base=Expense.spending())
        value = query.with_entities(func.coalesce(func.sum(Expense.amount), 0)).scalar()
        return Decimal(str(value or 0)).quantize(Decimal('0.01'))

    def list_recurring(self, user_id: int) -> List[Expense]:
        """Template ricorrenti attivi dell'utente"""
        return (
            Expense.active()
            .filter(Expense.user_id == user_id, Expense.type == TYPE_RECURRING)
            .order_by(Expense.title.asc())
            .all()
        )

    def get_occurrences(self, template_id: int) -> List[Expense]:
        """Occorrenze generate di un template, dalla più recente"""
        return (
            Expense.active()
            .filter(Expense.parent_expense_id == template_id)
            .order_by(Expense.date.desc())
            .all()
        )

    def _has_children(self, expense_id):
        return Expense.query.filter_by(parent_expense_id=expense_id).count() > 0

    def _validate(self, user_id, fields):
        """Valida i campi del form e restituisce i valori normalizzati.

        Solleva ValueError con il messaggio da mostrare all'utente.
        """
        data = {
            'amount': ValidationUtils.validate_amount(fields.get('amount')),
            'title': ValidationUtils.validate_required_field(fields.get('title'), 'title', max_length=255),
            'description': (fields.get('description') or '').strip() or None,
            'date': ValidationUtils.validate_date(fields.get('date')),
        }

        expense_type = fields.get('type') or TYPE_ONE_TIME
        if expense_type not in EXPENSE_TYPES:
            raise ValueError("Type must be 'one-time' or 'recurring'")
        data['type'] = expense_type

        category_id = fields.get('category_id') or None
        if category_id:
            try:
                category_id = int(category_id)
            except (TypeError, ValueError):
                raise ValueError("Invalid category")
            categoria = db.session.get(Category, category_id)
            if not categoria or categoria.user_id != user_id:
                raise ValueError(f"Category {category_id} not found")
        data['category_id'] = category_id

        if expense_type == TYPE_RECURRING:
            frequency = fields.get('recurring_frequency')
            if frequency not in FREQUENCIES:
                raise ValueError(f"Frequency must be one of: {', '.join(FREQUENCIES)}")
            start = fields.get('recurring_start_date')
            if start is None or start == '':
                raise ValueError("The recurring start date is required")
            start = ValidationUtils.validate_date(start, 'recurring start date')
            end = ValidationUtils.validate_optional_date(fields.get('recurring_end_date'), 'recurring end date')
            if end is not None and end <= start:
                raise ValueError("The recurring end date must be after the start date")
            data.update(recurring_frequency=frequency, recurring_start_date=start, recurring_end_date=end)
        else:
            # le spese singole non hanno campi di ricorrenza
            data.update(recurring_frequency=None, recurring_start_date=None, recurring_end_date=None)
        return data

    def create_expense(self, user_id: int, **fields) -> Tuple[bool, str, Optional[Expense]]:
        """
        Crea una nuova spesa singola o un template ricorrente

        Args:
            user_id: proprietario della spesa
            fields: amount, title, description, date, category_id, type,
                recurring_frequency, recurring_start_date, recurring_end_date

        Returns:
            Tuple (success: bool, message: str, expense: Expense)
        """
        try:
            data = self._validate(user_id, fields)
        except ValueError as e:
            return False, str(e), None

        try:
            expense = Expense(user_id=user_id, **data)
            db.session.add(expense)
            db.session.commit()
            return True, "Expense created successfully.", expense
        except Exception as e:
            db.session.rollback()
            logger.exception('Error creating expense for user %s', user_id)
            return False, f"Error while creating the expense: {str(e)}", None

    def update_expense(self, expense_id: int, **fields) -> Tuple[bool, str]:
        """
        Aggiorna una spesa esistente; i campi non forniti restano invariati.

        Le occorrenze già generate da un template non vengono modificate.
        """
        expense = self.get_by_id(expense_id)
        if not expense:
            return False, "Expense not found"

        new_type = fields.get('type') or expense.type
        if new_type != expense.type:
            # un'occorrenza resta figlia del suo template, un template con figli resta ricorrente
            if expense.parent_expense_id is not None:
                return False, "A generated expense can not become recurring"
            if self._has_children(expense.id):
                return False, "Can not change the type of a recurring expense with generated expenses"

        current = {
            'amount': expense.amount,
            'title': expense.title,
            'description': expense.description,
            'date': expense.date,
            'category_id': expense.category_id,
            'type': expense.type,
            'recurring_frequency': expense.recurring_frequency,
            'recurring_start_date': expense.recurring_start_date,
            'recurring_end_date': expense.recurring_end_date,
        }
        current.update(fields)
        try:
            data = self._validate(expense.user_id, current)
        except ValueError as e:
            return False, str(e)

        try:
            for key, value in data.items():
                setattr(expense, key, value)
            db.session.commit()
            return True, "Expense updated successfully."
        except Exception as e:
            db.session.rollback()
            return False, f"Error while updating the expense: {str(e)}"

    def delete_expense(self, expense_id: int) -> Tuple[bool, str]:
        """
        Elimina definitivamente una spesa. Per un template ricorrente vengono
        eliminate anche tutte le occorrenze generate.
        """
        expense = self.get_by_id(expense_id, include_deleted=True)
        if not expense:
            return False, "Expense not found"

        try:
            # figli attivi e nel cestino, qualunque sia il tipo attuale del record
            deleted_children = Expense.query.filter_by(parent_expense_id=expense.id).delete(
                synchronize_session=False
            )
            title = expense.title
            db.session.delete(expense)
            db.session.commit()
            if deleted_children:
                return True, f"Recurring expense '{title}' deleted with {deleted_children} generated expenses"
            return True, f"Expense '{title}' deleted successfully"
        except Exception as e:
            db.session.rollback()
            return False, f"Error while deleting the expense: {str(e)}"

    def soft_delete_expense(self, expense_id: int, now: datetime = None) -> Tuple[bool, str]:
        """
        Marca la spesa come eliminata (deleted_at). Un template eliminato così
        esce dalle run di generazione ma le sue occorrenze restano.
        """
        expense = self.get_by_id(expense_id)
        if not expense:
            return False, "Expense not found"
        try:
            expense.deleted_at = now or datetime.utcnow()
            db.session.commit()
            return True, f"Expense '{expense.title}' moved to trash"
        except Exception as e:
            db.session.rollback()
            return False, f"Error while deleting the expense: {str(e)}"

    def restore_expense(self, expense_id: int) -> Tuple[bool, str]:
        expense = self.get_by_id(expense_id, include_deleted=True)
        if not expense or expense.deleted_at is None:
            return False, "Deleted expense not found"
        if expense.parent_expense_id is not None and ExpenseStore().find_child_occurrence(
                expense.parent_expense_id, expense.date) is not None:
            return False, "An expense for this date has already been generated again"
        try:
            expense.deleted_at = None
            db.session.commit()
            return True, f"Expense '{expense.title}' restored"
        except Exception as e:
            db.session.rollback()
            return False, f"Error while restoring the expense: {str(e)}"
