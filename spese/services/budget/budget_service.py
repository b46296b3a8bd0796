"""Servizio per la gestione dei budget mensili"""
from decimal import Decimal

from sqlalchemy import and_, func

from spese.services import BaseService, get_month_boundaries, shift_month
from spese.models.Budget import Budget
from spese.models.Category import Category
from spese.models.Expense import Expense
from spese.utils import ValidationUtils

ZERO = Decimal('0.00')


class BudgetService(BaseService):
    """Budget per categoria (o complessivi) con avanzamento della spesa"""

    def get_budget_mese(self, user_id, year, month):
        """Recupera tutti i budget dell'utente per un mese specifico"""
        return Budget.query.filter(
            and_(
                Budget.user_id == user_id,
                Budget.year == year,
                Budget.month == month
            )
        ).all()

    def find_budget(self, user_id, category_id, year, month, exclude_id=None):
        """Ricerca esplicita per chiave composta (utente, categoria, mese, anno)"""
        query = Budget.query.filter(
            Budget.user_id == user_id,
            Budget.year == year,
            Budget.month == month,
        )
        if category_id is None:
            query = query.filter(Budget.category_id.is_(None))
        else:
            query = query.filter(Budget.category_id == category_id)
        if exclude_id is not None:
            query = query.filter(Budget.id != exclude_id)
        return query.first()

    def _validate(self, user_id, amount, month, year, category_id):
        amount = ValidationUtils.validate_amount(amount)
        try:
            month = int(month)
            year = int(year)
        except (TypeError, ValueError):
            raise ValueError("Please select a month and a year.")
        if not 1 <= month <= 12:
            raise ValueError("Month must be between 1 and 12.")
        if not 2020 <= year <= 2100:
            raise ValueError("Year must be between 2020 and 2100.")
        category_id = int(category_id) if category_id else None
        if category_id is not None:
            categoria = self.db.session.get(Category, category_id)
            if not categoria or categoria.user_id != user_id:
                raise ValueError(f"Category {category_id} not found")
        return amount, month, year, category_id

    def create_budget(self, user_id, amount, month, year, category_id=None):
        """Crea un budget; restituisce (success, message, budget)"""
        try:
            amount, month, year, category_id = self._validate(user_id, amount, month, year, category_id)
        except ValueError as e:
            return False, str(e), None

        if self.find_budget(user_id, category_id, year, month):
            return False, "You already have a budget for this category in this month.", None

        budget = Budget(user_id=user_id, category_id=category_id, amount=amount, month=month, year=year)
        success, message = self.save(budget)
        if not success:
            return False, message, None
        return True, "Budget created successfully.", budget

    def update_budget(self, budget_id, amount=None, month=None, year=None, category_id=None):
        """Aggiorna un budget esistente; category_id=0 lo rende complessivo"""
        budget = self.db.session.get(Budget, budget_id)
        if not budget:
            return False, "Budget not found"

        new_category = budget.category_id if category_id is None else (category_id or None)
        try:
            amount, month, year, new_category = self._validate(
                budget.user_id,
                budget.amount if amount is None else amount,
                budget.month if month is None else month,
                budget.year if year is None else year,
                new_category,
            )
        except ValueError as e:
            return False, str(e)

        if self.find_budget(budget.user_id, new_category, year, month, exclude_id=budget.id):
            return False, "You already have a budget for this category in this month."

        success, message = self.update(budget, amount=amount, month=month, year=year, category_id=new_category)
        return success, message if not success else "Budget updated successfully."

    def delete_budget(self, budget_id):
        budget = self.db.session.get(Budget, budget_id)
        if not budget:
            return False, "Budget not found"
        success, message = self.delete(budget)
        return success, message if not success else "Budget deleted successfully."

    def get_spent_amount(self, budget):
        """Spesa del mese del budget: della sua categoria, o di tutte le spese se complessivo"""
        start, end = get_month_boundaries(budget.year, budget.month)
        query = Expense.spending().filter(
            Expense.user_id == budget.user_id,
            Expense.date >= start,
            Expense.date <= end,
        )
        if budget.category_id:
            query = query.filter(Expense.category_id == budget.category_id)
        value = query.with_entities(func.coalesce(func.sum(Expense.amount), 0)).scalar()
        return Decimal(str(value or 0)).quantize(Decimal('0.01'))

    def get_remaining_amount(self, budget, spent=None):
        if spent is None:
            spent = self.get_spent_amount(budget)
        return Decimal(budget.amount) - spent

    def get_percentage_used(self, budget, spent=None):
        if not budget.amount:
            return 0.0
        if spent is None:
            spent = self.get_spent_amount(budget)
        return float(spent / Decimal(budget.amount) * 100)

    def is_over_budget(self, budget, spent=None):
        if spent is None:
            spent = self.get_spent_amount(budget)
        return spent > Decimal(budget.amount)

    def get_budget_progress(self, budget):
        """Dizionario con importo, speso, residuo, percentuale e sforamento"""
        spent = self.get_spent_amount(budget)
        return {
            'id': budget.id,
            'category_id': budget.category_id,
            'category_name': budget.category.name if budget.category else None,
            'amount': Decimal(budget.amount),
            'spent': spent,
            'remaining': self.get_remaining_amount(budget, spent),
            'percentage': round(self.get_percentage_used(budget, spent), 1),
            'is_over': self.is_over_budget(budget, spent),
        }

    def get_month_summary(self, user_id, year, month):
        """Budget del mese con avanzamento e totali complessivi"""
        items = [self.get_budget_progress(b) for b in self.get_budget_mese(user_id, year, month)]
        total_budget = sum((i['amount'] for i in items), ZERO)
        total_spent = sum((i['spent'] for i in items), ZERO)
        total_remaining = sum((i['remaining'] for i in items), ZERO)
        overall = round(float(total_spent / total_budget * 100), 1) if total_budget else 0
        return {
            'year': year,
            'month': month,
            'budgets': items,
            'total_budget': total_budget,
            'total_spent': total_spent,
            'total_remaining': total_remaining,
            'overall_percentage': overall,
        }

    @staticmethod
    def previous_month(year, month):
        return shift_month(year, month, -1)

    @staticmethod
    def next_month(year, month):
        return shift_month(year, month, 1)
