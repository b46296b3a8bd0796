"""
Suggerimenti di budget basati sullo storico delle spese.

Il testo del suggerimento viene chiesto a un servizio di completamento esterno
(un callable `prompt -> testo` iniettato nel costruttore). Se il servizio non è
configurato, fallisce o risponde senza un JSON valido, si usa un suggerimento
calcolato sulla media dello storico.
"""
import json
import logging
import re
from datetime import date

from dateutil.relativedelta import relativedelta
from sqlalchemy import func

from spese import db
from spese.models.Category import Category
from spese.models.Expense import Expense
from spese.services import get_month_boundaries, get_month_name
from spese.utils.formatting import format_decimal

logger = logging.getLogger(__name__)

TREND_INCREASING = 'increasing'
TREND_DECREASING = 'decreasing'
TREND_STABLE = 'stable'

JSON_OBJECT_RE = re.compile(r'\{[^}]+\}')


class BudgetRecommendationService:

    def __init__(self, completion_client=None, history_months=3):
        self.completion_client = completion_client
        self.history_months = history_months

    def get_historical_spending(self, user_id, month, year, category_id=None):
        """Spesa dei mesi precedenti a (year, month), dal più recente.

        I mesi senza spese non compaiono in `expenses`.
        """
        expenses = []
        monthly_totals = []
        target = date(year, month, 1)

        for i in range(1, self.history_months + 1):
            period = target - relativedelta(months=i)
            start, end = get_month_boundaries(period.year, period.month)
            query = Expense.spending().filter(
                Expense.user_id == user_id,
                Expense.date >= start,
                Expense.date <= end,
            )
            if category_id:
                query = query.filter(Expense.category_id == category_id)

            month_expenses = query.order_by(Expense.amount.desc()).all()
            total = sum((e.amount for e in month_expenses), 0)
            if total > 0:
                expenses.append({
                    'month': get_month_name(period.year, period.month),
                    'total': float(total),
                    'count': len(month_expenses),
                    'expenses': [e.title for e in month_expenses[:10]],
                })
                monthly_totals.append(float(total))

        return {
            'expenses': expenses,
            'average': sum(monthly_totals) / len(monthly_totals) if monthly_totals else 0,
            'min': min(monthly_totals) if monthly_totals else 0,
            'max': max(monthly_totals) if monthly_totals else 0,
            'trend': self.calculate_trend(monthly_totals),
        }

    @staticmethod
    def calculate_trend(monthly_totals):
        """Confronta il mese più recente con il più vecchio (soglia ±10%)"""
        if len(monthly_totals) < 2:
            return TREND_STABLE
        recent, oldest = monthly_totals[0], monthly_totals[-1]
        if not oldest:
            return TREND_STABLE
        change = (recent - oldest) / oldest * 100
        if change > 10:
            return TREND_INCREASING
        if change < -10:
            return TREND_DECREASING
        return TREND_STABLE

    @staticmethod
    def calculate_confidence(historical_data):
        months_with_data = len(historical_data['expenses'])
        if months_with_data >= 3:
            return 'high'
        if months_with_data == 2:
            return 'medium'
        return 'low'

    def create_prompt(self, historical_data, month, year, category_id=None):
        category_name = 'overall spending'
        if category_id:
            categoria = db.session.get(Category, category_id)
            category_name = categoria.name if categoria else 'this category'

        lines = [
            "You are a personal finance advisor. Analyze the following spending data "
            "and provide a budget recommendation.",
            "",
            f"Category: {category_name}",
            f"Target Month: {get_month_name(year, month)}",
            f"Historical Spending (Last {self.history_months} Months):",
        ]
        for item in historical_data['expenses']:
            lines.append(f"- {item['month']}: ${format_decimal(item['total'])} ({item['count']} expenses)")
            if item['expenses']:
                lines.append("  Top items: " + ", ".join(item['expenses'][:5]))

        lines += [
            "",
            "Spending Statistics:",
            f"- Average: ${format_decimal(historical_data['average'])}",
            f"- Minimum: ${format_decimal(historical_data['min'])}",
            f"- Maximum: ${format_decimal(historical_data['max'])}",
            f"- Trend: {historical_data['trend']}",
            "",
            "Based on this data, provide:",
            "1. A recommended budget amount (single number)",
            "2. A minimum safe amount",
            "3. A maximum comfortable amount",
            "4. A brief explanation (2-3 sentences) why you recommend this amount",
            "5. One actionable tip to stay within budget",
            "",
            "Format your response as JSON with these exact keys:",
            '{"recommended": 500, "min": 450, "max": 550, "explanation": "...", "tip": "..."}',
        ]
        return "\n".join(lines)

    def parse_response(self, text, historical_data):
        """Estrae il primo oggetto JSON dal testo; altrimenti suggerimento di fallback"""
        match = JSON_OBJECT_RE.search(text or '')
        if match:
            try:
                data = json.loads(match.group(0))
            except ValueError:
                logger.warning('Failed to parse AI response: invalid JSON')
                data = None
            if isinstance(data, dict) and 'recommended' in data:
                try:
                    recommended = float(data['recommended'])
                    return {
                        'recommended': recommended,
                        'min': float(data.get('min', recommended * 0.9)),
                        'max': float(data.get('max', recommended * 1.1)),
                        'explanation': data.get('explanation') or 'Based on your spending patterns.',
                        'tip': data.get('tip') or 'Track your expenses regularly to stay on budget.',
                        'confidence': self.calculate_confidence(historical_data),
                    }
                except (TypeError, ValueError):
                    logger.warning('Failed to parse AI response: non numeric amounts')
        return self.get_fallback_recommendation(historical_data)

    def get_fallback_recommendation(self, historical_data):
        average = historical_data['average']
        return {
            'recommended': round(average * 1.1, 2),
            'min': round(average * 0.95, 2),
            'max': round(average * 1.2, 2),
            'explanation': (
                f"Based on your average spending of ${format_decimal(average)} over the last "
                f"{self.history_months} months, with a 10% buffer for unexpected expenses."
            ),
            'tip': "Review your expenses weekly to catch any overspending early.",
            'confidence': self.calculate_confidence(historical_data),
        }

    def get_budget_recommendation(self, user_id, month, year, category_id=None):
        """Suggerimento per il budget di (year, month); None se non c'è storico"""
        historical = self.get_historical_spending(user_id, month, year, category_id)
        if not historical['expenses']:
            return None

        if self.completion_client is None:
            return self.get_fallback_recommendation(historical)

        prompt = self.create_prompt(historical, month, year, category_id)
        try:
            text = self.completion_client(prompt)
        except Exception:
            logger.exception('Budget AI recommendation error')
            return self.get_fallback_recommendation(historical)
        return self.parse_response(text, historical)

    def has_enough_historical_data(self, user_id, today, category_id=None):
        """True se negli ultimi mesi di storico ci sono più di 5 spese"""
        since = today - relativedelta(months=self.history_months)
        query = Expense.spending().filter(Expense.user_id == user_id, Expense.date >= since)
        if category_id:
            query = query.filter(Expense.category_id == category_id)
        return query.with_entities(func.count(Expense.id)).scalar() > 5
