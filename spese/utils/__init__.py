"""
Utilità comuni per l'applicazione
"""
from datetime import datetime, date
from decimal import Decimal, InvalidOperation

CENT = Decimal('0.01')


class ValidationUtils:
    """Utilità per la validazione"""

    @staticmethod
    def validate_amount(value, minimum=CENT):
        """Valida e converte un importo in Decimal con due decimali"""
        if isinstance(value, str):
            value = value.strip().replace(',', '.')
        try:
            amount = Decimal(str(value)).quantize(CENT)
        except (InvalidOperation, ValueError, TypeError):
            raise ValueError("Amount is not a valid number")
        if not amount.is_finite():
            raise ValueError("Amount is not a valid number")
        if amount < minimum:
            raise ValueError(f"Amount must be at least {minimum}")
        return amount

    @staticmethod
    def validate_date(value, field_name='date'):
        """Valida e converte una data (date, datetime o stringa YYYY-MM-DD)"""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(value, '%Y-%m-%d').date()
        except (TypeError, ValueError):
            raise ValueError(f"Invalid {field_name} (expected YYYY-MM-DD)")

    @staticmethod
    def validate_optional_date(value, field_name='date'):
        if value is None or value == '':
            return None
        return ValidationUtils.validate_date(value, field_name)

    @staticmethod
    def validate_required_field(value, field_name, max_length=None):
        """Valida che un campo obbligatorio non sia vuoto"""
        if not value or not str(value).strip():
            raise ValueError(f"The {field_name} field is required")
        value = str(value).strip()
        if max_length and len(value) > max_length:
            raise ValueError(f"The {field_name} field must be at most {max_length} characters")
        return value
