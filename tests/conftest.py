from datetime import date
from decimal import Decimal

import pytest

from spese import create_app, db
from spese.models.Category import Category
from spese.models.Expense import Expense, TYPE_RECURRING
from spese.models.User import User


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    u = User(name='Mario', email='mario@example.com')
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def other_user(app):
    u = User(name='Anna', email='anna@example.com')
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def category(user):
    c = Category(user_id=user.id, name='Subscriptions', color='#A855F7')
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def make_template(user):
    """Factory per template ricorrenti inseriti direttamente nel DB"""
    def _make(frequency='daily', start=date(2024, 1, 1), end=None, **kwargs):
        fields = {
            'user_id': user.id,
            'amount': Decimal('9.99'),
            'title': 'Streaming',
            'description': 'Monthly plan',
            'date': start,
            'type': TYPE_RECURRING,
            'recurring_frequency': frequency,
            'recurring_start_date': start,
            'recurring_end_date': end,
        }
        fields.update(kwargs)
        template = Expense(**fields)
        db.session.add(template)
        db.session.commit()
        return template
    return _make


@pytest.fixture
def make_expense(user):
    """Factory per spese singole"""
    def _make(amount, on, title='Groceries', **kwargs):
        fields = {'user_id': user.id, 'amount': Decimal(str(amount)), 'title': title, 'date': on}
        fields.update(kwargs)
        expense = Expense(**fields)
        db.session.add(expense)
        db.session.commit()
        return expense
    return _make


def occurrence_dates(template_id):
    rows = Expense.query.filter_by(parent_expense_id=template_id).order_by(Expense.date.asc()).all()
    return [r.date for r in rows]
