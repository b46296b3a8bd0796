import json
from datetime import date

import pytest

from spese.services.budget.budget_recommendation_service import BudgetRecommendationService


@pytest.fixture
def history(make_expense, category):
    # tre mesi prima di aprile 2024: gennaio, febbraio, marzo
    make_expense(100, date(2024, 1, 10), title='Rent share', category_id=category.id)
    make_expense(150, date(2024, 2, 10), title='Rent share', category_id=category.id)
    make_expense(200, date(2024, 3, 5), title='Rent share', category_id=category.id)
    make_expense(20, date(2024, 3, 6), title='Snacks')
    make_expense(999, date(2023, 12, 10), title='Outside window')


def test_historical_spending_covers_every_month(app, user, history):
    svc = BudgetRecommendationService()

    data = svc.get_historical_spending(user.id, 4, 2024)

    assert [m['month'] for m in data['expenses']] == ['March 2024', 'February 2024', 'January 2024']
    assert [m['total'] for m in data['expenses']] == [220.0, 150.0, 100.0]
    assert data['expenses'][0]['count'] == 2
    assert data['expenses'][0]['expenses'] == ['Rent share', 'Snacks']
    assert data['average'] == pytest.approx(470 / 3)
    assert data['min'] == 100.0
    assert data['max'] == 220.0
    assert data['trend'] == 'increasing'


def test_historical_spending_by_category(app, user, category, history):
    data = BudgetRecommendationService().get_historical_spending(user.id, 4, 2024, category_id=category.id)

    assert [m['total'] for m in data['expenses']] == [200.0, 150.0, 100.0]


@pytest.mark.parametrize('totals, trend', [
    ([], 'stable'),
    ([100.0], 'stable'),
    ([105.0, 100.0], 'stable'),
    ([120.0, 100.0], 'increasing'),
    ([80.0, 90.0, 100.0], 'decreasing'),
])
def test_calculate_trend(totals, trend):
    assert BudgetRecommendationService.calculate_trend(totals) == trend


def test_no_history_returns_none(app, user):
    assert BudgetRecommendationService().get_budget_recommendation(user.id, 4, 2024) is None


def test_fallback_without_completion_client(app, user, history):
    result = BudgetRecommendationService().get_budget_recommendation(user.id, 4, 2024)

    average = 470 / 3
    assert result['recommended'] == round(average * 1.1, 2)
    assert result['min'] == round(average * 0.95, 2)
    assert result['max'] == round(average * 1.2, 2)
    assert result['confidence'] == 'high'
    assert '$156.67' in result['explanation']


def test_completion_response_is_parsed(app, user, category, history):
    prompts = []

    def client(prompt):
        prompts.append(prompt)
        payload = {'recommended': 180, 'min': 160, 'max': 210, 'explanation': 'Steady growth.', 'tip': 'Cook.'}
        return 'Here is my advice:\n' + json.dumps(payload) + '\nGood luck!'

    svc = BudgetRecommendationService(completion_client=client)
    result = svc.get_budget_recommendation(user.id, 4, 2024, category_id=category.id)

    assert result == {'recommended': 180.0, 'min': 160.0, 'max': 210.0, 'explanation': 'Steady growth.',
                      'tip': 'Cook.', 'confidence': 'high'}
    assert 'Category: Subscriptions' in prompts[0]
    assert 'Target Month: April 2024' in prompts[0]
    assert '- March 2024: $200.00 (1 expenses)' in prompts[0]


def test_completion_defaults_missing_keys(app, user, history):
    svc = BudgetRecommendationService(completion_client=lambda prompt: '{"recommended": 100}')

    result = svc.get_budget_recommendation(user.id, 4, 2024)

    assert result['min'] == pytest.approx(90.0)
    assert result['max'] == pytest.approx(110.0)
    assert result['explanation'] == 'Based on your spending patterns.'


@pytest.mark.parametrize('reply', ['no json here', '{"recommended": "lots"}', '{not json}'])
def test_invalid_completion_falls_back(app, user, history, reply):
    svc = BudgetRecommendationService(completion_client=lambda prompt: reply)

    result = svc.get_budget_recommendation(user.id, 4, 2024)

    assert result['recommended'] == round(470 / 3 * 1.1, 2)


def test_completion_error_falls_back(app, user, history):
    def client(prompt):
        raise TimeoutError('upstream timeout')

    result = BudgetRecommendationService(completion_client=client).get_budget_recommendation(user.id, 4, 2024)

    assert result['tip'] == 'Review your expenses weekly to catch any overspending early.'


def test_confidence_levels():
    assert BudgetRecommendationService.calculate_confidence({'expenses': [1, 2, 3]}) == 'high'
    assert BudgetRecommendationService.calculate_confidence({'expenses': [1, 2]}) == 'medium'
    assert BudgetRecommendationService.calculate_confidence({'expenses': [1]}) == 'low'


def test_has_enough_historical_data(app, user, make_expense):
    svc = BudgetRecommendationService()
    today = date(2024, 4, 15)
    for day in range(1, 6):
        make_expense(10, date(2024, 3, day))
    assert svc.has_enough_historical_data(user.id, today) is False

    make_expense(10, date(2024, 2, 1))
    assert svc.has_enough_historical_data(user.id, today) is True
