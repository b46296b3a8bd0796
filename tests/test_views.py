from datetime import date, timedelta

from spese.models.Expense import Expense
from tests.conftest import occurrence_dates


def test_lista_requires_user(client):
    response = client.get('/ricorrenti/')
    assert response.status_code == 400


def test_aggiungi_creates_template_and_generates_due_occurrences(client, user, category):
    start = date.today() - timedelta(days=3)

    response = client.post('/ricorrenti/aggiungi', json={
        'user_id': user.id,
        'amount': '4.50',
        'title': 'Coffee',
        'category_id': category.id,
        'recurring_frequency': 'daily',
        'recurring_start_date': start.isoformat(),
    })

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['generated_count'] == 3
    assert body['ricorrente']['type'] == 'recurring'
    assert body['ricorrente']['amount'] == '4.50'
    assert body['ricorrente']['amount_formatted'] == '$ 4.50'
    assert body['ricorrente']['date'] == start.isoformat()
    assert occurrence_dates(body['ricorrente']['id'])[-1] == date.today()


def test_aggiungi_rejects_invalid_frequency(client, user):
    response = client.post('/ricorrenti/aggiungi', json={
        'user_id': user.id,
        'amount': '4.50',
        'title': 'Coffee',
        'recurring_frequency': 'hourly',
        'recurring_start_date': '2024-01-01',
    })

    assert response.status_code == 400
    assert 'Frequency must be one of' in response.get_json()['message']
    assert Expense.query.count() == 0


def test_lista_and_dati_include_occurrences(client, user, make_template, app):
    template = make_template('weekly', start=date(2024, 1, 1), end=date(2024, 1, 31))
    client.post('/ricorrenti/genera', json={'date': '2024-01-20'})

    listing = client.get(f'/ricorrenti/?user_id={user.id}').get_json()
    assert [r['id'] for r in listing['ricorrenti']] == [template.id]
    assert listing['ricorrenti'][0]['occurrences'] == ['2024-01-15', '2024-01-08']

    detail = client.get(f'/ricorrenti/dati/{template.id}').get_json()
    assert detail['ricorrente']['recurring_end_date'] == '2024-01-31'
    assert detail['ricorrente']['occurrences'] == ['2024-01-15', '2024-01-08']


def test_dati_unknown_or_one_time_is_404(client, make_expense):
    expense = make_expense(10, date(2024, 1, 1))

    assert client.get('/ricorrenti/dati/999').status_code == 404
    assert client.get(f'/ricorrenti/dati/{expense.id}').status_code == 404


def test_elimina_removes_generated_occurrences(client, make_template):
    template = make_template('daily', start=date(2024, 1, 1))
    template_id = template.id
    client.post('/ricorrenti/genera', json={'date': '2024-01-03'})
    assert Expense.query.count() == 3

    response = client.post(f'/ricorrenti/elimina/{template_id}')

    assert response.status_code == 200
    assert response.get_json()['message'] == "Recurring expense 'Streaming' deleted with 2 generated expenses"
    assert Expense.query.count() == 0


def test_archivia_stops_generation_and_keeps_occurrences(client, make_template):
    template = make_template('daily', start=date(2024, 1, 1))
    template_id = template.id
    client.post('/ricorrenti/genera', json={'date': '2024-01-03'})

    assert client.post(f'/ricorrenti/archivia/{template_id}').status_code == 200
    body = client.post('/ricorrenti/genera', json={'date': '2024-01-10'}).get_json()

    assert body['generated_count'] == 0
    assert body['templates_processed'] == 0
    assert occurrence_dates(template_id) == [date(2024, 1, 2), date(2024, 1, 3)]
    assert client.post(f'/ricorrenti/archivia/{template_id}').status_code == 404


def test_genera_returns_run_summary(client, make_template):
    make_template('daily', start=date(2024, 1, 1))
    make_template('monthly', start=date(2023, 12, 5))

    body = client.post('/ricorrenti/genera', json={'date': '2024-01-05'}).get_json()

    assert body == {
        'success': True,
        'generated_count': 5,
        'templates_processed': 2,
        'failed_templates': [],
        'status': 'success',
    }


def test_genera_rejects_invalid_date(client):
    response = client.post('/ricorrenti/genera', json={'date': '05/01/2024'})

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_aggiungi_rejects_non_numeric_user(client):
    response = client.post('/ricorrenti/aggiungi', json={
        'user_id': 'mario',
        'amount': '4.50',
        'title': 'Coffee',
        'recurring_frequency': 'daily',
        'recurring_start_date': '2024-01-01',
    })

    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'message': 'A numeric user_id is required'}
    assert Expense.query.count() == 0
