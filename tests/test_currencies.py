from rentdesk import db
from rentdesk.models import Currency, AuditLog


def test_create_currency_upper_cases_code(client, admin_headers):
    response = client.post('/api/currencies', headers=admin_headers, json={
        'code': 'usd', 'name': 'US Dollar', 'symbol': '$', 'exchange_rate': 0.065,
    })

    assert response.status_code == 201
    currency = response.get_json()['currency']
    assert currency['code'] == 'USD'
    assert currency['is_base'] is False
    assert currency['decimal_places'] == 2


def test_currency_validation(client, admin_headers, factory):
    factory.currency('USD', 0.065)

    response = client.post('/api/currencies', headers=admin_headers, json={
        'code': 'usd', 'name': 'Dup', 'symbol': '$', 'exchange_rate': 0, 'decimal_places': 6,
        'thousands_separator': '::',
    })

    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert errors['code'] == ['The code has already been taken.']
    assert set(errors) == {'code', 'exchange_rate', 'decimal_places', 'thousands_separator'}


def test_only_one_base_currency(app, client, admin_headers, factory):
    mvr_id = factory.currency('MVR', 1, is_base=True)

    response = client.post('/api/currencies', headers=admin_headers, json={
        'code': 'EUR', 'name': 'Euro', 'symbol': 'EUR', 'exchange_rate': 0.06, 'is_base': True,
    })

    assert response.status_code == 201
    euro = response.get_json()['currency']
    assert euro['is_base'] is True
    assert euro['exchange_rate'] == 1
    with app.app_context():
        assert db.session.get(Currency, mvr_id).is_base is False
        assert Currency.query.filter_by(is_base=True).count() == 1
        assert AuditLog.query.filter_by(action='currency.base_changed').count() == 1

    base = client.get('/api/currencies/base', headers=admin_headers).get_json()['currency']
    assert base['code'] == 'EUR'


def test_promote_existing_currency_to_base(app, client, admin_headers, factory):
    factory.currency('MVR', 1, is_base=True)
    usd_id = factory.currency('USD', 0.065)

    response = client.put(f'/api/currencies/{usd_id}', headers=admin_headers, json={'is_base': True})

    assert response.status_code == 200
    with app.app_context():
        assert Currency.get_base().id == usd_id


def test_missing_base_currency(client, admin_headers):
    response = client.get('/api/currencies/base', headers=admin_headers)

    assert response.status_code == 404


def test_convert(client, manager_headers, factory):
    factory.currency('MVR', 1, is_base=True)
    factory.currency('USD', 0.065)
    factory.currency('JPY', 9.7, decimal_places=0)

    response = client.post('/api/currencies/convert', headers=manager_headers,
                           json={'amount': 1000, 'from_currency': 'mvr', 'to_currency': 'USD'})
    assert response.status_code == 200
    conversion = response.get_json()['conversion']
    assert conversion['converted_amount'] == 65.0
    assert conversion['formatted'] == 'USD 65.00'

    response = client.post('/api/currencies/convert', headers=manager_headers,
                           json={'amount': 100, 'from_currency': 'USD', 'to_currency': 'JPY'})
    conversion = response.get_json()['conversion']
    assert conversion['converted_amount'] == 14923
    assert conversion['formatted'] == 'JPY 14,923'


def test_convert_unknown_or_inactive_currency(client, admin_headers, factory):
    factory.currency('MVR', 1, is_base=True)
    factory.currency('GBP', 0.051, is_active=False)

    response = client.post('/api/currencies/convert', headers=admin_headers,
                           json={'amount': 10, 'from_currency': 'MVR', 'to_currency': 'GBP'})

    assert response.status_code == 404


def test_list_active_currencies(client, admin_headers, factory):
    factory.currency('USD', 0.065)
    factory.currency('GBP', 0.051, is_active=False)

    response = client.get('/api/currencies?active_only=true', headers=admin_headers)

    assert [c['code'] for c in response.get_json()['currencies']] == ['USD']


def test_base_currency_cannot_be_deleted(client, admin_headers, factory):
    mvr_id = factory.currency('MVR', 1, is_base=True)
    usd_id = factory.currency('USD', 0.065)

    response = client.delete(f'/api/currencies/{mvr_id}', headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot delete the base currency'

    assert client.delete(f'/api/currencies/{usd_id}', headers=admin_headers).status_code == 200


def test_currency_used_by_payment_records_cannot_be_deleted(client, admin_headers, occupied_unit, factory):
    factory.currency('MVR', 1, is_base=True)
    usd_id = factory.currency('USD', 0.065)
    factory.payment_record(occupied_unit['unit_id'], factory.payment_type(), factory.payment_mode(),
                           currency_id=usd_id)

    response = client.delete(f'/api/currencies/{usd_id}', headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot delete currency that is used by payment records'
