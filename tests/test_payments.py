from datetime import date

import pytest

from rentdesk import db
from rentdesk.models import Payment, PaymentRecord


@pytest.fixture
def catalog(factory):
    return {
        'payment_type_id': factory.payment_type('Rent'),
        'cash_id': factory.payment_mode('Cash'),
        'transfer_id': factory.payment_mode('Bank Transfer'),
    }


def payment_payload(occupied_unit, **overrides):
    payload = {
        'tenant_id': occupied_unit['tenant_id'],
        'property_id': occupied_unit['property_id'],
        'rental_unit_id': occupied_unit['unit_id'],
        'amount': 9500,
        'payment_type': 'rent',
        'payment_method': 'bank_transfer',
        'payment_date': '2024-02-01',
    }
    payload.update(overrides)
    return payload


def test_create_payment(client, accountant, occupied_unit):
    response = client.post('/api/payments', headers=accountant['headers'], json=payment_payload(occupied_unit))

    assert response.status_code == 201
    payment = response.get_json()['payment']
    assert payment['status'] == 'pending'
    assert payment['currency'] == 'MVR'
    assert payment['tenant']['name'] == 'Ahmed Ibrahim'


def test_create_payment_validation(client, admin_headers, occupied_unit):
    response = client.post('/api/payments', headers=admin_headers, json=payment_payload(
        occupied_unit, payment_method='bitcoin', amount=-5, tenant_id=999,
    ))

    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'payment_method', 'amount', 'tenant_id'}


def test_mark_payment_paid(client, admin_headers, occupied_unit):
    payment = client.post('/api/payments', headers=admin_headers,
                          json=payment_payload(occupied_unit)).get_json()['payment']

    response = client.post(f"/api/payments/{payment['id']}/mark-paid", headers=admin_headers,
                           json={'reference_number': 'BML-7781'})
    assert response.status_code == 200
    assert response.get_json()['payment']['status'] == 'completed'
    assert response.get_json()['payment']['reference_number'] == 'BML-7781'

    again = client.post(f"/api/payments/{payment['id']}/mark-paid", headers=admin_headers)
    assert again.status_code == 400


def test_payment_statistics(client, admin_headers, occupied_unit):
    client.post('/api/payments', headers=admin_headers,
                json=payment_payload(occupied_unit, amount=1000, status='completed'))
    client.post('/api/payments', headers=admin_headers,
                json=payment_payload(occupied_unit, amount=250, status='pending'))
    client.post('/api/payments', headers=admin_headers,
                json=payment_payload(occupied_unit, amount=99, status='failed'))

    stats = client.get('/api/payments/statistics', headers=admin_headers).get_json()['statistics']

    assert stats['total_payments'] == 3
    assert stats['total_amount'] == 1000
    assert stats['pending_amount'] == 250
    assert stats['failed_payments'] == 1


def test_payment_list_date_filter(client, admin_headers, occupied_unit):
    client.post('/api/payments', headers=admin_headers, json=payment_payload(occupied_unit))
    client.post('/api/payments', headers=admin_headers,
                json=payment_payload(occupied_unit, payment_date='2024-05-01'))

    response = client.get('/api/payments?from_date=2024-03-01', headers=admin_headers)
    assert [p['payment_date'] for p in response.get_json()['payments']] == ['2024-05-01']

    assert client.get('/api/payments?from_date=garbage', headers=admin_headers).status_code == 400


def test_only_admin_deletes_payments(app, client, admin_headers, accountant, occupied_unit):
    payment = client.post('/api/payments', headers=admin_headers,
                          json=payment_payload(occupied_unit)).get_json()['payment']

    assert client.delete(f"/api/payments/{payment['id']}", headers=accountant['headers']).status_code == 403
    assert client.delete(f"/api/payments/{payment['id']}", headers=admin_headers).status_code == 200
    with app.app_context():
        assert db.session.get(Payment, payment['id']) is None


def test_payment_record_resolves_unit_from_tenant(client, accountant, occupied_unit, catalog):
    response = client.post('/api/payment-records', headers=accountant['headers'], json={
        'tenant_id': occupied_unit['tenant_id'],
        'payment_type_id': catalog['payment_type_id'],
        'payment_mode_id': catalog['transfer_id'],
        'amount': 9500,
        'blaz_no': 'BLAZ-1001',
    })

    assert response.status_code == 201
    record = response.get_json()['payment_record']
    assert record['unit_id'] == occupied_unit['unit_id']
    assert record['paid_by'] == 'Ahmed Ibrahim'
    assert record['paid_date'] == date.today().isoformat()
    assert record['reference_number'] == 'BLAZ-1001'
    assert record['payment_mode'] == 'Bank Transfer'
    assert record['status'] == 'active'


def test_payment_record_requires_unit_or_tenant(client, admin_headers, catalog):
    response = client.post('/api/payment-records', headers=admin_headers, json={
        'payment_type_id': catalog['payment_type_id'],
        'payment_mode_id': catalog['cash_id'],
        'amount': 100,
    })

    assert response.status_code == 400
    assert response.get_json()['errors']['unit_id'] == [
        'The unit id field is required when tenant id is not present.'
    ]


def test_payment_record_for_tenant_without_unit(client, admin_headers, factory, catalog):
    tenant_id = factory.tenant()

    response = client.post('/api/payment-records', headers=admin_headers, json={
        'tenant_id': tenant_id,
        'payment_type_id': catalog['payment_type_id'],
        'payment_mode_id': catalog['cash_id'],
        'amount': 100,
    })

    assert response.status_code == 400
    assert 'tenant_id' in response.get_json()['errors']


def test_cancelled_record_is_inactive_and_left_out_of_summary(app, client, admin_headers, occupied_unit, catalog):
    def record(amount, mode_id, **extra):
        payload = {'unit_id': occupied_unit['unit_id'], 'payment_type_id': catalog['payment_type_id'],
                   'payment_mode_id': mode_id, 'amount': amount}
        payload.update(extra)
        return client.post('/api/payment-records', headers=admin_headers, json=payload).get_json()['payment_record']

    record(500, catalog['cash_id'])
    record(700, catalog['cash_id'])
    record(9500, catalog['transfer_id'])
    cancelled = record(300, catalog['cash_id'], status='cancelled')

    assert cancelled['status'] == 'inactive'

    summary = client.get('/api/payment-records/summary', headers=admin_headers).get_json()['summary']
    assert summary['total_records'] == 3
    assert summary['total_amount'] == 10700
    assert summary['by_payment_mode'] == [
        {'payment_mode': 'Bank Transfer', 'count': 1, 'total_amount': 9500.0},
        {'payment_mode': 'Cash', 'count': 2, 'total_amount': 1200.0},
    ]

    inactive = client.get('/api/payment-records?status=inactive', headers=admin_headers).get_json()
    assert [r['id'] for r in inactive['payment_records']] == [cancelled['id']]


def test_update_and_delete_payment_record(app, client, admin_headers, occupied_unit, catalog):
    created = client.post('/api/payment-records', headers=admin_headers, json={
        'unit_id': occupied_unit['unit_id'], 'payment_type_id': catalog['payment_type_id'],
        'payment_mode_id': catalog['cash_id'], 'amount': 500, 'notes': 'Partial',
    }).get_json()['payment_record']
    assert created['remarks'] == 'Partial'

    response = client.put(f"/api/payment-records/{created['id']}", headers=admin_headers,
                          json={'amount': 650, 'status': 'failed'})
    assert response.status_code == 200
    assert response.get_json()['payment_record']['amount'] == 650
    assert response.get_json()['payment_record']['status'] == 'inactive'

    unit_records = client.get(f"/api/payment-records/unit/{occupied_unit['unit_id']}", headers=admin_headers)
    assert len(unit_records.get_json()['payment_records']) == 1

    assert client.delete(f"/api/payment-records/{created['id']}", headers=admin_headers).status_code == 200
    with app.app_context():
        assert PaymentRecord.query.count() == 0


def test_payment_type_catalog(client, admin_headers, manager_headers):
    response = client.post('/api/payment-types', headers=admin_headers,
                           json={'name': 'Deposit', 'description': 'Security deposit'})
    assert response.status_code == 201
    assert response.get_json()['payment_type']['is_active'] is True

    duplicate = client.post('/api/payment-types', headers=admin_headers, json={'name': 'deposit'})
    assert duplicate.status_code == 400
    assert duplicate.get_json()['errors']['name'] == ['The name has already been taken.']

    assert client.post('/api/payment-types', headers=manager_headers, json={'name': 'Fine'}).status_code == 403

    listing = client.get('/api/payment-types', headers=manager_headers).get_json()
    assert [t['name'] for t in listing['payment_types']] == ['Deposit']


def test_payment_mode_in_use_cannot_be_deleted(client, admin_headers, occupied_unit, catalog):
    client.post('/api/payment-records', headers=admin_headers, json={
        'unit_id': occupied_unit['unit_id'], 'payment_type_id': catalog['payment_type_id'],
        'payment_mode_id': catalog['cash_id'], 'amount': 500,
    })

    response = client.delete(f"/api/payment-modes/{catalog['cash_id']}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot delete payment mode that is used by payment records'

    assert client.delete(f"/api/payment-modes/{catalog['transfer_id']}", headers=admin_headers).status_code == 200


def test_payment_type_in_use_cannot_be_deleted(client, admin_headers, occupied_unit, catalog, factory):
    factory.payment_record(occupied_unit['unit_id'], catalog['payment_type_id'], catalog['cash_id'])
    unused_type = factory.payment_type('Deposit')

    response = client.delete(f"/api/payment-types/{catalog['payment_type_id']}", headers=admin_headers)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot delete payment type that is used by payment records'

    assert client.delete(f'/api/payment-types/{unused_type}', headers=admin_headers).status_code == 200
