import re
import uuid
from datetime import date, timedelta

from rentdesk import db
from rentdesk.models import RentInvoice, PaymentRecord, AuditLog
from rentdesk.services import invoice_service


def test_generate_monthly_invoices(app, client, accountant, occupied_unit, factory):
    factory.unit(occupied_unit['property_id'])  # vacant, not invoiced
    second_tenant = factory.tenant()
    factory.unit(occupied_unit['property_id'], tenant_id=second_tenant, rent=12000, currency='USD')

    response = client.post('/api/rent-invoices/generate-monthly', headers=accountant['headers'],
                           json={'month': 3, 'year': 2025, 'due_date_offset': 5})

    assert response.status_code == 201
    body = response.get_json()
    assert body['message'] == 'Generated 2 invoices for 2025-03'
    assert body['generated_count'] == 2
    assert body['errors'] == []

    by_unit = {i['rental_unit_id']: i for i in body['invoices']}
    first = by_unit[occupied_unit['unit_id']]
    assert first['invoice_date'] == '2025-03-01'
    assert first['due_date'] == '2025-03-06'
    assert first['total_amount'] == 9500
    assert first['currency'] == 'MVR'
    assert first['status'] == 'pending'
    assert sorted(i['currency'] for i in body['invoices']) == ['MVR', 'USD']

    with app.app_context():
        audit = AuditLog.query.filter_by(action='invoices.generated').one()
        assert audit.details['generated'] == 2


def test_generate_skips_units_already_invoiced(client, admin_headers, occupied_unit, factory):
    factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'],
                    date(2025, 3, 15), date(2025, 3, 25))

    response = client.post('/api/rent-invoices/generate-monthly', headers=admin_headers,
                           json={'month': 3, 'year': 2025})

    body = response.get_json()
    assert body['generated_count'] == 0
    assert body['errors'] == ['Invoice already exists for Coral View - Unit A1']


def test_generate_twice_is_idempotent(app, client, admin_headers, occupied_unit):
    for _ in range(2):
        client.post('/api/rent-invoices/generate-monthly', headers=admin_headers, json={'month': 4, 'year': 2025})

    with app.app_context():
        assert RentInvoice.query.count() == 1


def test_generate_validation(client, admin_headers):
    response = client.post('/api/rent-invoices/generate-monthly', headers=admin_headers,
                           json={'month': 13, 'year': 2019, 'due_date_offset': 40})

    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'month', 'year', 'due_date_offset'}


def test_create_invoice_numbers_sequentially(client, admin_headers, occupied_unit):
    payload = {
        'tenant_id': occupied_unit['tenant_id'],
        'property_id': occupied_unit['property_id'],
        'rental_unit_id': occupied_unit['unit_id'],
        'invoice_date': '2025-01-01',
        'due_date': '2025-01-10',
        'rent_amount': 9500,
        'late_fee': 250,
    }

    first = client.post('/api/rent-invoices', headers=admin_headers, json=payload).get_json()['rent_invoice']
    second = client.post('/api/rent-invoices', headers=admin_headers, json=payload).get_json()['rent_invoice']

    assert re.match(r'^INV-2025-\d{6}$', first['invoice_number'])
    assert first['invoice_number'] == 'INV-2025-000001'
    assert second['invoice_number'] == 'INV-2025-000002'
    assert first['total_amount'] == 9750
    assert first['currency'] == 'MVR'


def test_create_invoice_validation(client, admin_headers, occupied_unit, factory):
    other_unit = factory.unit(factory.property())

    response = client.post('/api/rent-invoices', headers=admin_headers, json={
        'tenant_id': occupied_unit['tenant_id'],
        'property_id': occupied_unit['property_id'],
        'rental_unit_id': other_unit,
        'invoice_date': '2025-01-10',
        'due_date': '2025-01-10',
        'rent_amount': 9500,
    })

    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert errors['due_date'] == ['The due date must be a date after invoice date.']
    assert 'rental_unit_id' in errors


def test_mark_paid_creates_payment_record(app, client, accountant, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8), rent=9500)
    type_id = factory.payment_type('Rent')
    mode_id = factory.payment_mode('Bank Transfer')
    factory.currency('MVR', 1, is_base=True)

    response = client.patch(f'/api/rent-invoices/{invoice_id}/mark-paid', headers=accountant['headers'], json={
        'payment_details': {'payment_type_id': type_id, 'payment_mode_id': mode_id,
                            'reference_number': 'BLAZ-88', 'bank': 'BML'},
    })

    assert response.status_code == 200
    body = response.get_json()
    assert body['rent_invoice']['status'] == 'paid'
    assert body['rent_invoice']['paid_date'] == date.today().isoformat()
    record = body['payment_record']
    assert record['amount'] == 9500
    assert record['paid_by'] == 'Ahmed Ibrahim'
    assert record['reference_number'] == 'BLAZ-88'
    assert record['currency'] == 'MVR'
    assert record['unit_id'] == occupied_unit['unit_id']

    again = client.patch(f'/api/rent-invoices/{invoice_id}/mark-paid', headers=accountant['headers'])
    assert again.status_code == 400
    assert again.get_json()['message'] == 'Invoice is already paid'

    with app.app_context():
        assert PaymentRecord.query.count() == 1
        assert AuditLog.query.filter_by(action='invoice.paid').count() == 1


def test_mark_paid_without_details_creates_no_record(app, client, admin_headers, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8))

    response = client.patch(f'/api/rent-invoices/{invoice_id}/mark-paid', headers=admin_headers,
                            json={'notes': 'Paid at office'})

    assert response.status_code == 200
    assert 'payment_record' not in response.get_json()
    assert response.get_json()['rent_invoice']['notes'] == 'Paid at office'
    with app.app_context():
        assert PaymentRecord.query.count() == 0


def test_mark_paid_rejects_unknown_payment_mode(client, admin_headers, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8))
    type_id = factory.payment_type()

    response = client.patch(f'/api/rent-invoices/{invoice_id}/mark-paid', headers=admin_headers,
                            json={'payment_details': {'payment_type_id': type_id, 'payment_mode_id': 404}})

    assert response.status_code == 400


def test_cancelled_invoice_cannot_be_paid(client, admin_headers, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8),
                                 status='cancelled')

    response = client.patch(f'/api/rent-invoices/{invoice_id}/mark-paid', headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cancelled invoices cannot be paid'


def test_mark_overdue_applies_late_fee(app, client, admin_headers, occupied_unit, factory):
    today = date.today()
    overdue_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], today - timedelta(days=20),
                                 today - timedelta(days=10), rent=9500)
    current_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], today, today + timedelta(days=7))

    response = client.post('/api/rent-invoices/mark-overdue', headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()['updated_count'] == 1
    with app.app_context():
        overdue = db.session.get(RentInvoice, overdue_id)
        assert overdue.status == 'overdue'
        assert float(overdue.late_fee) == 100
        assert float(overdue.total_amount) == 9600
        assert db.session.get(RentInvoice, current_id).status == 'pending'


def test_invoice_statistics(client, admin_headers, occupied_unit, factory):
    ids = (occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'])
    factory.invoice(*ids, date(2025, 1, 1), date(2025, 1, 8), rent=1000, status='paid')
    factory.invoice(*ids, date(2025, 2, 1), date(2025, 2, 8), rent=2000)
    factory.invoice(*ids, date(2025, 3, 1), date(2025, 3, 8), rent=3000, status='overdue')

    stats = client.get('/api/rent-invoices/statistics', headers=admin_headers).get_json()['statistics']

    assert stats['total_invoices'] == 3
    assert stats['paid_invoices'] == 1
    assert stats['pending_invoices'] == 1
    assert stats['overdue_invoices'] == 1
    assert stats['total_pending_amount'] == 5000
    assert stats['total_paid_amount'] == 1000


def test_filter_invoices_by_month(client, admin_headers, occupied_unit, factory):
    ids = (occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'])
    factory.invoice(*ids, date(2025, 1, 1), date(2025, 1, 8))
    march = factory.invoice(*ids, date(2025, 3, 1), date(2025, 3, 8))

    response = client.get('/api/rent-invoices?month=3&year=2025', headers=admin_headers)

    assert [i['id'] for i in response.get_json()['rent_invoices']] == [march]


def test_update_invoice_recalculates_total(client, admin_headers, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8), rent=9500)

    response = client.put(f'/api/rent-invoices/{invoice_id}', headers=admin_headers,
                          json={'late_fee': 500, 'status': 'paid'})

    invoice = response.get_json()['rent_invoice']
    assert invoice['total_amount'] == 10000
    assert invoice['paid_date'] == date.today().isoformat()


def test_only_admin_deletes_invoices(client, admin_headers, accountant, occupied_unit, factory):
    invoice_id = factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'],
                                 occupied_unit['unit_id'], date(2025, 3, 1), date(2025, 3, 8))

    assert client.delete(f'/api/rent-invoices/{invoice_id}', headers=accountant['headers']).status_code == 403
    assert client.delete(f'/api/rent-invoices/{invoice_id}', headers=admin_headers).status_code == 200


def test_generate_uses_rent_due_days_setting(client, admin_headers, occupied_unit):
    client.put('/api/settings', headers=admin_headers, json={'rent_due_days': 10})

    response = client.post('/api/rent-invoices/generate-monthly', headers=admin_headers,
                           json={'month': 3, 'year': 2025})

    assert response.get_json()['invoices'][0]['due_date'] == '2025-03-11'


def test_generate_continues_past_a_failing_unit(app, client, admin_headers, occupied_unit, factory, monkeypatch):
    second_unit = factory.unit(occupied_unit['property_id'], tenant_id=factory.tenant())
    fixed = uuid.UUID('12345678-1234-5678-1234-567812345678')
    monkeypatch.setattr(invoice_service.uuid, 'uuid4', lambda: fixed)
    factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'],
                    date(2025, 2, 1), date(2025, 2, 8),
                    invoice_number=f"INV-2025-03-{occupied_unit['unit_id']}-12345678")

    response = client.post('/api/rent-invoices/generate-monthly', headers=admin_headers,
                           json={'month': 3, 'year': 2025})

    assert response.status_code == 201
    body = response.get_json()
    assert [i['rental_unit_id'] for i in body['invoices']] == [second_unit]
    assert len(body['errors']) == 1
    assert body['errors'][0].startswith('Failed to generate invoice for Coral View - Unit A1')
    with app.app_context():
        assert RentInvoice.query.count() == 2
        assert RentInvoice.query.filter_by(rental_unit_id=second_unit).one().invoice_date == date(2025, 3, 1)
