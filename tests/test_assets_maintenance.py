import io
import os
from datetime import date, timedelta


def test_asset_crud(client, admin_headers):
    response = client.post('/api/assets', headers=admin_headers, json={
        'name': 'Split AC', 'brand': 'LG', 'serial_no': 'LG-001', 'category': 'hvac',
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    asset_id = body['asset']['id']
    assert body['asset']['status'] == 'working'

    response = client.put(f'/api/assets/{asset_id}', headers=admin_headers, json={'brand': 'Samsung'})
    assert response.get_json()['asset']['brand'] == 'Samsung'

    response = client.delete(f'/api/assets/{asset_id}', headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f'/api/assets/{asset_id}', headers=admin_headers).status_code == 404


def test_asset_validation(client, admin_headers):
    response = client.post('/api/assets', headers=admin_headers, json={'category': 'spaceship'})

    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'name', 'category'}


def test_assigned_asset_cannot_be_deleted(client, admin_headers, occupied_unit, factory):
    asset_id = factory.asset()
    factory.assignment(occupied_unit['unit_id'], asset_id)

    response = client.delete(f'/api/assets/{asset_id}', headers=admin_headers)

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_asset_status_notes_cleared_when_working(client, admin_headers, factory):
    asset_id = factory.asset()

    response = client.patch(f'/api/assets/{asset_id}/status', headers=admin_headers,
                            json={'status': 'maintenance', 'maintenance_notes': 'Gas leak'})
    assert response.get_json()['asset']['maintenance_notes'] == 'Gas leak'

    response = client.patch(f'/api/assets/{asset_id}/status', headers=admin_headers, json={'status': 'working'})
    assert response.get_json()['asset']['maintenance_notes'] is None


def test_asset_stats(client, admin_headers, factory):
    factory.asset(category='furniture')
    factory.asset(category='furniture', status='faulty')

    stats = client.get('/api/assets/stats', headers=admin_headers).get_json()['stats']

    assert stats['total'] == 2
    assert stats['by_category']['furniture'] == 2
    assert stats['by_status']['faulty'] == 1


def test_maintenance_cost_starts_as_draft_and_resets_on_update(client, admin_headers, occupied_unit, factory):
    assignment_id = factory.assignment(occupied_unit['unit_id'], factory.asset())

    response = client.post('/api/maintenance-costs', headers=admin_headers, json={
        'rental_unit_asset_id': assignment_id,
        'repair_cost': 1250.5,
        'status': 'paid',
        'repair_provider': 'Cool Fix Pvt Ltd',
    })
    assert response.status_code == 201
    cost = response.get_json()['maintenance_cost']
    assert cost['status'] == 'draft'
    assert cost['currency'] == 'MVR'

    response = client.put(f"/api/maintenance-costs/{cost['id']}", headers=admin_headers,
                          json={'status': 'pending'})
    assert response.get_json()['maintenance_cost']['status'] == 'pending'

    response = client.put(f"/api/maintenance-costs/{cost['id']}", headers=admin_headers,
                          json={'repair_cost': 1300})
    assert response.get_json()['maintenance_cost']['status'] == 'draft'

    totals = client.get(f'/api/maintenance-costs/rental-unit-asset/{assignment_id}', headers=admin_headers)
    assert totals.get_json()['total_cost'] == 1300


def test_maintenance_cost_requires_existing_assignment(client, admin_headers):
    response = client.post('/api/maintenance-costs', headers=admin_headers,
                           json={'rental_unit_asset_id': 77, 'repair_cost': 10})

    assert response.status_code == 400
    assert 'rental_unit_asset_id' in response.get_json()['errors']


def test_maintenance_cost_bill_uploads(app, client, admin_headers, occupied_unit, factory):
    assignment_id = factory.assignment(occupied_unit['unit_id'], factory.asset())

    response = client.post('/api/maintenance-costs', headers=admin_headers, content_type='multipart/form-data', data={
        'rental_unit_asset_id': str(assignment_id),
        'repair_cost': '850',
        'bills': (io.BytesIO(b'%PDF-1.4 invoice'), 'compressor repair.pdf'),
    })

    assert response.status_code == 201
    cost = response.get_json()['maintenance_cost']
    assert cost['repair_cost'] == 850
    first_bill = os.path.join(app.config['UPLOAD_FOLDER'], cost['attached_bills'][0])
    assert cost['attached_bills'][0].startswith('maintenance_bills/')
    assert cost['attached_bills'][0].endswith('compressor_repair.pdf')
    assert os.path.isfile(first_bill)

    response = client.put(f"/api/maintenance-costs/{cost['id']}", headers=admin_headers,
                          content_type='multipart/form-data',
                          data={'bills': (io.BytesIO(b'receipt'), 'receipt.jpg')})
    bills = response.get_json()['maintenance_cost']['attached_bills']
    assert len(bills) == 2
    second_bill = os.path.join(app.config['UPLOAD_FOLDER'], bills[1])

    assert client.delete(f"/api/maintenance-costs/{cost['id']}", headers=admin_headers).status_code == 200
    assert not os.path.exists(first_bill)
    assert not os.path.exists(second_bill)


def test_maintenance_cost_rejects_unsupported_bill_type(client, admin_headers, occupied_unit, factory):
    assignment_id = factory.assignment(occupied_unit['unit_id'], factory.asset())

    response = client.post('/api/maintenance-costs', headers=admin_headers, content_type='multipart/form-data', data={
        'rental_unit_asset_id': str(assignment_id),
        'repair_cost': '850',
        'bills': (io.BytesIO(b'MZ'), 'setup.exe'),
    })

    assert response.status_code == 400
    assert 'bills' in response.get_json()['errors']


def maintenance_payload(occupied_unit, **overrides):
    payload = {
        'title': 'Leaking pipe',
        'description': 'Water leaking under the kitchen sink',
        'property_id': occupied_unit['property_id'],
        'rental_unit_id': occupied_unit['unit_id'],
        'tenant_id': occupied_unit['tenant_id'],
        'priority': 'high',
    }
    payload.update(overrides)
    return payload


def test_create_maintenance_request(client, manager_headers, occupied_unit):
    response = client.post('/api/maintenance-requests', headers=manager_headers,
                           json=maintenance_payload(occupied_unit))

    assert response.status_code == 201
    item = response.get_json()['maintenance_request']
    assert item['status'] == 'pending'
    assert item['is_urgent'] is True
    assert item['request_date'] == date.today().isoformat()
    assert item['rental_unit']['unit_number'] == 'A1'


def test_maintenance_request_validation(client, admin_headers, occupied_unit, factory):
    other_unit = factory.unit(factory.property())
    yesterday = (date.today() - timedelta(days=1)).isoformat()

    response = client.post('/api/maintenance-requests', headers=admin_headers, json=maintenance_payload(
        occupied_unit, title='No', description='short', rental_unit_id=other_unit, scheduled_date=yesterday,
    ))

    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert set(errors) == {'title', 'description', 'rental_unit_id', 'scheduled_date'}


def test_completing_request_stamps_completed_date(client, admin_headers, occupied_unit):
    created = client.post('/api/maintenance-requests', headers=admin_headers,
                          json=maintenance_payload(occupied_unit)).get_json()['maintenance_request']

    response = client.put(f"/api/maintenance-requests/{created['id']}", headers=admin_headers,
                          json={'status': 'completed', 'actual_cost': 450})

    assert response.status_code == 200
    item = response.get_json()['maintenance_request']
    assert item['status'] == 'completed'
    assert item['completed_date'] is not None
    assert item['actual_cost'] == 450
    assert item['is_urgent'] is False


def test_filter_maintenance_requests(client, admin_headers, occupied_unit):
    client.post('/api/maintenance-requests', headers=admin_headers, json=maintenance_payload(occupied_unit))
    client.post('/api/maintenance-requests', headers=admin_headers,
                json=maintenance_payload(occupied_unit, title='Broken window', priority='low'))

    response = client.get('/api/maintenance-requests?priority=low', headers=admin_headers)

    assert [m['title'] for m in response.get_json()['maintenance_requests']] == ['Broken window']
