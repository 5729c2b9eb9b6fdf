from datetime import date

from rentdesk import db
from rentdesk.models import Property, RentalUnit, RentalUnitAsset, RentInvoice, PaymentRecord, Tenant


def unit_payload(property_id, **overrides):
    payload = {
        'property_id': property_id,
        'unit_number': '101',
        'floor_number': 1,
        'unit_details': {'numberOfRooms': 2, 'numberOfToilets': 1},
        'financial': {'rentAmount': 7500, 'depositAmount': 15000, 'currency': 'usd'},
    }
    payload.update(overrides)
    return payload


def test_create_rental_unit(client, admin_headers, factory):
    property_id = factory.property()

    response = client.post('/api/rental-units', headers=admin_headers, json=unit_payload(property_id))

    assert response.status_code == 201
    unit = response.get_json()['rental_unit']
    assert unit['status'] == 'available'
    assert unit['financial'] == {'rentAmount': 7500.0, 'depositAmount': 15000.0, 'currency': 'USD'}


def test_create_rental_unit_nested_validation(client, admin_headers, factory):
    property_id = factory.property()

    response = client.post('/api/rental-units', headers=admin_headers, json=unit_payload(
        property_id, unit_details={'numberOfRooms': 0}, financial={},
    ))

    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert 'unit_details.numberOfRooms' in errors
    assert 'unit_details.numberOfToilets' in errors
    assert 'financial.rentAmount' in errors


def test_create_rental_unit_respects_capacity(client, admin_headers, factory):
    property_id = factory.property(number_of_rental_units=1)
    factory.unit(property_id)

    response = client.post('/api/rental-units', headers=admin_headers, json=unit_payload(property_id))

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Property has reached maximum rental unit capacity'


def test_create_rental_unit_rejects_duplicate_number(client, admin_headers, factory):
    property_id = factory.property()
    factory.unit(property_id, unit_number='101')

    response = client.post('/api/rental-units', headers=admin_headers, json=unit_payload(property_id))

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Unit number already exists for this property'


def test_occupied_unit_requires_tenant(client, admin_headers, factory):
    property_id = factory.property()

    response = client.post('/api/rental-units', headers=admin_headers,
                           json=unit_payload(property_id, status='occupied'))

    assert response.status_code == 400


def test_create_with_tenant_occupies_unit_and_property(app, client, admin_headers, factory):
    property_id = factory.property(number_of_rental_units=2)
    tenant_id = factory.tenant()

    response = client.post('/api/rental-units', headers=admin_headers,
                           json=unit_payload(property_id, tenant_id=tenant_id, move_in_date='2024-03-01'))

    assert response.status_code == 201
    unit = response.get_json()['rental_unit']
    assert unit['status'] == 'occupied'
    assert unit['move_in_date'] == '2024-03-01'
    with app.app_context():
        assert db.session.get(Property, property_id).status == 'occupied'


def test_create_skips_assets_already_assigned(client, admin_headers, factory):
    property_id = factory.property()
    other_unit = factory.unit(property_id)
    free_asset = factory.asset()
    taken_asset = factory.asset()
    factory.assignment(other_unit, taken_asset)

    response = client.post('/api/rental-units', headers=admin_headers, json=unit_payload(
        property_id, assets=[free_asset, taken_asset, 9999],
    ))

    assert response.status_code == 201
    body = response.get_json()
    assert body['skipped_assets'] == [taken_asset, 9999]
    assert [a['asset_id'] for a in body['rental_unit']['assets']] == [free_asset]


def test_update_status_available_with_tenant_rejected(client, admin_headers, occupied_unit):
    response = client.put(f"/api/rental-units/{occupied_unit['unit_id']}", headers=admin_headers,
                          json={'status': 'available'})

    assert response.status_code == 400


def test_releasing_tenant_updates_property(app, client, admin_headers, occupied_unit):
    response = client.put(f"/api/rental-units/{occupied_unit['unit_id']}", headers=admin_headers,
                          json={'tenant_id': None})

    assert response.status_code == 200
    unit = response.get_json()['rental_unit']
    assert unit['status'] == 'available'
    assert unit['tenant_id'] is None
    with app.app_context():
        assert db.session.get(Property, occupied_unit['property_id']).status == 'vacant'


def test_maintenance_property_status_is_kept(app, client, admin_headers, factory):
    property_id = factory.property(status='maintenance')
    unit_id = factory.unit(property_id)
    tenant_id = factory.tenant()

    response = client.put(f'/api/rental-units/{unit_id}', headers=admin_headers, json={'tenant_id': tenant_id})

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Property, property_id).status == 'maintenance'


def test_delete_unit_resyncs_property(app, client, admin_headers, occupied_unit):
    response = client.delete(f"/api/rental-units/{occupied_unit['unit_id']}", headers=admin_headers)

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(RentalUnit, occupied_unit['unit_id']) is None
        assert db.session.get(Property, occupied_unit['property_id']).status == 'vacant'


def test_available_filter(client, admin_headers, occupied_unit, factory):
    free_id = factory.unit(occupied_unit['property_id'])

    response = client.get('/api/rental-units?available=true', headers=admin_headers)

    assert [u['id'] for u in response.get_json()['rental_units']] == [free_id]


def test_add_and_remove_unit_assets(app, client, admin_headers, occupied_unit, factory):
    asset_id = factory.asset()
    unit_id = occupied_unit['unit_id']

    response = client.post(f'/api/rental-units/{unit_id}/assets', headers=admin_headers, json={
        'assets': [{'asset_id': asset_id, 'quantity': 2}, {'asset_id': 4242}],
    })

    assert response.status_code == 200
    body = response.get_json()
    assert body['added_assets'][0]['quantity'] == 2
    assert body['skipped_assets'] == [{'asset_id': 4242, 'reason': 'Asset not found'}]

    response = client.delete(f'/api/rental-units/{unit_id}/assets/{asset_id}', headers=admin_headers)
    assert response.status_code == 200
    with app.app_context():
        assignment = RentalUnitAsset.query.filter_by(rental_unit_id=unit_id, asset_id=asset_id).one()
        assert assignment.is_active is False

    # re-adding reactivates the same assignment row
    client.post(f'/api/rental-units/{unit_id}/assets', headers=admin_headers,
                json={'assets': [{'asset_id': asset_id}]})
    with app.app_context():
        assert RentalUnitAsset.query.filter_by(rental_unit_id=unit_id, asset_id=asset_id).count() == 1


def test_unit_asset_status_and_maintenance_list(client, admin_headers, occupied_unit, factory):
    asset_id = factory.asset()
    unit_id = occupied_unit['unit_id']
    factory.assignment(unit_id, asset_id)

    response = client.patch(f'/api/rental-units/{unit_id}/assets/{asset_id}/status', headers=admin_headers,
                            json={'status': 'maintenance', 'maintenance_notes': 'Compressor noise'})

    assert response.status_code == 200
    assert response.get_json()['asset']['maintenance_notes'] == 'Compressor noise'

    listing = client.get('/api/rental-units/maintenance-assets', headers=admin_headers).get_json()
    assert listing['total'] == 1
    assert listing['maintenance_assets'][0]['rental_unit']['unit_number'] == 'A1'

    response = client.patch(f'/api/rental-units/{unit_id}/assets/{asset_id}/status', headers=admin_headers,
                            json={'status': 'working'})
    assert response.get_json()['asset']['maintenance_notes'] is None


def test_delete_vacant_unit_with_billing_history(app, client, admin_headers, occupied_unit, factory):
    factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'],
                    date(2025, 3, 1), date(2025, 3, 8))
    factory.payment_record(occupied_unit['unit_id'], factory.payment_type(), factory.payment_mode())
    client.put(f"/api/rental-units/{occupied_unit['unit_id']}", headers=admin_headers, json={'tenant_id': None})

    response = client.delete(f"/api/rental-units/{occupied_unit['unit_id']}", headers=admin_headers)

    assert response.status_code == 200
    with app.app_context():
        assert RentInvoice.query.count() == 0
        assert PaymentRecord.query.count() == 0
        assert db.session.get(Tenant, occupied_unit['tenant_id']) is not None


def test_update_occupied_status_requires_tenant(client, admin_headers, factory):
    unit_id = factory.unit(factory.property())

    response = client.put(f'/api/rental-units/{unit_id}', headers=admin_headers, json={'status': 'occupied'})

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Cannot set status to occupied without a tenant'


def test_assigning_tenant_defaults_move_in_date(client, admin_headers, factory):
    unit_id = factory.unit(factory.property())
    tenant_id = factory.tenant()

    response = client.put(f'/api/rental-units/{unit_id}', headers=admin_headers, json={'tenant_id': tenant_id})

    unit = response.get_json()['rental_unit']
    assert unit['status'] == 'occupied'
    assert unit['move_in_date'] == date.today().isoformat()


def test_partial_financial_update_keeps_other_fields(client, admin_headers, factory):
    unit_id = factory.unit(factory.property(), rent=8000, currency='USD')

    response = client.put(f'/api/rental-units/{unit_id}', headers=admin_headers,
                          json={'financial': {'rentAmount': 9000}})

    assert response.status_code == 200
    assert response.get_json()['rental_unit']['financial'] == {
        'rentAmount': 9000, 'depositAmount': 16000, 'currency': 'USD',
    }
