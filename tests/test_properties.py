from rentdesk import db
from rentdesk.models import Property


def property_payload(**overrides):
    payload = {
        'name': 'Blue Lagoon Residence',
        'type': 'apartment',
        'street': 'Boduthakurufaanu Magu',
        'city': 'Male',
        'island': 'Male',
        'number_of_floors': 5,
        'number_of_rental_units': 10,
        'bedrooms': 20,
        'bathrooms': 15,
    }
    payload.update(overrides)
    return payload


def test_create_property(client, manager):
    response = client.post('/api/properties', headers=manager['headers'], json=property_payload())

    assert response.status_code == 201
    body = response.get_json()['property']
    assert body['status'] == 'vacant'
    assert body['address']['country'] == 'Maldives'
    # managers always own what they create
    assert body['assigned_manager_id'] == manager['id']


def test_create_property_validation(client, admin_headers):
    response = client.post('/api/properties', headers=admin_headers, json=property_payload(
        type='castle', number_of_rental_units=0, name='',
    ))

    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert set(errors) >= {'type', 'number_of_rental_units', 'name'}


def test_accountant_cannot_create_property(client, accountant):
    response = client.post('/api/properties', headers=accountant['headers'], json=property_payload())

    assert response.status_code == 403


def test_get_missing_property(client, admin_headers):
    response = client.get('/api/properties/999', headers=admin_headers)

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Property not found'


def test_manager_only_sees_assigned_properties(client, factory, manager):
    own_id = factory.property(name='Managed', assigned_manager_id=manager['id'])
    other_id = factory.property(name='Someone Else')

    response = client.get('/api/properties', headers=manager['headers'])

    assert response.status_code == 200
    assert [p['id'] for p in response.get_json()['properties']] == [own_id]
    assert client.get(f'/api/properties/{other_id}', headers=manager['headers']).status_code == 403


def test_list_properties_syncs_status(app, client, admin_headers, occupied_unit, factory):
    factory.unit(occupied_unit['property_id'])

    response = client.get('/api/properties', headers=admin_headers)

    assert response.get_json()['properties'][0]['status'] == 'partially_occupied'
    with app.app_context():
        assert db.session.get(Property, occupied_unit['property_id']).status == 'partially_occupied'


def test_update_property_cannot_shrink_below_existing_units(client, admin_headers, factory):
    property_id = factory.property()
    factory.unit(property_id)
    factory.unit(property_id)

    response = client.put(f'/api/properties/{property_id}', headers=admin_headers,
                          json={'number_of_rental_units': 1})

    assert response.status_code == 400
    assert response.get_json()['errors']['number_of_rental_units'] == [
        'The property already has 2 rental units.'
    ]


def test_update_property(client, admin_headers, factory):
    property_id = factory.property()

    response = client.put(f'/api/properties/{property_id}', headers=admin_headers,
                          json={'name': 'Renamed Residence', 'status': 'renovation'})

    assert response.status_code == 200
    body = response.get_json()['property']
    assert body['name'] == 'Renamed Residence'
    assert body['status'] == 'renovation'


def test_delete_property_with_occupied_units(client, admin_headers, occupied_unit):
    response = client.delete(f"/api/properties/{occupied_unit['property_id']}", headers=admin_headers)

    assert response.status_code == 400


def test_delete_property_removes_units(app, client, admin_headers, factory):
    property_id = factory.property()
    factory.unit(property_id)

    response = client.delete(f'/api/properties/{property_id}', headers=admin_headers)

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Property, property_id) is None


def test_property_capacity(client, admin_headers, factory):
    property_id = factory.property(number_of_rental_units=3, bedrooms=5, bathrooms=2)
    factory.unit(property_id, unit_details={'numberOfRooms': 3, 'numberOfToilets': 2})

    response = client.get(f'/api/properties/{property_id}/capacity', headers=admin_headers)

    assert response.status_code == 200
    capacity = response.get_json()['capacity']
    assert capacity['current'] == {'totalUnits': 1, 'totalRooms': 3, 'totalToilets': 2}
    assert capacity['remaining'] == {'units': 2, 'rooms': 2, 'toilets': 0}
    assert capacity['canAddMore']['toilets'] is False
