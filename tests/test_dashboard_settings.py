from datetime import date

from rentdesk import db
from rentdesk.models import MaintenanceRequest, AuditLog


def test_dashboard_statistics(app, client, manager_headers, occupied_unit, factory):
    factory.unit(occupied_unit['property_id'])
    factory.unit(occupied_unit['property_id'])
    factory.invoice(occupied_unit['tenant_id'], occupied_unit['property_id'], occupied_unit['unit_id'],
                    date(2025, 1, 1), date(2025, 1, 8), rent=9500, status='paid')
    with app.app_context():
        for priority, status in (('high', 'pending'), ('high', 'completed'), ('low', 'pending')):
            db.session.add(MaintenanceRequest(
                title='Aircon', description='Aircon is not cooling', property_id=occupied_unit['property_id'],
                priority=priority, status=status,
            ))
        db.session.commit()

    response = client.get('/api/dashboard/statistics', headers=manager_headers)

    assert response.status_code == 200
    stats = response.get_json()['statistics']
    assert stats['total_properties'] == 1
    assert stats['total_tenants'] == 1
    assert stats['total_rental_units'] == 3
    assert stats['occupied_units'] == 1
    assert stats['available_units'] == 2
    assert stats['occupancy_rate'] == 33.33
    assert stats['total_revenue'] == 9500
    assert stats['pending_maintenance'] == 2
    assert stats['urgent_maintenance'] == 1


def test_dashboard_statistics_without_units(client, admin_headers):
    stats = client.get('/api/dashboard/statistics', headers=admin_headers).get_json()['statistics']

    assert stats['occupancy_rate'] == 0
    assert stats['total_revenue'] == 0


def test_recent_activity_is_capped(client, admin_headers, factory):
    for _ in range(7):
        factory.property()

    body = client.get('/api/dashboard/recent-activity', headers=admin_headers).get_json()

    assert len(body['recent_properties']) == 5
    assert body['recent_tenants'] == []


def test_dropdowns_are_public(client, factory):
    factory.currency('MVR', 1, is_base=True, symbol='Rf')
    factory.currency('XYZ', 2, is_active=False)

    response = client.get('/api/settings/dropdowns')

    assert response.status_code == 200
    options = response.get_json()['dropdownOptions']
    assert 'Male' in options['cities']
    assert 'Hulhumale' in options['islands']['Male']
    assert options['currencies'] == [{'code': 'MVR', 'name': 'MVR currency', 'symbol': 'Rf'}]
    assert options['userRoles'] == ['admin', 'property_manager', 'accountant']


def test_settings_defaults_and_update(client, admin_headers):
    settings = client.get('/api/settings', headers=admin_headers).get_json()['settings']
    assert settings['default_currency'] == 'MVR'

    response = client.put('/api/settings', headers=admin_headers,
                          json={'auto_generate_rent': True, 'rent_due_days': 10, 'company_name': '<b>Acme</b>'})

    assert response.status_code == 200
    settings = response.get_json()['settings']
    assert settings['auto_generate_rent'] == 'true'
    assert settings['rent_due_days'] == '10'
    assert settings['company_name'] == 'Acme'


def test_settings_require_payload(client, admin_headers):
    assert client.put('/api/settings', headers=admin_headers, json={}).status_code == 400


def test_settings_are_admin_only(client, manager_headers):
    assert client.get('/api/settings', headers=manager_headers).status_code == 403


def test_audit_log_listing(app, client, admin, manager):
    with app.app_context():
        AuditLog.log('user_created', user_id=admin['id'], resource_type='user', resource_id=manager['id'])
        AuditLog.log('role_created', user_id=admin['id'], resource_type='role', resource_id=1)
        db.session.commit()

    response = client.get('/api/audit?resource_type=user', headers=admin['headers'])

    assert response.status_code == 200
    body = response.get_json()
    assert [log['action'] for log in body['logs']] == ['user_created']
    assert body['logs'][0]['user_name'] == 'Admin User'
    assert body['distinct_actions'] == ['role_created', 'user_created']
    assert body['pagination']['per_page'] == 50


def test_audit_log_rejects_bad_dates(client, admin_headers):
    assert client.get('/api/audit?date_from=yesterday', headers=admin_headers).status_code == 400


def test_audit_log_is_admin_only(client, manager_headers):
    assert client.get('/api/audit', headers=manager_headers).status_code == 403
