"""
Pytest configuration and shared fixtures.

Each test gets a fresh app on an in-memory sqlite database. Fixtures that
create rows open their own app context and hand back ids, so requests made
through the test client never share flask.g with the setup code.
"""
from datetime import date

import pytest

from rentdesk import create_app, db
from rentdesk.api.auth import issue_token
from rentdesk.models import (
    User, Role, Property, RentalUnit, Tenant, Asset, RentalUnitAsset, PaymentType, PaymentMode,
    Currency, RentInvoice, PaymentRecord,
)


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'RATELIMIT_ENABLED': False,
        'JWT_SECRET_KEY': 'test-jwt-secret-key-at-least-32-characters',
        'SECRET_KEY': 'test-secret-key',
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'BCRYPT_LOG_ROUNDS': 4,
        'LATE_FEE_PER_DAY': 10,
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, name, email, role, password='password123', is_active=True):
    with app.app_context():
        user = User(name=name, email=email, legacy_role=role, is_active=is_active)
        user.set_password(password)
        user.role_id = Role.get_or_create(role).id
        db.session.add(user)
        db.session.commit()
        return {
            'id': user.id,
            'email': email,
            'password': password,
            'headers': {'Authorization': f'Bearer {issue_token(user)}'},
        }


@pytest.fixture
def admin(app):
    return make_user(app, 'Admin User', 'admin@example.com', 'admin')


@pytest.fixture
def manager(app):
    return make_user(app, 'Manager User', 'manager@example.com', 'property_manager')


@pytest.fixture
def accountant(app):
    return make_user(app, 'Accountant User', 'accountant@example.com', 'accountant')


@pytest.fixture
def admin_headers(admin):
    return admin['headers']


@pytest.fixture
def manager_headers(manager):
    return manager['headers']


class Factory:
    """Creates committed rows and returns their ids"""

    def __init__(self, app):
        self.app = app
        self._counter = 0

    def _next(self):
        self._counter += 1
        return self._counter

    def _save(self, obj):
        with self.app.app_context():
            db.session.add(obj)
            db.session.commit()
            return obj.id

    def property(self, **overrides):
        n = self._next()
        values = {
            'name': f'Sunset Residence {n}',
            'type': 'apartment',
            'street': f'{n} Majeedhee Magu',
            'city': 'Male',
            'island': 'Male',
            'number_of_floors': 3,
            'number_of_rental_units': 4,
            'bedrooms': 8,
            'bathrooms': 6,
            'status': 'vacant',
        }
        values.update(overrides)
        return self._save(Property(**values))

    def tenant(self, first_name='Aminath', last_name=None, email=None, **overrides):
        n = self._next()
        tenant = Tenant(
            personal_info={'firstName': first_name, 'lastName': last_name or f'Hassan{n}'},
            contact_info={'email': email or f'tenant{n}@example.com', 'phone': '+9607771234'},
            status=overrides.pop('status', 'active'),
            **overrides
        )
        tenant.sync_search_fields()
        return self._save(tenant)

    def unit(self, property_id, tenant_id=None, rent=8000, currency='MVR', **overrides):
        n = self._next()
        values = {
            'property_id': property_id,
            'unit_number': f'U{n}',
            'floor_number': 1,
            'unit_details': {'numberOfRooms': 2, 'numberOfToilets': 1},
            'financial': {'rentAmount': rent, 'depositAmount': rent * 2, 'currency': currency},
            'status': 'available',
            'is_active': True,
        }
        values.update(overrides)
        unit = RentalUnit(**values)
        if tenant_id:
            unit.assign_tenant(tenant_id, date(2024, 1, 1))
        return self._save(unit)

    def asset(self, **overrides):
        n = self._next()
        values = {'name': f'Air Conditioner {n}', 'brand': 'Daikin', 'category': 'appliance', 'status': 'working'}
        values.update(overrides)
        return self._save(Asset(**values))

    def assignment(self, unit_id, asset_id, **overrides):
        values = {'rental_unit_id': unit_id, 'asset_id': asset_id, 'quantity': 1, 'status': 'working',
                  'is_active': True}
        values.update(overrides)
        return self._save(RentalUnitAsset(**values))

    def payment_type(self, name='Rent'):
        return self._save(PaymentType(name=name, is_active=True))

    def payment_mode(self, name='Cash'):
        return self._save(PaymentMode(name=name, is_active=True))

    def currency(self, code='MVR', rate=1, is_base=False, **overrides):
        values = {'code': code, 'name': f'{code} currency', 'symbol': code, 'exchange_rate': rate,
                  'is_base': is_base, 'is_active': True, 'decimal_places': 2}
        values.update(overrides)
        return self._save(Currency(**values))

    def invoice(self, tenant_id, property_id, unit_id, invoice_date, due_date, rent=8000, **overrides):
        n = self._next()
        values = {
            'invoice_number': f'INV-TEST-{n:04d}',
            'tenant_id': tenant_id,
            'property_id': property_id,
            'rental_unit_id': unit_id,
            'invoice_date': invoice_date,
            'due_date': due_date,
            'rent_amount': rent,
            'late_fee': 0,
            'total_amount': rent,
            'currency': 'MVR',
            'status': 'pending',
        }
        values.update(overrides)
        return self._save(RentInvoice(**values))

    def payment_record(self, unit_id, payment_type_id, payment_mode_id, amount=500, **overrides):
        values = {'unit_id': unit_id, 'payment_type_id': payment_type_id, 'payment_mode_id': payment_mode_id,
                  'amount': amount, 'paid_date': date(2025, 1, 5), 'is_active': True}
        values.update(overrides)
        return self._save(PaymentRecord(**values))


@pytest.fixture
def factory(app):
    return Factory(app)


@pytest.fixture
def occupied_unit(factory):
    """A property with one tenant-occupied unit; returns the related ids"""
    property_id = factory.property(name='Coral View')
    tenant_id = factory.tenant(first_name='Ahmed', last_name='Ibrahim')
    unit_id = factory.unit(property_id, tenant_id=tenant_id, rent=9500, unit_number='A1')
    return {'property_id': property_id, 'tenant_id': tenant_id, 'unit_id': unit_id}
