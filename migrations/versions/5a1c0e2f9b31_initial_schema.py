"""initial schema

Revision ID: 5a1c0e2f9b31
Revises:
Create Date: 2026-10-19 09:12:44.118204

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5a1c0e2f9b31'
down_revision = None
branch_labels = None
depends_on = None


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade():
    op.create_table('roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('permissions', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('roles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_roles_name'), ['name'], unique=True)
        batch_op.create_index(batch_op.f('ix_roles_is_active'), ['is_active'], unique=False)

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile', sa.String(length=20), nullable=True),
        sa.Column('id_card_number', sa.String(length=50), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=True),
        sa.Column('legacy_role', sa.String(length=30), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('login_attempts', sa.Integer(), nullable=True),
        sa.Column('lock_until', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_role_id'), ['role_id'], unique=False)

    op.create_table('properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('island', sa.String(length=100), nullable=False),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('number_of_floors', sa.Integer(), nullable=False),
        sa.Column('number_of_rental_units', sa.Integer(), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=False),
        sa.Column('bathrooms', sa.Integer(), nullable=False),
        sa.Column('square_feet', sa.Integer(), nullable=True),
        sa.Column('year_built', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=True),
        sa.Column('photos', sa.JSON(), nullable=True),
        sa.Column('amenities', sa.JSON(), nullable=True),
        sa.Column('assigned_manager_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['assigned_manager_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('properties', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_properties_city'), ['city'], unique=False)
        batch_op.create_index(batch_op.f('ix_properties_island'), ['island'], unique=False)
        batch_op.create_index(batch_op.f('ix_properties_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_properties_assigned_manager_id'), ['assigned_manager_id'],
                              unique=False)

    op.create_table('tenants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('personal_info', sa.JSON(), nullable=False),
        sa.Column('contact_info', sa.JSON(), nullable=False),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('employment_info', sa.JSON(), nullable=True),
        sa.Column('financial_info', sa.JSON(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('lease_start_date', sa.Date(), nullable=True),
        sa.Column('lease_end_date', sa.Date(), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('tenants', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_tenants_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_tenants_first_name'), ['first_name'], unique=False)
        batch_op.create_index(batch_op.f('ix_tenants_last_name'), ['last_name'], unique=False)
        batch_op.create_index(batch_op.f('ix_tenants_email'), ['email'], unique=False)

    op.create_table('rental_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('unit_number', sa.String(length=50), nullable=False),
        sa.Column('floor_number', sa.Integer(), nullable=False),
        sa.Column('unit_details', sa.JSON(), nullable=True),
        sa.Column('financial', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('move_in_date', sa.Date(), nullable=True),
        sa.Column('lease_end_date', sa.Date(), nullable=True),
        sa.Column('amenities', sa.JSON(), nullable=True),
        sa.Column('photos', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'unit_number', name='uq_rental_units_property_unit_number')
    )
    with op.batch_alter_table('rental_units', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_rental_units_property_id'), ['property_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rental_units_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_rental_units_tenant_id'), ['tenant_id'], unique=False)

    op.create_table('assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('brand', sa.String(length=50), nullable=True),
        sa.Column('serial_no', sa.String(length=100), nullable=True),
        sa.Column('category', sa.String(length=30), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('maintenance_notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('assets', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_assets_serial_no'), ['serial_no'], unique=False)
        batch_op.create_index(batch_op.f('ix_assets_category'), ['category'], unique=False)
        batch_op.create_index(batch_op.f('ix_assets_status'), ['status'], unique=False)

    op.create_table('rental_unit_assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rental_unit_id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('assigned_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('maintenance_notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.ForeignKeyConstraint(['rental_unit_id'], ['rental_units.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('rental_unit_assets', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_rental_unit_assets_rental_unit_id'), ['rental_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rental_unit_assets_asset_id'), ['asset_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rental_unit_assets_is_active'), ['is_active'], unique=False)
        batch_op.create_index(batch_op.f('ix_rental_unit_assets_status'), ['status'], unique=False)

    op.create_table('maintenance_costs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rental_unit_asset_id', sa.Integer(), nullable=False),
        sa.Column('repair_cost', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('attached_bills', sa.JSON(), nullable=True),
        sa.Column('repair_date', sa.Date(), nullable=True),
        sa.Column('repair_provider', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['rental_unit_asset_id'], ['rental_unit_assets.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('maintenance_costs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_maintenance_costs_rental_unit_asset_id'), ['rental_unit_asset_id'],
                              unique=False)
        batch_op.create_index(batch_op.f('ix_maintenance_costs_status'), ['status'], unique=False)

    op.create_table('maintenance_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('rental_unit_id', sa.Integer(), nullable=True),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('priority', sa.String(length=10), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('request_date', sa.Date(), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.DateTime(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('actual_cost', sa.Numeric(precision=12, scale=2), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id']),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.ForeignKeyConstraint(['rental_unit_id'], ['rental_units.id']),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('maintenance_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_maintenance_requests_property_id'), ['property_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_maintenance_requests_rental_unit_id'), ['rental_unit_id'],
                              unique=False)
        batch_op.create_index(batch_op.f('ix_maintenance_requests_tenant_id'), ['tenant_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_maintenance_requests_priority'), ['priority'], unique=False)
        batch_op.create_index(batch_op.f('ix_maintenance_requests_status'), ['status'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('rental_unit_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('payment_type', sa.String(length=50), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.ForeignKeyConstraint(['rental_unit_id'], ['rental_units.id']),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payments_tenant_id'), ['tenant_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payments_property_id'), ['property_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payments_reference_number'), ['reference_number'], unique=False)
        batch_op.create_index(batch_op.f('ix_payments_status'), ['status'], unique=False)

    for table in ('payment_types', 'payment_modes'):
        op.create_table(table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=True),
            *timestamps(),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name')
        )
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{table}_is_active'), ['is_active'], unique=False)

    op.create_table('currencies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=3), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('symbol', sa.String(length=10), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(precision=18, scale=6), nullable=False),
        sa.Column('is_base', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('decimal_places', sa.Integer(), nullable=True),
        sa.Column('thousands_separator', sa.String(length=1), nullable=True),
        sa.Column('decimal_separator', sa.String(length=1), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('currencies', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_currencies_code'), ['code'], unique=True)
        batch_op.create_index(batch_op.f('ix_currencies_is_active'), ['is_active'], unique=False)

    op.create_table('payment_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_type_id', sa.Integer(), nullable=False),
        sa.Column('payment_mode_id', sa.Integer(), nullable=False),
        sa.Column('paid_date', sa.Date(), nullable=False),
        sa.Column('paid_by', sa.String(length=255), nullable=True),
        sa.Column('mobile_no', sa.String(length=20), nullable=True),
        sa.Column('blaz_no', sa.String(length=100), nullable=True),
        sa.Column('account_name', sa.String(length=255), nullable=True),
        sa.Column('account_no', sa.String(length=100), nullable=True),
        sa.Column('bank', sa.String(length=100), nullable=True),
        sa.Column('cheque_no', sa.String(length=100), nullable=True),
        sa.Column('currency_id', sa.Integer(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
        sa.ForeignKeyConstraint(['currency_id'], ['currencies.id']),
        sa.ForeignKeyConstraint(['payment_mode_id'], ['payment_modes.id']),
        sa.ForeignKeyConstraint(['payment_type_id'], ['payment_types.id']),
        sa.ForeignKeyConstraint(['unit_id'], ['rental_units.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('payment_records', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_records_unit_id'), ['unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_records_payment_type_id'), ['payment_type_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_records_payment_mode_id'), ['payment_mode_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_records_is_active'), ['is_active'], unique=False)

    op.create_table('rent_invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=100), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('rental_unit_id', sa.Integer(), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('rent_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('late_fee', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_details', sa.JSON(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id']),
        sa.ForeignKeyConstraint(['rental_unit_id'], ['rental_units.id']),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('rent_invoices', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_rent_invoices_invoice_number'), ['invoice_number'], unique=True)
        batch_op.create_index(batch_op.f('ix_rent_invoices_tenant_id'), ['tenant_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rent_invoices_property_id'), ['property_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rent_invoices_rental_unit_id'), ['rental_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_rent_invoices_invoice_date'), ['invoice_date'], unique=False)
        batch_op.create_index(batch_op.f('ix_rent_invoices_status'), ['status'], unique=False)

    op.create_table('settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key')
    )

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=True),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_resource_type'), ['resource_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_created_at'), ['created_at'], unique=False)


def downgrade():
    for table in ('audit_logs', 'settings', 'rent_invoices', 'payment_records', 'currencies', 'payment_modes',
                  'payment_types', 'payments', 'maintenance_requests', 'maintenance_costs', 'rental_unit_assets',
                  'assets', 'rental_units', 'tenants', 'properties', 'users', 'roles'):
        op.drop_table(table)
