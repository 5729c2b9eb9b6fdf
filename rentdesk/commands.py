"""
Flask CLI commands for scheduled and one-off maintenance jobs.

    flask --app app generate-invoices --month 7 --year 2025
    flask --app app mark-overdue
    flask --app app seed-reference-data
"""
import logging
from datetime import date

import click
from flask import current_app

from rentdesk import db
from rentdesk.models.audit_log import AuditLog
from rentdesk.models.currency import Currency
from rentdesk.models.payment_catalog import PaymentType, PaymentMode
from rentdesk.models.role import Role
from rentdesk.models.setting import Setting
from rentdesk.models.user import USER_ROLES
from rentdesk.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

# code, name, symbol, rate against MVR, decimal places
SEED_CURRENCIES = [
    ('MVR', 'Maldivian Rufiyaa', 'Rf', 1, 2),
    ('USD', 'US Dollar', '$', 0.065, 2),
    ('EUR', 'Euro', '€', 0.06, 2),
    ('GBP', 'British Pound', '£', 0.051, 2),
    ('INR', 'Indian Rupee', '₹', 5.42, 2),
    ('JPY', 'Japanese Yen', '¥', 9.7, 0),
]

SEED_PAYMENT_TYPES = ['Rent', 'Advance', 'Deposit', 'Partial Payment', 'Late Fine', 'Maintenance',
                      'Utilities', 'Other']

SEED_PAYMENT_MODES = ['Cash', 'Cheque', 'Card', 'Bank Transfer', 'Account Deposit', 'Mobile Payment', 'Other']


def register_commands(app):

    @app.cli.command('generate-invoices')
    @click.option('--month', type=click.IntRange(1, 12), default=None, help='Month to invoice (default: current)')
    @click.option('--year', type=click.IntRange(2020, None), default=None, help='Year to invoice (default: current)')
    @click.option('--due-offset', type=click.IntRange(1, 31), default=None,
                  help='Days after the 1st that invoices fall due (default: rent_due_days setting)')
    def generate_invoices(month, year, due_offset):
        """Generate rent invoices for every occupied unit."""
        today = date.today()
        month = month or today.month
        year = year or today.year
        if due_offset is None:
            due_offset = Setting.get_int('rent_due_days', 7)

        invoices, errors = InvoiceService.generate_monthly_invoices(month, year, due_offset)
        AuditLog.log(
            'invoices.generated',
            resource_type='rent_invoice',
            details={'month': month, 'year': year, 'generated': len(invoices), 'errors': len(errors),
                     'source': 'cli'}
        )
        db.session.commit()

        click.echo(f'Generated {len(invoices)} invoices for {year}-{month:02d}')
        for error in errors:
            click.echo(f'  skipped: {error}')

    @app.cli.command('mark-overdue')
    def mark_overdue():
        """Mark unpaid invoices past their due date as overdue and apply late fees."""
        fee_per_day = float(current_app.config.get('LATE_FEE_PER_DAY', 10))
        count = InvoiceService.mark_overdue_invoices(fee_per_day)
        db.session.commit()
        click.echo(f'{count} invoices marked as overdue')

    @app.cli.command('seed-reference-data')
    def seed_reference_data():
        """Create system roles, currencies, payment types and payment modes if missing."""
        created = 0

        for name in USER_ROLES:
            if not Role.query.filter_by(name=name).first():
                role = Role.get_or_create(name)
                role.is_system = True
                role.description = f'System role for {name.replace("_", " ")}s'
                created += 1

        base_code = current_app.config.get('DEFAULT_CURRENCY', 'MVR')
        for code, name, symbol, rate, places in SEED_CURRENCIES:
            if Currency.query.filter_by(code=code).first():
                continue
            db.session.add(Currency(code=code, name=name, symbol=symbol, exchange_rate=rate,
                                    decimal_places=places, is_active=True))
            created += 1
        db.session.flush()

        if not Currency.get_base():
            base = Currency.query.filter_by(code=base_code).first()
            if base:
                base.make_base()

        for model, names in ((PaymentType, SEED_PAYMENT_TYPES), (PaymentMode, SEED_PAYMENT_MODES)):
            for name in names:
                if not model.query.filter_by(name=name).first():
                    db.session.add(model(name=name, is_active=True))
                    created += 1

        db.session.commit()
        logger.info('Seeded %d reference rows', created)
        click.echo(f'Created {created} reference rows')
