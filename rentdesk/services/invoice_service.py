"""
Invoice Service - business logic for rent invoices.

Covers invoice numbering, monthly generation over occupied units,
payment, overdue handling and summary statistics. Functions add to the
session and leave committing to the caller.
"""
import calendar
import logging
import uuid
from datetime import date, timedelta

from sqlalchemy import func

from rentdesk import db
from rentdesk.models.currency import Currency
from rentdesk.models.payment_catalog import PaymentMode, PaymentType
from rentdesk.models.payment_record import PaymentRecord
from rentdesk.models.rent_invoice import RentInvoice
from rentdesk.models.rental_unit import RentalUnit

logger = logging.getLogger(__name__)


def month_bounds(year, month):
    """First and last day of a month"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class InvoiceService:
    """Service class for rent invoice business logic."""

    @staticmethod
    def next_invoice_number(year=None):
        """Sequential number of the form INV-2025-000042"""
        year = year or date.today().year
        sequence = RentInvoice.query.count() + 1
        while True:
            number = f'INV-{year}-{sequence:06d}'
            if not RentInvoice.query.filter_by(invoice_number=number).first():
                return number
            sequence += 1

    @staticmethod
    def invoice_exists_for_month(tenant_id, rental_unit_id, year, month):
        start, end = month_bounds(year, month)
        return RentInvoice.query.filter(
            RentInvoice.tenant_id == tenant_id,
            RentInvoice.rental_unit_id == rental_unit_id,
            RentInvoice.invoice_date >= start,
            RentInvoice.invoice_date <= end,
        ).first() is not None

    @staticmethod
    def generate_monthly_invoices(month, year, due_date_offset=7):
        """
        Create one pending invoice per occupied unit for the given month.

        A unit that already has an invoice for its tenant in that month is
        skipped and reported in the errors list, as is any unit that fails
        to invoice. Returns (invoices, errors).
        """
        invoice_date = date(year, month, 1)
        due_date = invoice_date + timedelta(days=due_date_offset)

        units = RentalUnit.query.filter(
            RentalUnit.status == 'occupied',
            RentalUnit.tenant_id.isnot(None),
            RentalUnit.is_active.is_(True),
        ).order_by(RentalUnit.property_id, RentalUnit.id).all()

        logger.info('Generating rent invoices for %04d-%02d over %d occupied units', year, month, len(units))

        invoices = []
        errors = []

        for unit in units:
            property_name = unit.property.name if unit.property else 'Unknown property'
            label = f'{property_name} - Unit {unit.unit_number}'

            if InvoiceService.invoice_exists_for_month(unit.tenant_id, unit.id, year, month):
                errors.append(f'Invoice already exists for {label}')
                continue

            try:
                rent_amount = unit.rent_amount
                invoice = RentInvoice(
                    invoice_number=f'INV-{year}-{month:02d}-{unit.id}-{uuid.uuid4().hex[:8].upper()}',
                    tenant_id=unit.tenant_id,
                    property_id=unit.property_id,
                    rental_unit_id=unit.id,
                    invoice_date=invoice_date,
                    due_date=due_date,
                    rent_amount=rent_amount,
                    late_fee=0,
                    total_amount=rent_amount,
                    currency=unit.currency,
                    status='pending',
                    notes=f'Monthly rent for {label}',
                )
                # a failing insert only rolls back its own savepoint
                with db.session.begin_nested():
                    db.session.add(invoice)
                invoices.append(invoice)
            except Exception as e:
                logger.error('Failed to generate invoice for %s: %s', label, e)
                errors.append(f'Failed to generate invoice for {label}: {e}')

        logger.info('Generated %d invoices, %d skipped or failed', len(invoices), len(errors))
        return invoices, errors

    @staticmethod
    def mark_paid(invoice, payment_details=None, notes=None, user_id=None):
        """
        Mark an invoice paid. When payment details name a payment type and
        mode, a matching payment record is created for the unit.
        """
        if invoice.status == 'paid':
            raise ValueError('Invoice is already paid')
        if invoice.status == 'cancelled':
            raise ValueError('Cancelled invoices cannot be paid')

        payment_type = payment_mode = None
        if payment_details:
            type_id = payment_details.get('payment_type_id')
            mode_id = payment_details.get('payment_mode_id')
            payment_type = db.session.get(PaymentType, type_id) if type_id else None
            payment_mode = db.session.get(PaymentMode, mode_id) if mode_id else None
            if not payment_type or not payment_mode:
                raise ValueError('Payment details require a valid payment_type_id and payment_mode_id')

        invoice.mark_as_paid(payment_details=payment_details, notes=notes)

        record = None
        if payment_details:
            currency = Currency.query.filter_by(code=invoice.currency).first()
            record = PaymentRecord(
                unit_id=invoice.rental_unit_id,
                amount=invoice.total_amount,
                payment_type_id=payment_type.id,
                payment_mode_id=payment_mode.id,
                paid_date=invoice.paid_date,
                paid_by=invoice.tenant.full_name if invoice.tenant else None,
                mobile_no=payment_details.get('mobile_no') or (invoice.tenant.phone if invoice.tenant else None),
                blaz_no=payment_details.get('reference_number'),
                account_name=payment_details.get('account_name'),
                account_no=payment_details.get('account_no'),
                bank=payment_details.get('bank'),
                cheque_no=payment_details.get('cheque_no'),
                currency_id=currency.id if currency else None,
                remarks=notes or f'Payment for invoice {invoice.invoice_number}',
                created_by_id=user_id,
                is_active=True,
            )
            db.session.add(record)

        logger.info('Invoice %s marked as paid', invoice.invoice_number)
        return record

    @staticmethod
    def calculate_late_fee(invoice, fee_per_day=10, today=None):
        """Days overdue times the daily fee; zero when not overdue"""
        return invoice.days_overdue(today) * fee_per_day

    @staticmethod
    def mark_overdue_invoices(fee_per_day=10, today=None):
        """Flip pending invoices past their due date to overdue and apply late fees"""
        today = today or date.today()
        invoices = RentInvoice.query.filter(
            RentInvoice.status.in_(['pending', 'overdue']),
            RentInvoice.due_date < today,
        ).all()

        for invoice in invoices:
            invoice.status = 'overdue'
            invoice.late_fee = InvoiceService.calculate_late_fee(invoice, fee_per_day, today)
            invoice.recalculate_total()

        logger.info('Marked %d invoices overdue', len(invoices))
        return len(invoices)

    @staticmethod
    def statistics(today=None):
        today = today or date.today()
        month_start, month_end = month_bounds(today.year, today.month)

        def count(status):
            return RentInvoice.query.filter_by(status=status).count()

        def total(statuses):
            value = db.session.query(func.coalesce(func.sum(RentInvoice.total_amount), 0)) \
                .filter(RentInvoice.status.in_(statuses)).scalar()
            return float(value or 0)

        return {
            'total_invoices': RentInvoice.query.count(),
            'pending_invoices': count('pending'),
            'paid_invoices': count('paid'),
            'overdue_invoices': count('overdue'),
            'current_month_invoices': RentInvoice.query.filter(
                RentInvoice.invoice_date >= month_start,
                RentInvoice.invoice_date <= month_end,
            ).count(),
            'total_pending_amount': total(['pending', 'overdue']),
            'total_paid_amount': total(['paid']),
        }
