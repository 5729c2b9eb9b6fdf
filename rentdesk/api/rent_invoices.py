import logging
from datetime import date
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from sqlalchemy import extract
from rentdesk import db
from rentdesk.models.audit_log import AuditLog
from rentdesk.models.property import Property
from rentdesk.models.rent_invoice import RentInvoice, INVOICE_STATUSES
from rentdesk.models.rental_unit import RentalUnit
from rentdesk.models.setting import Setting
from rentdesk.models.tenant import Tenant
from rentdesk.services.invoice_service import InvoiceService
from rentdesk.utils.decorators import active_user_required, roles_required, admin_required, get_current_user
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields, sanitize_string
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_int, check_number, check_choice, check_date,
    check_mapping, check_exists,
)

logger = logging.getLogger(__name__)

rent_invoices_bp = Blueprint('rent_invoices', __name__)

finance_required = roles_required('admin', 'property_manager', 'accountant')


def _validate_invoice(data, existing=None):
    creating = existing is None
    errors = {}
    cleaned = {
        'tenant_id': check_int(data, 'tenant_id', errors, required=creating, minimum=1),
        'property_id': check_int(data, 'property_id', errors, required=creating, minimum=1),
        'rental_unit_id': check_int(data, 'rental_unit_id', errors, required=creating, minimum=1),
        'invoice_date': check_date(data, 'invoice_date', errors, required=creating),
        'due_date': check_date(data, 'due_date', errors, required=creating),
        'rent_amount': check_number(data, 'rent_amount', errors, required=creating, minimum=0),
        'late_fee': check_number(data, 'late_fee', errors, minimum=0),
        'currency': check_string(data, 'currency', errors, max_length=3),
        'status': check_choice(data, 'status', INVOICE_STATUSES, errors),
        'paid_date': check_date(data, 'paid_date', errors),
        'notes': check_string(data, 'notes', errors),
        'payment_details': check_mapping(data, 'payment_details', errors, label='payment details'),
    }

    check_exists(Tenant, cleaned['tenant_id'], 'tenant_id', errors, label='tenant')
    check_exists(Property, cleaned['property_id'], 'property_id', errors, label='property')
    unit = check_exists(RentalUnit, cleaned['rental_unit_id'], 'rental_unit_id', errors, label='rental unit')
    cleaned['unit'] = unit

    property_id = cleaned['property_id'] or (existing.property_id if existing else None)
    if unit is not None and property_id and unit.property_id != property_id:
        add_error(errors, 'rental_unit_id', 'The rental unit does not belong to the selected property.')

    invoice_date = cleaned['invoice_date'] or (existing.invoice_date if existing else None)
    due_date = cleaned['due_date'] or (existing.due_date if existing else None)
    if invoice_date and due_date and due_date <= invoice_date and 'due_date' not in errors:
        add_error(errors, 'due_date', 'The due date must be a date after invoice date.')

    return cleaned, errors


def _validate_generation(data):
    errors = {}
    month = check_int(data, 'month', errors, required=True, minimum=1, maximum=12)
    year = check_int(data, 'year', errors, required=True, minimum=2020)
    offset = check_int(data, 'due_date_offset', errors, minimum=1, maximum=31, label='due date offset')
    if offset is None:
        offset = Setting.get_int('rent_due_days', 7)
    return month, year, offset, errors


@rent_invoices_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_rent_invoices():
    try:
        status = request.args.get('status', '').strip()
        month = request.args.get('month', type=int)
        year = request.args.get('year', type=int)
        tenant_id = request.args.get('tenant_id', type=int)

        query = RentInvoice.query

        if status and status != 'all':
            query = query.filter(RentInvoice.status == status)
        if month:
            query = query.filter(extract('month', RentInvoice.invoice_date) == month)
        if year:
            query = query.filter(extract('year', RentInvoice.invoice_date) == year)
        if tenant_id:
            query = query.filter(RentInvoice.tenant_id == tenant_id)

        query = query.order_by(RentInvoice.invoice_date.desc(), RentInvoice.id.desc())
        invoices, meta = paginate(query)

        return jsonify({
            'rent_invoices': [i.to_dict() for i in invoices],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch rent invoices: %s', e)
        return jsonify({'message': 'Failed to fetch rent invoices', 'error': str(e)}), 500


@rent_invoices_bp.route('/statistics', methods=['GET'])
@jwt_required()
@active_user_required
def get_rent_invoice_statistics():
    try:
        return jsonify({'statistics': InvoiceService.statistics()}), 200

    except Exception as e:
        logger.error('Failed to compute invoice statistics: %s', e)
        return jsonify({'message': 'Failed to fetch invoice statistics', 'error': str(e)}), 500


@rent_invoices_bp.route('/<int:invoice_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_rent_invoice(invoice_id):
    try:
        invoice = db.session.get(RentInvoice, invoice_id)
        if not invoice:
            return jsonify({'message': 'Rent invoice not found'}), 404

        return jsonify({'rent_invoice': invoice.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch rent invoice %s: %s', invoice_id, e)
        return jsonify({'message': 'Failed to fetch rent invoice', 'error': str(e)}), 500


@rent_invoices_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@finance_required
def create_rent_invoice():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['notes'])
        cleaned, errors = _validate_invoice(data)
        if errors:
            return validation_response(errors)

        invoice = RentInvoice(
            invoice_number=InvoiceService.next_invoice_number(cleaned['invoice_date'].year),
            tenant_id=cleaned['tenant_id'],
            property_id=cleaned['property_id'],
            rental_unit_id=cleaned['rental_unit_id'],
            invoice_date=cleaned['invoice_date'],
            due_date=cleaned['due_date'],
            rent_amount=cleaned['rent_amount'],
            late_fee=cleaned['late_fee'] or 0,
            currency=(cleaned['currency'] or cleaned['unit'].currency).upper(),
            status=cleaned['status'] or 'pending',
            notes=cleaned['notes'],
            payment_details=cleaned['payment_details'],
        )
        invoice.recalculate_total()
        if invoice.status == 'paid':
            invoice.paid_date = cleaned['paid_date'] or date.today()

        db.session.add(invoice)
        db.session.commit()

        return jsonify({
            'message': 'Rent invoice created successfully',
            'rent_invoice': invoice.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create rent invoice: %s', e)
        return jsonify({'message': 'Failed to create rent invoice', 'error': str(e)}), 500


@rent_invoices_bp.route('/<int:invoice_id>', methods=['PUT'])
@jwt_required()
@finance_required
def update_rent_invoice(invoice_id):
    try:
        invoice = db.session.get(RentInvoice, invoice_id)
        if not invoice:
            return jsonify({'message': 'Rent invoice not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, ['notes'])
        cleaned, errors = _validate_invoice(data, invoice)
        if errors:
            return validation_response(errors)

        for field in ('tenant_id', 'property_id', 'rental_unit_id', 'invoice_date', 'due_date',
                      'rent_amount', 'late_fee', 'status', 'paid_date'):
            if cleaned[field] is not None:
                setattr(invoice, field, cleaned[field])
        if cleaned['currency']:
            invoice.currency = cleaned['currency'].upper()
        for field in ('notes', 'payment_details'):
            if field in data:
                setattr(invoice, field, cleaned[field])

        if invoice.status == 'paid' and not invoice.paid_date:
            invoice.paid_date = date.today()
        if cleaned['rent_amount'] is not None or cleaned['late_fee'] is not None:
            invoice.recalculate_total()

        db.session.commit()

        return jsonify({
            'message': 'Rent invoice updated successfully',
            'rent_invoice': invoice.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update rent invoice %s: %s', invoice_id, e)
        return jsonify({'message': 'Failed to update rent invoice', 'error': str(e)}), 500


@rent_invoices_bp.route('/<int:invoice_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_rent_invoice(invoice_id):
    try:
        invoice = db.session.get(RentInvoice, invoice_id)
        if not invoice:
            return jsonify({'message': 'Rent invoice not found'}), 404

        db.session.delete(invoice)
        db.session.commit()

        return jsonify({'message': 'Rent invoice deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete rent invoice %s: %s', invoice_id, e)
        return jsonify({'message': 'Failed to delete rent invoice', 'error': str(e)}), 500


@rent_invoices_bp.route('/generate-monthly', methods=['POST'])
@jwt_required()
@finance_required
def generate_monthly_invoices():
    """Invoice every occupied unit for a month, skipping units already invoiced"""
    try:
        data = request.get_json(silent=True) or {}
        month, year, offset, errors = _validate_generation(data)
        if errors:
            return validation_response(errors)

        invoices, generation_errors = InvoiceService.generate_monthly_invoices(month, year, offset)

        AuditLog.log(
            'invoices.generated',
            user_id=get_current_user().id,
            resource_type='rent_invoice',
            details={
                'month': month,
                'year': year,
                'generated': len(invoices),
                'errors': len(generation_errors),
            }
        )
        db.session.commit()

        return jsonify({
            'message': f'Generated {len(invoices)} invoices for {year}-{month:02d}',
            'generated_count': len(invoices),
            'invoices': [i.to_dict() for i in invoices],
            'errors': generation_errors
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to generate monthly invoices: %s', e)
        return jsonify({'message': 'Failed to generate monthly invoices', 'error': str(e)}), 500


@rent_invoices_bp.route('/<int:invoice_id>/mark-paid', methods=['PATCH'])
@jwt_required()
@finance_required
def mark_rent_invoice_paid(invoice_id):
    try:
        invoice = db.session.get(RentInvoice, invoice_id)
        if not invoice:
            return jsonify({'message': 'Rent invoice not found'}), 404

        data = request.get_json(silent=True) or {}
        errors = {}
        payment_details = check_mapping(data, 'payment_details', errors, label='payment details')
        notes = sanitize_string(check_string(data, 'notes', errors))
        if errors:
            return validation_response(errors)

        user = get_current_user()
        try:
            record = InvoiceService.mark_paid(invoice, payment_details, notes, user_id=user.id)
        except ValueError as e:
            return jsonify({'message': str(e)}), 400

        AuditLog.log(
            'invoice.paid',
            user_id=user.id,
            resource_type='rent_invoice',
            resource_id=invoice.id,
            details={'invoice_number': invoice.invoice_number, 'amount': float(invoice.total_amount)}
        )
        db.session.commit()

        response = {
            'message': 'Invoice marked as paid',
            'rent_invoice': invoice.to_dict()
        }
        if record is not None:
            response['payment_record'] = record.to_dict()
        return jsonify(response), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to mark invoice %s as paid: %s', invoice_id, e)
        return jsonify({'message': 'Failed to mark invoice as paid', 'error': str(e)}), 500


@rent_invoices_bp.route('/mark-overdue', methods=['POST'])
@jwt_required()
@finance_required
def mark_overdue_invoices():
    try:
        fee_per_day = float(current_app.config.get('LATE_FEE_PER_DAY', 10))
        count = InvoiceService.mark_overdue_invoices(fee_per_day)
        db.session.commit()

        return jsonify({
            'message': f'{count} invoices marked as overdue',
            'updated_count': count
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to mark overdue invoices: %s', e)
        return jsonify({'message': 'Failed to mark overdue invoices', 'error': str(e)}), 500
