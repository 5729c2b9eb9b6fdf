import logging
from datetime import date
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from rentdesk import db
from rentdesk.models.currency import Currency
from rentdesk.models.payment_catalog import PaymentType, PaymentMode
from rentdesk.models.payment_record import PaymentRecord
from rentdesk.models.property import Property
from rentdesk.models.rental_unit import RentalUnit
from rentdesk.models.tenant import Tenant
from rentdesk.utils.decorators import active_user_required, roles_required, get_current_user
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_int, check_number, check_choice, check_date,
    check_bool, check_exists,
)

logger = logging.getLogger(__name__)

payment_records_bp = Blueprint('payment_records', __name__)

RECORD_STATUSES = ['pending', 'completed', 'failed', 'cancelled']
TEXT_FIELDS = ['paid_by', 'account_name', 'bank', 'remarks', 'notes', 'reference_number']

finance_required = roles_required('admin', 'property_manager', 'accountant')


def _resolve_unit(cleaned, errors):
    """Unit given directly, or the unit the tenant occupies (optionally within a property)"""
    if cleaned['unit_id']:
        return check_exists(RentalUnit, cleaned['unit_id'], 'unit_id', errors, label='unit')

    tenant = check_exists(Tenant, cleaned['tenant_id'], 'tenant_id', errors, label='tenant')
    check_exists(Property, cleaned['property_id'], 'property_id', errors, label='property')
    if tenant is None:
        if 'tenant_id' not in errors:
            add_error(errors, 'unit_id', 'The unit id field is required when tenant id is not present.')
        return None

    query = tenant.rental_units
    if cleaned['property_id']:
        query = query.filter(RentalUnit.property_id == cleaned['property_id'])
    unit = query.order_by(RentalUnit.id.desc()).first()
    if unit is None:
        add_error(errors, 'tenant_id', 'The tenant has no rental unit for this payment.')
    return unit


def _validate_record(data, creating):
    errors = {}
    cleaned = {
        'unit_id': check_int(data, 'unit_id', errors, minimum=1),
        'tenant_id': check_int(data, 'tenant_id', errors, minimum=1),
        'property_id': check_int(data, 'property_id', errors, minimum=1),
        'payment_type_id': check_int(data, 'payment_type_id', errors, required=creating, minimum=1),
        'payment_mode_id': check_int(data, 'payment_mode_id', errors, required=creating, minimum=1),
        'amount': check_number(data, 'amount', errors, required=creating, minimum=0),
        'paid_date': check_date(data, 'paid_date', errors) or check_date(data, 'payment_date', errors),
        'paid_by': check_string(data, 'paid_by', errors, max_length=255),
        'mobile_no': check_string(data, 'mobile_no', errors, max_length=20),
        'reference_number': check_string(data, 'reference_number', errors, max_length=100)
        or check_string(data, 'blaz_no', errors, max_length=100),
        'account_name': check_string(data, 'account_name', errors, max_length=255),
        'account_no': check_string(data, 'account_no', errors, max_length=100),
        'bank': check_string(data, 'bank', errors, max_length=100),
        'cheque_no': check_string(data, 'cheque_no', errors, max_length=100),
        'currency_id': check_int(data, 'currency_id', errors, minimum=1),
        'remarks': check_string(data, 'remarks', errors) or check_string(data, 'notes', errors),
        'status': check_choice(data, 'status', RECORD_STATUSES, errors),
        'is_active': check_bool(data, 'is_active', errors),
    }

    check_exists(PaymentType, cleaned['payment_type_id'], 'payment_type_id', errors, label='payment type')
    check_exists(PaymentMode, cleaned['payment_mode_id'], 'payment_mode_id', errors, label='payment mode')
    check_exists(Currency, cleaned['currency_id'], 'currency_id', errors, label='currency')

    cleaned['unit'] = None
    if creating or cleaned['unit_id'] or cleaned['tenant_id']:
        cleaned['unit'] = _resolve_unit(cleaned, errors)

    return cleaned, errors


def _active_from(cleaned):
    if cleaned['status']:
        return cleaned['status'] not in ('failed', 'cancelled')
    return cleaned['is_active']


@payment_records_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_payment_records():
    try:
        unit_id = request.args.get('unit_id', type=int)
        payment_type_id = request.args.get('payment_type_id', type=int)
        payment_mode_id = request.args.get('payment_mode_id', type=int)
        status = request.args.get('status', '').strip()

        query = PaymentRecord.query
        if unit_id:
            query = query.filter(PaymentRecord.unit_id == unit_id)
        if payment_type_id:
            query = query.filter(PaymentRecord.payment_type_id == payment_type_id)
        if payment_mode_id:
            query = query.filter(PaymentRecord.payment_mode_id == payment_mode_id)
        if status == 'active':
            query = query.filter(PaymentRecord.is_active.is_(True))
        elif status == 'inactive':
            query = query.filter(PaymentRecord.is_active.is_(False))

        query = query.order_by(PaymentRecord.paid_date.desc(), PaymentRecord.id.desc())
        records, meta = paginate(query)

        return jsonify({
            'payment_records': [r.to_dict() for r in records],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch payment records: %s', e)
        return jsonify({'message': 'Failed to fetch payment records', 'error': str(e)}), 500


@payment_records_bp.route('/summary', methods=['GET'])
@jwt_required()
@active_user_required
def get_payment_records_summary():
    """Totals of active records grouped by payment mode"""
    try:
        rows = db.session.query(
            PaymentMode.name,
            func.count(PaymentRecord.id),
            func.coalesce(func.sum(PaymentRecord.amount), 0),
        ).join(PaymentRecord, PaymentRecord.payment_mode_id == PaymentMode.id) \
            .filter(PaymentRecord.is_active.is_(True)) \
            .group_by(PaymentMode.name).order_by(PaymentMode.name).all()

        by_mode = [
            {'payment_mode': name, 'count': count, 'total_amount': float(total)}
            for name, count, total in rows
        ]

        return jsonify({
            'summary': {
                'total_amount': sum(m['total_amount'] for m in by_mode),
                'total_records': sum(m['count'] for m in by_mode),
                'by_payment_mode': by_mode,
            }
        }), 200

    except Exception as e:
        logger.error('Failed to summarise payment records: %s', e)
        return jsonify({'message': 'Failed to fetch payment summary', 'error': str(e)}), 500


@payment_records_bp.route('/unit/<int:unit_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_unit_payment_records(unit_id):
    try:
        unit = db.session.get(RentalUnit, unit_id)
        if not unit:
            return jsonify({'message': 'Rental unit not found'}), 404

        records = unit.payment_records.order_by(PaymentRecord.paid_date.desc(), PaymentRecord.id.desc()).all()

        return jsonify({'payment_records': [r.to_dict() for r in records]}), 200

    except Exception as e:
        logger.error('Failed to fetch payment records for unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to fetch payment records', 'error': str(e)}), 500


@payment_records_bp.route('/<int:record_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_payment_record(record_id):
    try:
        record = db.session.get(PaymentRecord, record_id)
        if not record:
            return jsonify({'message': 'Payment record not found'}), 404

        return jsonify({'payment_record': record.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch payment record %s: %s', record_id, e)
        return jsonify({'message': 'Failed to fetch payment record', 'error': str(e)}), 500


@payment_records_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@finance_required
def create_payment_record():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, TEXT_FIELDS)
        cleaned, errors = _validate_record(data, creating=True)
        if errors:
            return validation_response(errors)

        unit = cleaned['unit']
        is_active = _active_from(cleaned)
        record = PaymentRecord(
            unit_id=unit.id,
            amount=cleaned['amount'],
            payment_type_id=cleaned['payment_type_id'],
            payment_mode_id=cleaned['payment_mode_id'],
            paid_date=cleaned['paid_date'] or date.today(),
            paid_by=cleaned['paid_by'] or (unit.tenant.full_name if unit.tenant else None),
            mobile_no=cleaned['mobile_no'],
            blaz_no=cleaned['reference_number'],
            account_name=cleaned['account_name'],
            account_no=cleaned['account_no'],
            bank=cleaned['bank'],
            cheque_no=cleaned['cheque_no'],
            currency_id=cleaned['currency_id'],
            remarks=cleaned['remarks'],
            created_by_id=get_current_user().id,
            is_active=is_active if is_active is not None else True,
        )
        db.session.add(record)
        db.session.commit()

        return jsonify({
            'message': 'Payment record created successfully',
            'payment_record': record.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create payment record: %s', e)
        return jsonify({'message': 'Failed to create payment record', 'error': str(e)}), 500


@payment_records_bp.route('/<int:record_id>', methods=['PUT'])
@jwt_required()
@finance_required
def update_payment_record(record_id):
    try:
        record = db.session.get(PaymentRecord, record_id)
        if not record:
            return jsonify({'message': 'Payment record not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, TEXT_FIELDS)
        cleaned, errors = _validate_record(data, creating=False)
        if errors:
            return validation_response(errors)

        if cleaned['unit']:
            record.unit_id = cleaned['unit'].id
        for field in ('amount', 'payment_type_id', 'payment_mode_id', 'paid_date'):
            if cleaned[field] is not None:
                setattr(record, field, cleaned[field])
        for field in ('paid_by', 'mobile_no', 'account_name', 'account_no', 'bank', 'cheque_no',
                      'currency_id', 'remarks'):
            if field in data:
                setattr(record, field, cleaned[field])
        if 'reference_number' in data or 'blaz_no' in data:
            record.blaz_no = cleaned['reference_number']

        is_active = _active_from(cleaned)
        if is_active is not None:
            record.is_active = is_active

        db.session.commit()

        return jsonify({
            'message': 'Payment record updated successfully',
            'payment_record': record.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update payment record %s: %s', record_id, e)
        return jsonify({'message': 'Failed to update payment record', 'error': str(e)}), 500


@payment_records_bp.route('/<int:record_id>', methods=['DELETE'])
@jwt_required()
@finance_required
def delete_payment_record(record_id):
    try:
        record = db.session.get(PaymentRecord, record_id)
        if not record:
            return jsonify({'message': 'Payment record not found'}), 404

        db.session.delete(record)
        db.session.commit()

        return jsonify({'message': 'Payment record deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete payment record %s: %s', record_id, e)
        return jsonify({'message': 'Failed to delete payment record', 'error': str(e)}), 500
