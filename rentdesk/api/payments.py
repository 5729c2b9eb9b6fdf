import logging
from datetime import date
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from rentdesk import db
from rentdesk.models.payment import Payment, PAYMENT_TYPES, PAYMENT_METHODS, PAYMENT_STATUSES
from rentdesk.models.property import Property
from rentdesk.models.rental_unit import RentalUnit
from rentdesk.models.tenant import Tenant
from rentdesk.utils.decorators import active_user_required, roles_required, admin_required
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields
from rentdesk.utils.validators import (
    validation_response, check_string, check_int, check_number, check_choice, check_date,
    check_mapping, check_exists, parse_date,
)

logger = logging.getLogger(__name__)

payments_bp = Blueprint('payments', __name__)

finance_required = roles_required('admin', 'property_manager', 'accountant')


def _validate_payment(data, creating):
    errors = {}
    cleaned = {
        'tenant_id': check_int(data, 'tenant_id', errors, required=creating, minimum=1),
        'property_id': check_int(data, 'property_id', errors, required=creating, minimum=1),
        'rental_unit_id': check_int(data, 'rental_unit_id', errors, minimum=1),
        'amount': check_number(data, 'amount', errors, required=creating, minimum=0),
        'currency': check_string(data, 'currency', errors, max_length=3),
        'payment_type': check_choice(data, 'payment_type', PAYMENT_TYPES, errors, required=creating),
        'payment_method': check_choice(data, 'payment_method', PAYMENT_METHODS, errors, required=creating),
        'payment_date': check_date(data, 'payment_date', errors, required=creating),
        'due_date': check_date(data, 'due_date', errors),
        'description': check_string(data, 'description', errors),
        'reference_number': check_string(data, 'reference_number', errors, max_length=100),
        'status': check_choice(data, 'status', PAYMENT_STATUSES, errors),
        'metadata': check_mapping(data, 'metadata', errors),
    }
    check_exists(Tenant, cleaned['tenant_id'], 'tenant_id', errors, label='tenant')
    check_exists(Property, cleaned['property_id'], 'property_id', errors, label='property')
    check_exists(RentalUnit, cleaned['rental_unit_id'], 'rental_unit_id', errors, label='rental unit')
    return cleaned, errors


@payments_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_payments():
    """Get payments with filters, 20 per page"""
    try:
        tenant_id = request.args.get('tenant_id', type=int)
        property_id = request.args.get('property_id', type=int)
        payment_type = request.args.get('payment_type', '').strip()
        status = request.args.get('status', '').strip()

        query = Payment.query

        if tenant_id:
            query = query.filter(Payment.tenant_id == tenant_id)
        if property_id:
            query = query.filter(Payment.property_id == property_id)
        if payment_type and payment_type != 'all':
            query = query.filter(Payment.payment_type == payment_type)
        if status and status != 'all':
            query = query.filter(Payment.status == status)
        try:
            if request.args.get('from_date'):
                query = query.filter(Payment.payment_date >= parse_date(request.args['from_date']))
            if request.args.get('to_date'):
                query = query.filter(Payment.payment_date <= parse_date(request.args['to_date']))
        except ValueError:
            return jsonify({'message': 'Invalid date filter'}), 400

        query = query.order_by(Payment.payment_date.desc(), Payment.id.desc())
        payments, meta = paginate(query, default_limit=20)

        return jsonify({
            'payments': [p.to_dict() for p in payments],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch payments: %s', e)
        return jsonify({'message': 'Failed to fetch payments', 'error': str(e)}), 500


@payments_bp.route('/statistics', methods=['GET'])
@jwt_required()
@active_user_required
def get_payment_statistics():
    """Totals and status counts across all payments"""
    try:
        counts = dict(db.session.query(Payment.status, func.count(Payment.id)).group_by(Payment.status).all())

        def amount_for(status):
            value = db.session.query(func.coalesce(func.sum(Payment.amount), 0)) \
                .filter(Payment.status == status).scalar()
            return float(value or 0)

        return jsonify({
            'statistics': {
                'total_payments': sum(counts.values()),
                'total_amount': amount_for('completed'),
                'pending_amount': amount_for('pending'),
                'completed_payments': counts.get('completed', 0),
                'pending_payments': counts.get('pending', 0),
                'failed_payments': counts.get('failed', 0),
                'refunded_payments': counts.get('refunded', 0),
            }
        }), 200

    except Exception as e:
        logger.error('Failed to compute payment statistics: %s', e)
        return jsonify({'message': 'Failed to fetch payment statistics', 'error': str(e)}), 500


@payments_bp.route('/<int:payment_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_payment(payment_id):
    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return jsonify({'message': 'Payment not found'}), 404

        return jsonify({'payment': payment.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch payment %s: %s', payment_id, e)
        return jsonify({'message': 'Failed to fetch payment', 'error': str(e)}), 500


@payments_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@finance_required
def create_payment():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['description', 'reference_number'])
        cleaned, errors = _validate_payment(data, creating=True)
        if errors:
            return validation_response(errors)

        payment = Payment(
            tenant_id=cleaned['tenant_id'],
            property_id=cleaned['property_id'],
            rental_unit_id=cleaned['rental_unit_id'],
            amount=cleaned['amount'],
            currency=(cleaned['currency'] or 'MVR').upper(),
            payment_type=cleaned['payment_type'],
            payment_method=cleaned['payment_method'],
            payment_date=cleaned['payment_date'],
            due_date=cleaned['due_date'],
            description=cleaned['description'],
            reference_number=cleaned['reference_number'],
            status=cleaned['status'] or 'pending',
            extra_data=cleaned['metadata'] or {},
        )
        db.session.add(payment)
        db.session.commit()

        return jsonify({
            'message': 'Payment created successfully',
            'payment': payment.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create payment: %s', e)
        return jsonify({'message': 'Failed to create payment', 'error': str(e)}), 500


@payments_bp.route('/<int:payment_id>', methods=['PUT'])
@jwt_required()
@finance_required
def update_payment(payment_id):
    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return jsonify({'message': 'Payment not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, ['description', 'reference_number'])
        cleaned, errors = _validate_payment(data, creating=False)
        if errors:
            return validation_response(errors)

        for field in ('tenant_id', 'property_id', 'amount', 'payment_type', 'payment_method',
                      'payment_date', 'status'):
            if cleaned[field] is not None:
                setattr(payment, field, cleaned[field])
        if cleaned['currency']:
            payment.currency = cleaned['currency'].upper()
        for field in ('rental_unit_id', 'due_date', 'description', 'reference_number'):
            if field in data:
                setattr(payment, field, cleaned[field])
        if cleaned['metadata'] is not None:
            payment.extra_data = cleaned['metadata']

        db.session.commit()

        return jsonify({
            'message': 'Payment updated successfully',
            'payment': payment.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update payment %s: %s', payment_id, e)
        return jsonify({'message': 'Failed to update payment', 'error': str(e)}), 500


@payments_bp.route('/<int:payment_id>/mark-paid', methods=['POST'])
@jwt_required()
@finance_required
def mark_payment_paid(payment_id):
    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return jsonify({'message': 'Payment not found'}), 404

        if payment.status == 'completed':
            return jsonify({'message': 'Payment is already completed'}), 400

        data = request.get_json(silent=True) or {}
        payment.complete()
        if data.get('reference_number'):
            payment.reference_number = data['reference_number']
        if not payment.payment_date:
            payment.payment_date = date.today()

        db.session.commit()

        return jsonify({
            'message': 'Payment marked as completed',
            'payment': payment.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to mark payment %s as paid: %s', payment_id, e)
        return jsonify({'message': 'Failed to update payment', 'error': str(e)}), 500


@payments_bp.route('/<int:payment_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_payment(payment_id):
    try:
        payment = db.session.get(Payment, payment_id)
        if not payment:
            return jsonify({'message': 'Payment not found'}), 404

        db.session.delete(payment)
        db.session.commit()

        return jsonify({'message': 'Payment deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete payment %s: %s', payment_id, e)
        return jsonify({'message': 'Failed to delete payment', 'error': str(e)}), 500
