import logging
import re
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.audit_log import AuditLog
from rentdesk.models.currency import Currency
from rentdesk.models.payment_record import PaymentRecord
from rentdesk.services.currency_service import CurrencyService
from rentdesk.utils.decorators import active_user_required, admin_required, get_current_user
from rentdesk.utils.sanitizers import sanitize_fields
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_int, check_number, check_bool,
)

logger = logging.getLogger(__name__)

currencies_bp = Blueprint('currencies', __name__)


def _validate_currency(data, existing=None):
    creating = existing is None
    errors = {}
    cleaned = {
        'code': check_string(data, 'code', errors, required=creating),
        'name': check_string(data, 'name', errors, required=creating, max_length=100),
        'symbol': check_string(data, 'symbol', errors, required=creating, max_length=10),
        'exchange_rate': check_number(data, 'exchange_rate', errors, required=creating, minimum=0,
                                      exclusive_minimum=True),
        'is_base': check_bool(data, 'is_base', errors),
        'is_active': check_bool(data, 'is_active', errors),
        'decimal_places': check_int(data, 'decimal_places', errors, minimum=0, maximum=4),
        'thousands_separator': check_string(data, 'thousands_separator', errors, max_length=1),
        'decimal_separator': check_string(data, 'decimal_separator', errors, max_length=1),
    }

    code = cleaned['code']
    if code:
        code = code.upper()
        if not re.match(r'^[A-Z]{3}$', code):
            add_error(errors, 'code', 'The code must be 3 letters.')
        else:
            duplicate = Currency.query.filter(Currency.code == code)
            if existing is not None:
                duplicate = duplicate.filter(Currency.id != existing.id)
            if duplicate.first():
                add_error(errors, 'code', 'The code has already been taken.')
        cleaned['code'] = code

    return cleaned, errors


def _log_base_change(currency):
    logger.info('Base currency changed to %s', currency.code)
    AuditLog.log(
        'currency.base_changed',
        user_id=get_current_user().id,
        resource_type='currency',
        resource_id=currency.id,
        details={'code': currency.code}
    )


@currencies_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_currencies():
    try:
        active_only = request.args.get('active_only', '').lower() in ('1', 'true')

        query = Currency.query
        if active_only:
            query = query.filter(Currency.is_active.is_(True))

        currencies = query.order_by(Currency.code.asc()).all()

        return jsonify({'currencies': [c.to_dict() for c in currencies]}), 200

    except Exception as e:
        logger.error('Failed to fetch currencies: %s', e)
        return jsonify({'message': 'Failed to fetch currencies', 'error': str(e)}), 500


@currencies_bp.route('/base', methods=['GET'])
@jwt_required()
@active_user_required
def get_base_currency():
    try:
        currency = Currency.get_base()
        if not currency:
            return jsonify({'message': 'No base currency configured'}), 404

        return jsonify({'currency': currency.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch base currency: %s', e)
        return jsonify({'message': 'Failed to fetch base currency', 'error': str(e)}), 500


@currencies_bp.route('/convert', methods=['POST'])
@jwt_required()
@active_user_required
def convert_currency():
    """Convert an amount between two active currencies"""
    try:
        data = request.get_json(silent=True) or {}
        errors = {}
        amount = check_number(data, 'amount', errors, required=True, minimum=0)
        from_code = check_string(data, 'from_currency', errors, required=True, max_length=3)
        to_code = check_string(data, 'to_currency', errors, required=True, max_length=3)
        if errors:
            return validation_response(errors)

        from_currency = CurrencyService.find_active(from_code)
        to_currency = CurrencyService.find_active(to_code)
        if not from_currency or not to_currency:
            return jsonify({'message': 'Currency not found or inactive'}), 404

        return jsonify({'conversion': CurrencyService.convert(amount, from_currency, to_currency)}), 200

    except Exception as e:
        logger.error('Failed to convert currency: %s', e)
        return jsonify({'message': 'Failed to convert currency', 'error': str(e)}), 500


@currencies_bp.route('/<int:currency_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_currency(currency_id):
    try:
        currency = db.session.get(Currency, currency_id)
        if not currency:
            return jsonify({'message': 'Currency not found'}), 404

        return jsonify({'currency': currency.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch currency %s: %s', currency_id, e)
        return jsonify({'message': 'Failed to fetch currency', 'error': str(e)}), 500


@currencies_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@admin_required
def create_currency():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'symbol'])
        cleaned, errors = _validate_currency(data)
        if errors:
            return validation_response(errors)

        currency = Currency(
            code=cleaned['code'],
            name=cleaned['name'],
            symbol=cleaned['symbol'],
            exchange_rate=cleaned['exchange_rate'],
            is_base=False,
            is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
            decimal_places=cleaned['decimal_places'] if cleaned['decimal_places'] is not None else 2,
            thousands_separator=cleaned['thousands_separator'] or ',',
            decimal_separator=cleaned['decimal_separator'] or '.',
        )
        db.session.add(currency)
        db.session.flush()

        if cleaned['is_base']:
            currency.make_base()
            _log_base_change(currency)

        db.session.commit()

        return jsonify({
            'message': 'Currency created successfully',
            'currency': currency.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create currency: %s', e)
        return jsonify({'message': 'Failed to create currency', 'error': str(e)}), 500


@currencies_bp.route('/<int:currency_id>', methods=['PUT'])
@jwt_required()
@admin_required
def update_currency(currency_id):
    try:
        currency = db.session.get(Currency, currency_id)
        if not currency:
            return jsonify({'message': 'Currency not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'symbol'])
        cleaned, errors = _validate_currency(data, currency)
        if errors:
            return validation_response(errors)

        for field in ('code', 'name', 'symbol', 'exchange_rate', 'is_active', 'decimal_places',
                      'thousands_separator', 'decimal_separator'):
            if cleaned[field] is not None:
                setattr(currency, field, cleaned[field])

        if cleaned['is_base'] and not currency.is_base:
            currency.make_base()
            _log_base_change(currency)
        elif cleaned['is_base'] is False:
            currency.is_base = False

        db.session.commit()

        return jsonify({
            'message': 'Currency updated successfully',
            'currency': currency.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update currency %s: %s', currency_id, e)
        return jsonify({'message': 'Failed to update currency', 'error': str(e)}), 500


@currencies_bp.route('/<int:currency_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_currency(currency_id):
    try:
        currency = db.session.get(Currency, currency_id)
        if not currency:
            return jsonify({'message': 'Currency not found'}), 404

        if currency.is_base:
            return jsonify({'message': 'Cannot delete the base currency'}), 400

        if PaymentRecord.query.filter_by(currency_id=currency.id).count():
            return jsonify({'message': 'Cannot delete currency that is used by payment records'}), 400

        db.session.delete(currency)
        db.session.commit()

        return jsonify({'message': 'Currency deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete currency %s: %s', currency_id, e)
        return jsonify({'message': 'Failed to delete currency', 'error': str(e)}), 500
