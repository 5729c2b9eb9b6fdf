import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.asset import ASSET_CATEGORIES, ASSET_STATUSES
from rentdesk.models.currency import Currency
from rentdesk.models.maintenance import REQUEST_PRIORITIES
from rentdesk.models.payment import PAYMENT_TYPES, PAYMENT_METHODS
from rentdesk.models.property import PROPERTY_TYPES, PROPERTY_STATUSES
from rentdesk.models.rental_unit import UNIT_STATUSES
from rentdesk.models.setting import Setting
from rentdesk.models.tenant import TENANT_STATUSES
from rentdesk.models.user import USER_ROLES
from rentdesk.utils.decorators import admin_required
from rentdesk.utils.sanitizers import sanitize_string

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__)

# City or atoll -> islands offered in the address forms
ISLANDS = {
    'Male': ['Male', 'Hulhumale', 'Vilimale'],
    'Addu City': ['Addu City', 'Hithadhoo', 'Maradhoo', 'Feydhoo', 'Hulhudhoo'],
    'Fuvahmulah': ['Fuvahmulah'],
    'Kulhudhuffushi': ['Kulhudhuffushi'],
    'Thinadhoo': ['Thinadhoo'],
    'Eydhafushi': ['Eydhafushi'],
    'Funadhoo': ['Funadhoo'],
    'Dhidhdhoo': ['Dhidhdhoo'],
    'Kudahuvadhoo': ['Kudahuvadhoo'],
    'Thulusdhoo': ['Thulusdhoo'],
    'Mahibadhoo': ['Mahibadhoo'],
    'Naifaru': ['Naifaru'],
    'Rasdhoo': ['Rasdhoo'],
    'Thoddoo': ['Thoddoo'],
    'Dhigurah': ['Dhigurah'],
    'Hinnavaru': ['Hinnavaru'],
    'Maafushi': ['Maafushi'],
    'Guraidhoo': ['Guraidhoo'],
    'Himmafushi': ['Himmafushi'],
}


@settings_bp.route('/dropdowns', methods=['GET'])
def get_dropdowns():
    """Option lists for the back office forms (public)"""
    try:
        currencies = Currency.query.filter_by(is_active=True).order_by(Currency.code.asc()).all()

        return jsonify({
            'dropdownOptions': {
                'cities': list(ISLANDS.keys()),
                'islands': ISLANDS,
                'propertyTypes': PROPERTY_TYPES,
                'propertyStatuses': PROPERTY_STATUSES,
                'unitStatuses': UNIT_STATUSES,
                'assetCategories': ASSET_CATEGORIES,
                'assetStatuses': ASSET_STATUSES,
                'tenantStatuses': TENANT_STATUSES,
                'userRoles': USER_ROLES,
                'priorities': REQUEST_PRIORITIES,
                'paymentTypes': PAYMENT_TYPES,
                'paymentMethods': PAYMENT_METHODS,
                'currencies': [{'code': c.code, 'name': c.name, 'symbol': c.symbol} for c in currencies],
            }
        }), 200

    except Exception as e:
        logger.error('Failed to fetch dropdown options: %s', e)
        return jsonify({'message': 'Failed to fetch dropdown options', 'error': str(e)}), 500


@settings_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@admin_required
def get_settings():
    try:
        return jsonify({'settings': Setting.as_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch settings: %s', e)
        return jsonify({'message': 'Failed to fetch settings', 'error': str(e)}), 500


@settings_bp.route('/', methods=['PUT'], strict_slashes=False)
@jwt_required()
@admin_required
def update_settings():
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({'message': 'No settings provided'}), 400

        for key, value in data.items():
            key = sanitize_string(str(key))[:100]
            value = sanitize_string(str(value).lower() if isinstance(value, bool) else str(value))
            setting = Setting.query.filter_by(key=key).first()
            if not setting:
                setting = Setting(key=key, value=value)
                db.session.add(setting)
            else:
                setting.value = value

        db.session.commit()

        return jsonify({
            'message': 'Settings updated successfully',
            'settings': Setting.as_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update settings: %s', e)
        return jsonify({'message': 'Failed to update settings', 'error': str(e)}), 500
