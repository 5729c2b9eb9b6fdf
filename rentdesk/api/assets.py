import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_, func
from rentdesk import db
from rentdesk.models.asset import Asset, ASSET_CATEGORIES, ASSET_STATUSES
from rentdesk.utils.decorators import active_user_required, staff_required
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields, sanitize_search_query
from rentdesk.utils.validators import validation_response, check_string, check_choice

logger = logging.getLogger(__name__)

assets_bp = Blueprint('assets', __name__)


def _validate_asset(data, creating):
    errors = {}
    cleaned = {
        'name': check_string(data, 'name', errors, required=creating, max_length=100),
        'brand': check_string(data, 'brand', errors, max_length=50),
        'serial_no': check_string(data, 'serial_no', errors, max_length=100, label='serial no'),
        'category': check_choice(data, 'category', ASSET_CATEGORIES, errors),
        'status': check_choice(data, 'status', ASSET_STATUSES, errors),
        'maintenance_notes': check_string(data, 'maintenance_notes', errors, max_length=1000),
    }
    return cleaned, errors


@assets_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_assets():
    try:
        category = request.args.get('category', '').strip()
        status = request.args.get('status', '').strip()
        search = sanitize_search_query(request.args.get('search', ''))

        query = Asset.query

        if category and category != 'all':
            query = query.filter(Asset.category == category)
        if status and status != 'all':
            query = query.filter(Asset.status == status)
        if search:
            query = query.filter(or_(
                Asset.name.ilike(f'%{search}%'),
                Asset.brand.ilike(f'%{search}%'),
                Asset.serial_no.ilike(f'%{search}%')
            ))

        assets, meta = paginate(query.order_by(Asset.created_at.desc(), Asset.id.desc()))

        return jsonify({
            'success': True,
            'assets': [a.to_dict() for a in assets],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch assets: %s', e)
        return jsonify({'success': False, 'message': 'Failed to fetch assets', 'error': str(e)}), 500


@assets_bp.route('/categories', methods=['GET'])
@jwt_required()
def get_asset_categories():
    return jsonify({'success': True, 'categories': ASSET_CATEGORIES}), 200


@assets_bp.route('/stats', methods=['GET'])
@jwt_required()
@active_user_required
def get_asset_stats():
    """Asset counts by status and by category"""
    try:
        by_status = dict(db.session.query(Asset.status, func.count(Asset.id)).group_by(Asset.status).all())
        by_category = dict(db.session.query(Asset.category, func.count(Asset.id)).group_by(Asset.category).all())

        return jsonify({
            'success': True,
            'stats': {
                'total': sum(by_status.values()),
                'by_status': {s: by_status.get(s, 0) for s in ASSET_STATUSES},
                'by_category': {c: by_category.get(c, 0) for c in ASSET_CATEGORIES},
            }
        }), 200

    except Exception as e:
        logger.error('Failed to fetch asset stats: %s', e)
        return jsonify({'success': False, 'message': 'Failed to fetch asset stats', 'error': str(e)}), 500


@assets_bp.route('/<int:asset_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_asset(asset_id):
    try:
        asset = db.session.get(Asset, asset_id)
        if not asset:
            return jsonify({'success': False, 'message': 'Asset not found'}), 404

        return jsonify({'success': True, 'asset': asset.to_dict(include_units=True)}), 200

    except Exception as e:
        logger.error('Failed to fetch asset %s: %s', asset_id, e)
        return jsonify({'success': False, 'message': 'Failed to fetch asset', 'error': str(e)}), 500


@assets_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_asset():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'brand', 'serial_no', 'maintenance_notes'])
        cleaned, errors = _validate_asset(data, creating=True)
        if errors:
            return validation_response(errors)

        asset = Asset(
            name=cleaned['name'],
            brand=cleaned['brand'],
            serial_no=cleaned['serial_no'],
            category=cleaned['category'] or 'other',
            status=cleaned['status'] or 'working',
            maintenance_notes=cleaned['maintenance_notes'],
        )
        db.session.add(asset)
        db.session.commit()

        return jsonify({
            'success': True,
            'message': 'Asset created successfully',
            'asset': asset.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create asset: %s', e)
        return jsonify({'success': False, 'message': 'Failed to create asset', 'error': str(e)}), 500


@assets_bp.route('/<int:asset_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_asset(asset_id):
    try:
        asset = db.session.get(Asset, asset_id)
        if not asset:
            return jsonify({'success': False, 'message': 'Asset not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'brand', 'serial_no', 'maintenance_notes'])
        cleaned, errors = _validate_asset(data, creating=False)
        if errors:
            return validation_response(errors)

        for field, value in cleaned.items():
            if field in data and (value is not None or field in ('brand', 'serial_no', 'maintenance_notes')):
                setattr(asset, field, value)

        db.session.commit()

        return jsonify({
            'success': True,
            'message': 'Asset updated successfully',
            'asset': asset.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update asset %s: %s', asset_id, e)
        return jsonify({'success': False, 'message': 'Failed to update asset', 'error': str(e)}), 500


@assets_bp.route('/<int:asset_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def delete_asset(asset_id):
    try:
        asset = db.session.get(Asset, asset_id)
        if not asset:
            return jsonify({'success': False, 'message': 'Asset not found'}), 404

        if asset.has_active_assignment():
            return jsonify({'success': False, 'message': 'Asset is assigned to a rental unit'}), 400

        db.session.delete(asset)
        db.session.commit()

        return jsonify({'success': True, 'message': 'Asset deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete asset %s: %s', asset_id, e)
        return jsonify({'success': False, 'message': 'Failed to delete asset', 'error': str(e)}), 500


@assets_bp.route('/<int:asset_id>/status', methods=['PATCH'])
@jwt_required()
@active_user_required
def update_asset_status(asset_id):
    """Set an asset to working or maintenance"""
    try:
        asset = db.session.get(Asset, asset_id)
        if not asset:
            return jsonify({'success': False, 'message': 'Asset not found'}), 404

        data = request.get_json(silent=True) or {}
        errors = {}
        status = check_choice(data, 'status', ['working', 'maintenance'], errors, required=True)
        notes = check_string(data, 'maintenance_notes', errors, max_length=1000, label='maintenance notes')
        if errors:
            return validation_response(errors)

        asset.set_status(status, notes)
        db.session.commit()

        return jsonify({
            'success': True,
            'message': 'Asset status updated successfully',
            'asset': asset.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update asset %s status: %s', asset_id, e)
        return jsonify({'success': False, 'message': 'Failed to update asset status', 'error': str(e)}), 500
