"""
CRUD routes shared by the payment type and payment mode lookups.
"""
import logging
from flask import request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from rentdesk import db
from rentdesk.utils.decorators import active_user_required, admin_required
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields, sanitize_search_query
from rentdesk.utils.validators import validation_response, add_error, check_string, check_bool

logger = logging.getLogger(__name__)


def register_catalog_routes(bp, model, plural_key, singular_key, label):
    """Attach index/show/store/update/destroy routes for a named lookup model"""

    def validate(data, record=None):
        creating = record is None
        errors = {}
        name = check_string(data, 'name', errors, required=creating, min_length=2, max_length=255)
        description = check_string(data, 'description', errors, max_length=500)
        is_active = check_bool(data, 'is_active', errors)

        if name:
            duplicate = model.query.filter(db.func.lower(model.name) == name.lower())
            if record is not None:
                duplicate = duplicate.filter(model.id != record.id)
            if duplicate.first():
                add_error(errors, 'name', 'The name has already been taken.')

        return {'name': name, 'description': description, 'is_active': is_active}, errors

    @bp.route('/', methods=['GET'], strict_slashes=False)
    @jwt_required()
    @active_user_required
    def index():
        try:
            search = sanitize_search_query(request.args.get('search', ''))
            status = request.args.get('status', '').strip()

            query = model.query
            if search:
                query = query.filter(or_(
                    model.name.ilike(f'%{search}%'),
                    model.description.ilike(f'%{search}%')
                ))
            if status == 'active':
                query = query.filter(model.is_active.is_(True))
            elif status == 'inactive':
                query = query.filter(model.is_active.is_(False))

            items, meta = paginate(query.order_by(model.name.asc()))

            return jsonify({
                plural_key: [i.to_dict() for i in items],
                'pagination': meta
            }), 200

        except Exception as e:
            logger.error('Failed to fetch %s: %s', plural_key, e)
            return jsonify({'message': f'Failed to fetch {label}s', 'error': str(e)}), 500

    @bp.route('/<int:item_id>', methods=['GET'])
    @jwt_required()
    @active_user_required
    def show(item_id):
        try:
            item = db.session.get(model, item_id)
            if not item:
                return jsonify({'message': f'{label.capitalize()} not found'}), 404

            return jsonify({singular_key: item.to_dict()}), 200

        except Exception as e:
            logger.error('Failed to fetch %s %s: %s', singular_key, item_id, e)
            return jsonify({'message': f'Failed to fetch {label}', 'error': str(e)}), 500

    @bp.route('/', methods=['POST'], strict_slashes=False)
    @jwt_required()
    @admin_required
    def store():
        try:
            data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'description'])
            cleaned, errors = validate(data)
            if errors:
                return validation_response(errors)

            item = model(
                name=cleaned['name'],
                description=cleaned['description'],
                is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
            )
            db.session.add(item)
            db.session.commit()

            return jsonify({
                'message': f'{label.capitalize()} created successfully',
                singular_key: item.to_dict()
            }), 201

        except Exception as e:
            db.session.rollback()
            logger.error('Failed to create %s: %s', singular_key, e)
            return jsonify({'message': f'Failed to create {label}', 'error': str(e)}), 500

    @bp.route('/<int:item_id>', methods=['PUT'])
    @jwt_required()
    @admin_required
    def update(item_id):
        try:
            item = db.session.get(model, item_id)
            if not item:
                return jsonify({'message': f'{label.capitalize()} not found'}), 404

            data = sanitize_fields(request.get_json(silent=True) or {}, ['name', 'description'])
            cleaned, errors = validate(data, item)
            if errors:
                return validation_response(errors)

            if cleaned['name']:
                item.name = cleaned['name']
            if 'description' in data:
                item.description = cleaned['description']
            if cleaned['is_active'] is not None:
                item.is_active = cleaned['is_active']

            db.session.commit()

            return jsonify({
                'message': f'{label.capitalize()} updated successfully',
                singular_key: item.to_dict()
            }), 200

        except Exception as e:
            db.session.rollback()
            logger.error('Failed to update %s %s: %s', singular_key, item_id, e)
            return jsonify({'message': f'Failed to update {label}', 'error': str(e)}), 500

    @bp.route('/<int:item_id>', methods=['DELETE'])
    @jwt_required()
    @admin_required
    def destroy(item_id):
        try:
            item = db.session.get(model, item_id)
            if not item:
                return jsonify({'message': f'{label.capitalize()} not found'}), 404

            if item.payment_records.count():
                return jsonify({'message': f'Cannot delete {label} that is used by payment records'}), 400

            db.session.delete(item)
            db.session.commit()

            return jsonify({'message': f'{label.capitalize()} deleted successfully'}), 200

        except Exception as e:
            db.session.rollback()
            logger.error('Failed to delete %s %s: %s', singular_key, item_id, e)
            return jsonify({'message': f'Failed to delete {label}', 'error': str(e)}), 500
