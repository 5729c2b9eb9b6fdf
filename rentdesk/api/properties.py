import logging
from datetime import date
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from rentdesk import db
from rentdesk.models.property import Property, PROPERTY_TYPES, PROPERTY_STATUSES
from rentdesk.models.user import User
from rentdesk.services.occupancy_service import OccupancyService
from rentdesk.utils.decorators import (
    active_user_required, staff_required, get_current_user, get_accessible_property,
)
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields, sanitize_search_query
from rentdesk.utils.validators import (
    validation_response, check_string, check_int, check_choice, check_list, check_bool, check_exists,
)

logger = logging.getLogger(__name__)

properties_bp = Blueprint('properties', __name__)

TEXT_FIELDS = ['name', 'street', 'city', 'island', 'postal_code', 'country', 'description']


def _validate_property(data, creating):
    errors = {}
    cleaned = {
        'name': check_string(data, 'name', errors, required=creating, max_length=255),
        'type': check_choice(data, 'type', PROPERTY_TYPES, errors, required=creating),
        'street': check_string(data, 'street', errors, required=creating, max_length=255),
        'city': check_string(data, 'city', errors, required=creating, max_length=100),
        'island': check_string(data, 'island', errors, required=creating, max_length=100),
        'postal_code': check_string(data, 'postal_code', errors, max_length=20),
        'country': check_string(data, 'country', errors, max_length=100),
        'number_of_floors': check_int(data, 'number_of_floors', errors, required=creating, minimum=1),
        'number_of_rental_units': check_int(data, 'number_of_rental_units', errors, required=creating, minimum=1),
        'bedrooms': check_int(data, 'bedrooms', errors, required=creating, minimum=0),
        'bathrooms': check_int(data, 'bathrooms', errors, required=creating, minimum=0),
        'square_feet': check_int(data, 'square_feet', errors, minimum=0),
        'year_built': check_int(data, 'year_built', errors, minimum=1800, maximum=date.today().year),
        'description': check_string(data, 'description', errors),
        'status': check_choice(data, 'status', PROPERTY_STATUSES, errors),
        'photos': check_list(data, 'photos', errors),
        'amenities': check_list(data, 'amenities', errors),
        'is_active': check_bool(data, 'is_active', errors),
        'assigned_manager_id': check_int(data, 'assigned_manager_id', errors, minimum=1),
    }
    check_exists(User, cleaned['assigned_manager_id'], 'assigned_manager_id', errors,
                 label='assigned manager')
    return cleaned, errors


@properties_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_properties():
    """Get properties with search, type and status filters"""
    try:
        user = get_current_user()
        search = sanitize_search_query(request.args.get('search', ''))
        property_type = request.args.get('type', '').strip()
        status = request.args.get('status', '').strip()

        query = Property.query

        if user.is_property_manager():
            query = query.filter(Property.assigned_manager_id == user.id)

        if search:
            query = query.filter(or_(
                Property.name.ilike(f'%{search}%'),
                Property.street.ilike(f'%{search}%'),
                Property.city.ilike(f'%{search}%')
            ))

        if property_type and property_type != 'all':
            query = query.filter(Property.type == property_type)

        if status and status != 'all':
            query = query.filter(Property.status == status)

        properties, meta = paginate(query.order_by(Property.created_at.desc(), Property.id.desc()))

        changed = False
        for property in properties:
            changed = OccupancyService.sync_property_status(property) or changed
        if changed:
            db.session.commit()

        return jsonify({
            'properties': [p.to_dict() for p in properties],
            'pagination': meta
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to fetch properties: %s', e)
        return jsonify({'message': 'Failed to fetch properties', 'error': str(e)}), 500


@properties_bp.route('/<int:property_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_property(property_id):
    """Get a single property with its rental units"""
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        return jsonify({'property': property.to_dict(include_units=True)}), 200

    except Exception as e:
        logger.error('Failed to fetch property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to fetch property', 'error': str(e)}), 500


@properties_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_property():
    """Create a new property"""
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, TEXT_FIELDS)
        cleaned, errors = _validate_property(data, creating=True)
        if errors:
            return validation_response(errors)

        user = get_current_user()
        manager_id = cleaned['assigned_manager_id'] or user.id
        if user.is_property_manager():
            manager_id = user.id

        property = Property(
            name=cleaned['name'],
            type=cleaned['type'],
            street=cleaned['street'],
            city=cleaned['city'],
            island=cleaned['island'],
            postal_code=cleaned['postal_code'],
            country=cleaned['country'] or 'Maldives',
            number_of_floors=cleaned['number_of_floors'],
            number_of_rental_units=cleaned['number_of_rental_units'],
            bedrooms=cleaned['bedrooms'],
            bathrooms=cleaned['bathrooms'],
            square_feet=cleaned['square_feet'],
            year_built=cleaned['year_built'],
            description=cleaned['description'],
            status=cleaned['status'] or 'vacant',
            photos=cleaned['photos'] or [],
            amenities=cleaned['amenities'] or [],
            assigned_manager_id=manager_id,
            is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
        )

        db.session.add(property)
        db.session.commit()
        logger.info('Property %s created by user %s', property.id, user.id)

        return jsonify({
            'message': 'Property created successfully',
            'property': property.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create property: %s', e)
        return jsonify({'message': 'Failed to create property', 'error': str(e)}), 500


@properties_bp.route('/<int:property_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_property(property_id):
    """Update a property"""
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        data = sanitize_fields(request.get_json(silent=True) or {}, TEXT_FIELDS)
        cleaned, errors = _validate_property(data, creating=False)
        if errors:
            return validation_response(errors)

        if cleaned['number_of_rental_units'] is not None:
            existing_units = property.rental_units.count()
            if cleaned['number_of_rental_units'] < existing_units:
                return validation_response({'number_of_rental_units': [
                    f'The property already has {existing_units} rental units.'
                ]})

        user = get_current_user()
        for field, value in cleaned.items():
            if field not in data:
                continue
            if field == 'assigned_manager_id' and user.is_property_manager():
                continue
            if value is None and field in ('name', 'type', 'street', 'city', 'island', 'number_of_floors',
                                           'number_of_rental_units', 'bedrooms', 'bathrooms', 'status',
                                           'is_active'):
                continue
            setattr(property, field, value)

        db.session.commit()

        return jsonify({
            'message': 'Property updated successfully',
            'property': property.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to update property', 'error': str(e)}), 500


@properties_bp.route('/<int:property_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def delete_property(property_id):
    """Delete a property and its rental units"""
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        if property.rental_units.filter_by(status='occupied').count():
            return jsonify({'message': 'Cannot delete a property with occupied rental units'}), 400

        db.session.delete(property)
        db.session.commit()
        logger.info('Property %s deleted', property_id)

        return jsonify({'message': 'Property deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to delete property', 'error': str(e)}), 500


@properties_bp.route('/<int:property_id>/capacity', methods=['GET'])
@jwt_required()
@active_user_required
def get_property_capacity(property_id):
    """Units, rooms and toilets used against the property's limits"""
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        return jsonify({'capacity': OccupancyService.property_capacity(property)}), 200

    except Exception as e:
        logger.error('Failed to fetch capacity for property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to fetch property capacity', 'error': str(e)}), 500
