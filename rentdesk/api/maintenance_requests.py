import logging
from datetime import date, datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from rentdesk import db
from rentdesk.models.maintenance import MaintenanceRequest, REQUEST_PRIORITIES, REQUEST_STATUSES
from rentdesk.models.property import Property
from rentdesk.models.rental_unit import RentalUnit
from rentdesk.models.tenant import Tenant
from rentdesk.models.user import User
from rentdesk.utils.decorators import active_user_required, staff_required, get_current_user
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields, sanitize_search_query
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_int, check_number, check_choice, check_date,
    check_exists,
)

logger = logging.getLogger(__name__)

maintenance_requests_bp = Blueprint('maintenance_requests', __name__)


def _validate_request(data, creating, existing=None):
    errors = {}
    cleaned = {
        'title': check_string(data, 'title', errors, required=creating, min_length=3, max_length=255),
        'description': check_string(data, 'description', errors, required=creating, min_length=10,
                                    max_length=1000),
        'property_id': check_int(data, 'property_id', errors, required=creating, minimum=1),
        'rental_unit_id': check_int(data, 'rental_unit_id', errors, minimum=1),
        'tenant_id': check_int(data, 'tenant_id', errors, minimum=1),
        'priority': check_choice(data, 'priority', REQUEST_PRIORITIES, errors),
        'status': check_choice(data, 'status', REQUEST_STATUSES, errors),
        'request_date': check_date(data, 'request_date', errors),
        'scheduled_date': check_date(data, 'scheduled_date', errors),
        'completed_date': check_date(data, 'completed_date', errors),
        'assigned_to': check_int(data, 'assigned_to', errors, minimum=1),
        'estimated_cost': check_number(data, 'estimated_cost', errors, minimum=0),
        'actual_cost': check_number(data, 'actual_cost', errors, minimum=0),
    }

    check_exists(Property, cleaned['property_id'], 'property_id', errors, label='property')
    unit = check_exists(RentalUnit, cleaned['rental_unit_id'], 'rental_unit_id', errors, label='rental unit')
    check_exists(Tenant, cleaned['tenant_id'], 'tenant_id', errors, label='tenant')
    check_exists(User, cleaned['assigned_to'], 'assigned_to', errors, label='assignee')

    property_id = cleaned['property_id'] or (existing.property_id if existing else None)
    if unit is not None and property_id and unit.property_id != property_id:
        add_error(errors, 'rental_unit_id', 'The rental unit does not belong to the selected property.')

    request_date = cleaned['request_date'] or (existing.request_date if existing else date.today())
    if cleaned['scheduled_date'] and request_date and cleaned['scheduled_date'] < request_date:
        add_error(errors, 'scheduled_date', 'The scheduled date must be a date after or equal to request date.')

    return cleaned, errors


@maintenance_requests_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_maintenance_requests():
    try:
        user = get_current_user()
        search = sanitize_search_query(request.args.get('search', ''))
        status = request.args.get('status', '').strip()
        priority = request.args.get('priority', '').strip()
        property_id = request.args.get('property_id', type=int)

        query = MaintenanceRequest.query

        if user.is_property_manager():
            query = query.join(Property).filter(Property.assigned_manager_id == user.id)

        if search:
            query = query.filter(or_(
                MaintenanceRequest.title.ilike(f'%{search}%'),
                MaintenanceRequest.description.ilike(f'%{search}%')
            ))
        if status and status != 'all':
            query = query.filter(MaintenanceRequest.status == status)
        if priority and priority != 'all':
            query = query.filter(MaintenanceRequest.priority == priority)
        if property_id:
            query = query.filter(MaintenanceRequest.property_id == property_id)

        query = query.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())
        items, meta = paginate(query)

        return jsonify({
            'maintenance_requests': [m.to_dict() for m in items],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch maintenance requests: %s', e)
        return jsonify({'message': 'Failed to fetch maintenance requests', 'error': str(e)}), 500


@maintenance_requests_bp.route('/<int:request_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_maintenance_request(request_id):
    try:
        item = db.session.get(MaintenanceRequest, request_id)
        if not item:
            return jsonify({'message': 'Maintenance request not found'}), 404

        return jsonify({'maintenance_request': item.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch maintenance request %s: %s', request_id, e)
        return jsonify({'message': 'Failed to fetch maintenance request', 'error': str(e)}), 500


@maintenance_requests_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_maintenance_request():
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['title', 'description'])
        cleaned, errors = _validate_request(data, creating=True)
        if errors:
            return validation_response(errors)

        item = MaintenanceRequest(
            title=cleaned['title'],
            description=cleaned['description'],
            property_id=cleaned['property_id'],
            rental_unit_id=cleaned['rental_unit_id'],
            tenant_id=cleaned['tenant_id'],
            priority=cleaned['priority'] or 'medium',
            status=cleaned['status'] or 'pending',
            request_date=cleaned['request_date'] or date.today(),
            scheduled_date=cleaned['scheduled_date'],
            assigned_to=cleaned['assigned_to'],
            estimated_cost=cleaned['estimated_cost'],
            actual_cost=cleaned['actual_cost'],
        )
        if item.status == 'completed':
            item.complete()

        db.session.add(item)
        db.session.commit()

        return jsonify({
            'message': 'Maintenance request created successfully',
            'maintenance_request': item.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create maintenance request: %s', e)
        return jsonify({'message': 'Failed to create maintenance request', 'error': str(e)}), 500


@maintenance_requests_bp.route('/<int:request_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_maintenance_request(request_id):
    """Update a request; completing it stamps the completion time"""
    try:
        item = db.session.get(MaintenanceRequest, request_id)
        if not item:
            return jsonify({'message': 'Maintenance request not found'}), 404

        data = sanitize_fields(request.get_json(silent=True) or {}, ['title', 'description'])
        cleaned, errors = _validate_request(data, creating=False, existing=item)
        if errors:
            return validation_response(errors)

        for field in ('title', 'description', 'property_id', 'priority', 'request_date'):
            if cleaned[field] is not None:
                setattr(item, field, cleaned[field])
        for field in ('rental_unit_id', 'tenant_id', 'scheduled_date', 'assigned_to',
                      'estimated_cost', 'actual_cost'):
            if field in data:
                setattr(item, field, cleaned[field])

        if cleaned['completed_date']:
            item.completed_date = datetime.combine(cleaned['completed_date'], datetime.min.time())

        if cleaned['status'] == 'completed' and not item.completed_date:
            item.complete()
        elif cleaned['status']:
            item.status = cleaned['status']

        db.session.commit()

        return jsonify({
            'message': 'Maintenance request updated successfully',
            'maintenance_request': item.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update maintenance request %s: %s', request_id, e)
        return jsonify({'message': 'Failed to update maintenance request', 'error': str(e)}), 500


@maintenance_requests_bp.route('/<int:request_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def delete_maintenance_request(request_id):
    try:
        item = db.session.get(MaintenanceRequest, request_id)
        if not item:
            return jsonify({'message': 'Maintenance request not found'}), 404

        db.session.delete(item)
        db.session.commit()

        return jsonify({'message': 'Maintenance request deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete maintenance request %s: %s', request_id, e)
        return jsonify({'message': 'Failed to delete maintenance request', 'error': str(e)}), 500
