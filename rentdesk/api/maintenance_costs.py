import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.maintenance import MaintenanceCost, COST_STATUSES
from rentdesk.models.rental_unit import RentalUnitAsset
from rentdesk.services.storage_service import StorageService
from rentdesk.utils.decorators import active_user_required, staff_required
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields
from rentdesk.utils.validators import (
    validation_response, read_payload, add_error, check_string, check_int, check_number, check_choice,
    check_date, check_list, check_exists, parse_date,
)

logger = logging.getLogger(__name__)

maintenance_costs_bp = Blueprint('maintenance_costs', __name__)

TEXT_FIELDS = ['description', 'repair_provider', 'notes']
BILL_EXTENSIONS = {'pdf', 'jpg', 'jpeg', 'png'}


def _validate_cost(data, creating):
    errors = {}
    cleaned = {
        'rental_unit_asset_id': check_int(data, 'rental_unit_asset_id', errors, required=creating, minimum=1,
                                          label='rental unit asset'),
        'repair_cost': check_number(data, 'repair_cost', errors, required=creating, minimum=0),
        'currency': check_string(data, 'currency', errors, max_length=3),
        'description': check_string(data, 'description', errors, max_length=1000),
        'attached_bills': check_list(data, 'attached_bills', errors),
        'repair_date': check_date(data, 'repair_date', errors),
        'repair_provider': check_string(data, 'repair_provider', errors, max_length=255),
        'status': check_choice(data, 'status', COST_STATUSES, errors),
        'notes': check_string(data, 'notes', errors),
    }
    check_exists(RentalUnitAsset, cleaned['rental_unit_asset_id'], 'rental_unit_asset_id', errors,
                 label='rental unit asset')
    for file in _uploaded_bills():
        extension = file.filename.rsplit('.', 1)[-1].lower() if '.' in file.filename else ''
        if extension not in BILL_EXTENSIONS:
            add_error(errors, 'bills', 'Each bill must be a file of type: pdf, jpg, jpeg, png.')
            break
    return cleaned, errors


def _uploaded_bills():
    files = request.files.getlist('bills') if request.files else []
    return [file for file in files if file and file.filename]


def _store_bills(cost):
    """Save uploaded bill files and append their paths to the cost"""
    files = _uploaded_bills()
    if not files:
        return
    storage = StorageService()
    paths = [storage.save_upload(file, folder='maintenance_bills')['path'] for file in files]
    cost.attached_bills = list(cost.attached_bills or []) + paths


@maintenance_costs_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_maintenance_costs():
    try:
        status = request.args.get('status', '').strip()
        date_from = request.args.get('date_from')
        date_to = request.args.get('date_to')
        assignment_id = request.args.get('rental_unit_asset_id', type=int)

        query = MaintenanceCost.query

        if status and status != 'all':
            query = query.filter(MaintenanceCost.status == status)
        if assignment_id:
            query = query.filter(MaintenanceCost.rental_unit_asset_id == assignment_id)
        try:
            if date_from:
                query = query.filter(MaintenanceCost.repair_date >= parse_date(date_from))
            if date_to:
                query = query.filter(MaintenanceCost.repair_date <= parse_date(date_to))
        except ValueError:
            return jsonify({'message': 'Invalid date filter'}), 400

        query = query.order_by(MaintenanceCost.repair_date.desc(), MaintenanceCost.id.desc())
        costs, meta = paginate(query)

        return jsonify({
            'maintenance_costs': [c.to_dict(include_assignment=True) for c in costs],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch maintenance costs: %s', e)
        return jsonify({'message': 'Failed to fetch maintenance costs', 'error': str(e)}), 500


@maintenance_costs_bp.route('/<int:cost_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_maintenance_cost(cost_id):
    try:
        cost = db.session.get(MaintenanceCost, cost_id)
        if not cost:
            return jsonify({'message': 'Maintenance cost not found'}), 404

        return jsonify({'maintenance_cost': cost.to_dict(include_assignment=True)}), 200

    except Exception as e:
        logger.error('Failed to fetch maintenance cost %s: %s', cost_id, e)
        return jsonify({'message': 'Failed to fetch maintenance cost', 'error': str(e)}), 500


@maintenance_costs_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_maintenance_cost():
    """Record a repair cost against an asset assignment, starting as draft"""
    try:
        data = sanitize_fields(read_payload(['attached_bills']), TEXT_FIELDS)
        cleaned, errors = _validate_cost(data, creating=True)
        if errors:
            return validation_response(errors)

        cost = MaintenanceCost(
            rental_unit_asset_id=cleaned['rental_unit_asset_id'],
            repair_cost=cleaned['repair_cost'],
            currency=(cleaned['currency'] or 'MVR').upper(),
            description=cleaned['description'],
            attached_bills=cleaned['attached_bills'] or [],
            repair_date=cleaned['repair_date'],
            repair_provider=cleaned['repair_provider'],
            status='draft',
            notes=cleaned['notes'],
        )
        db.session.add(cost)
        _store_bills(cost)
        db.session.commit()

        return jsonify({
            'message': 'Maintenance cost created successfully',
            'maintenance_cost': cost.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create maintenance cost: %s', e)
        return jsonify({'message': 'Failed to create maintenance cost', 'error': str(e)}), 500


@maintenance_costs_bp.route('/<int:cost_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_maintenance_cost(cost_id):
    """Update a cost; without an explicit status it goes back to draft"""
    try:
        cost = db.session.get(MaintenanceCost, cost_id)
        if not cost:
            return jsonify({'message': 'Maintenance cost not found'}), 404

        data = sanitize_fields(read_payload(['attached_bills']), TEXT_FIELDS)
        cleaned, errors = _validate_cost(data, creating=False)
        if errors:
            return validation_response(errors)

        for field in ('rental_unit_asset_id', 'repair_cost', 'attached_bills'):
            if cleaned[field] is not None:
                setattr(cost, field, cleaned[field])
        if cleaned['currency']:
            cost.currency = cleaned['currency'].upper()
        for field in ('description', 'repair_date', 'repair_provider', 'notes'):
            if field in data:
                setattr(cost, field, cleaned[field])

        _store_bills(cost)
        cost.status = cleaned['status'] or 'draft'

        db.session.commit()

        return jsonify({
            'message': 'Maintenance cost updated successfully',
            'maintenance_cost': cost.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update maintenance cost %s: %s', cost_id, e)
        return jsonify({'message': 'Failed to update maintenance cost', 'error': str(e)}), 500


@maintenance_costs_bp.route('/<int:cost_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def delete_maintenance_cost(cost_id):
    try:
        cost = db.session.get(MaintenanceCost, cost_id)
        if not cost:
            return jsonify({'message': 'Maintenance cost not found'}), 404

        bills = cost.attached_bills or []
        db.session.delete(cost)
        db.session.commit()

        storage = StorageService()
        for bill in bills:
            if isinstance(bill, str):
                storage.delete(bill)

        return jsonify({'message': 'Maintenance cost deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete maintenance cost %s: %s', cost_id, e)
        return jsonify({'message': 'Failed to delete maintenance cost', 'error': str(e)}), 500


@maintenance_costs_bp.route('/rental-unit-asset/<int:assignment_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_costs_for_assignment(assignment_id):
    try:
        assignment = db.session.get(RentalUnitAsset, assignment_id)
        if not assignment:
            return jsonify({'message': 'Rental unit asset not found'}), 404

        costs = assignment.maintenance_costs.order_by(MaintenanceCost.created_at.desc(),
                                                      MaintenanceCost.id.desc()).all()

        return jsonify({
            'rental_unit_asset': assignment.to_dict(include_asset=True, include_unit=True),
            'maintenance_costs': [c.to_dict() for c in costs],
            'total_cost': sum(float(c.repair_cost) for c in costs)
        }), 200

    except Exception as e:
        logger.error('Failed to fetch costs for rental unit asset %s: %s', assignment_id, e)
        return jsonify({'message': 'Failed to fetch maintenance costs', 'error': str(e)}), 500
