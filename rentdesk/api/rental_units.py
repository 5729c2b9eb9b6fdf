import logging
from datetime import date
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.asset import Asset
from rentdesk.models.property import Property
from rentdesk.models.rental_unit import RentalUnit, RentalUnitAsset, UNIT_STATUSES, ASSIGNMENT_STATUSES
from rentdesk.models.tenant import Tenant
from rentdesk.services.occupancy_service import OccupancyService
from rentdesk.utils.decorators import (
    active_user_required, staff_required, get_current_user, get_accessible_property,
)
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_fields
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_int, check_number, check_choice,
    check_date, check_list, check_mapping, check_bool, check_exists,
)

logger = logging.getLogger(__name__)

rental_units_bp = Blueprint('rental_units', __name__)


def _validate_unit(data, creating):
    errors = {}
    cleaned = {
        'property_id': check_int(data, 'property_id', errors, required=creating, minimum=1),
        'unit_number': check_string(data, 'unit_number', errors, required=creating, max_length=50),
        'floor_number': check_int(data, 'floor_number', errors, required=creating, minimum=1),
        'status': check_choice(data, 'status', UNIT_STATUSES, errors),
        'tenant_id': check_int(data, 'tenant_id', errors, minimum=1),
        'move_in_date': check_date(data, 'move_in_date', errors),
        'lease_end_date': check_date(data, 'lease_end_date', errors),
        'amenities': check_list(data, 'amenities', errors),
        'photos': check_list(data, 'photos', errors),
        'notes': check_string(data, 'notes', errors),
        'is_active': check_bool(data, 'is_active', errors),
        'assets': check_list(data, 'assets', errors),
    }

    details = check_mapping(data, 'unit_details', errors, required=creating, label='unit details')
    if details is not None:
        nested = {}
        check_int(details, 'numberOfRooms', nested, required=creating, minimum=1, label='number of rooms')
        check_int(details, 'numberOfToilets', nested, required=creating, minimum=0, label='number of toilets')
        for field, messages in nested.items():
            errors[f'unit_details.{field}'] = messages
    cleaned['unit_details'] = details

    financial = check_mapping(data, 'financial', errors, required=creating)
    if financial is not None:
        nested = {}
        check_number(financial, 'rentAmount', nested, required=creating, minimum=0, label='rent amount')
        check_number(financial, 'depositAmount', nested, minimum=0, label='deposit amount')
        check_string(financial, 'currency', nested, max_length=3)
        for field, messages in nested.items():
            errors[f'financial.{field}'] = messages
    cleaned['financial'] = financial

    if cleaned['move_in_date'] and cleaned['lease_end_date'] and \
            cleaned['lease_end_date'] <= cleaned['move_in_date']:
        add_error(errors, 'lease_end_date', 'The lease end date must be a date after move in date.')

    check_exists(Property, cleaned['property_id'], 'property_id', errors, label='property')
    check_exists(Tenant, cleaned['tenant_id'], 'tenant_id', errors, label='tenant')

    return cleaned, errors


def _normalise_financial(financial):
    return {
        'rentAmount': float(financial.get('rentAmount') or 0),
        'depositAmount': float(financial.get('depositAmount') or 0),
        'currency': (financial.get('currency') or 'MVR').upper(),
    }


def _normalise_details(details):
    return {
        'numberOfRooms': int(details.get('numberOfRooms') or 0),
        'numberOfToilets': int(details.get('numberOfToilets') or 0),
    }


def _get_unit(unit_id):
    """Return (unit, None) or (None, error response), honouring property access"""
    unit = db.session.get(RentalUnit, unit_id)
    if not unit:
        return None, (jsonify({'message': 'Rental unit not found'}), 404)
    user = get_current_user()
    if user and not user.can_manage_property(unit.property):
        return None, (jsonify({'message': 'Access denied to this rental unit'}), 403)
    return unit, None


@rental_units_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_rental_units():
    """List rental units ordered by floor and unit number"""
    try:
        user = get_current_user()
        property_id = request.args.get('property_id', type=int)
        tenant_id = request.args.get('tenant_id', type=int)
        status = request.args.get('status', '').strip()
        available = request.args.get('available', '').lower() == 'true'

        query = RentalUnit.query

        if user.is_property_manager():
            query = query.join(Property).filter(Property.assigned_manager_id == user.id)

        if property_id:
            query = query.filter(RentalUnit.property_id == property_id)
        if tenant_id:
            query = query.filter(RentalUnit.tenant_id == tenant_id)
        if status and status != 'all':
            query = query.filter(RentalUnit.status == status)
        if available:
            query = query.filter(RentalUnit.status == 'available', RentalUnit.tenant_id.is_(None))

        query = query.order_by(RentalUnit.floor_number.asc(), RentalUnit.unit_number.asc())
        units, meta = paginate(query)

        return jsonify({
            'rental_units': [u.to_dict(include_property=True, include_tenant=True) for u in units],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch rental units: %s', e)
        return jsonify({'message': 'Failed to fetch rental units', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_rental_unit(unit_id):
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        return jsonify({
            'rental_unit': unit.to_dict(include_property=True, include_tenant=True, include_assets=True)
        }), 200

    except Exception as e:
        logger.error('Failed to fetch rental unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to fetch rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_rental_unit():
    """Create a rental unit within the property's unit capacity"""
    try:
        data = sanitize_fields(request.get_json(silent=True) or {}, ['unit_number', 'notes'])
        cleaned, errors = _validate_unit(data, creating=True)
        if errors:
            return validation_response(errors)

        property, error = get_accessible_property(cleaned['property_id'])
        if error:
            return error

        if not OccupancyService.has_capacity(property):
            return jsonify({'message': 'Property has reached maximum rental unit capacity'}), 400

        if OccupancyService.unit_number_taken(property.id, cleaned['unit_number']):
            return jsonify({'message': 'Unit number already exists for this property'}), 400

        status = cleaned['status'] or 'available'
        if status == 'occupied' and not cleaned['tenant_id']:
            return jsonify({'message': 'A tenant is required for an occupied unit'}), 400

        unit = RentalUnit(
            property_id=property.id,
            unit_number=cleaned['unit_number'],
            floor_number=cleaned['floor_number'],
            unit_details=_normalise_details(cleaned['unit_details']),
            financial=_normalise_financial(cleaned['financial']),
            status=status,
            move_in_date=cleaned['move_in_date'],
            lease_end_date=cleaned['lease_end_date'],
            amenities=cleaned['amenities'] or [],
            photos=cleaned['photos'] or [],
            notes=cleaned['notes'],
            is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
        )
        if cleaned['tenant_id']:
            unit.assign_tenant(cleaned['tenant_id'], cleaned['move_in_date'])

        db.session.add(unit)
        db.session.flush()

        skipped_assets = []
        for asset_id in cleaned['assets'] or []:
            asset = db.session.get(Asset, asset_id) if isinstance(asset_id, int) else None
            if not asset or asset.has_active_assignment():
                skipped_assets.append(asset_id)
                continue
            db.session.add(RentalUnitAsset(rental_unit_id=unit.id, asset_id=asset.id, quantity=1))

        db.session.flush()
        OccupancyService.sync_property_status(property)
        db.session.commit()

        return jsonify({
            'message': 'Rental unit created successfully',
            'rental_unit': unit.to_dict(include_property=True, include_assets=True),
            'skipped_assets': skipped_assets
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create rental unit: %s', e)
        return jsonify({'message': 'Failed to create rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_rental_unit(unit_id):
    """Update a rental unit, keeping status and tenant consistent"""
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        data = sanitize_fields(request.get_json(silent=True) or {}, ['unit_number', 'notes'])
        cleaned, errors = _validate_unit(data, creating=False)
        if errors:
            return validation_response(errors)

        if 'property_id' in data and cleaned['property_id'] != unit.property_id:
            return validation_response({'property_id': ['A rental unit cannot be moved to another property.']})

        tenant_given = 'tenant_id' in data
        tenant_cleared = tenant_given and data['tenant_id'] is None
        tenant_after = cleaned['tenant_id'] if tenant_given else unit.tenant_id

        if cleaned['status'] == 'occupied' and not tenant_after:
            return jsonify({'message': 'Cannot set status to occupied without a tenant'}), 400
        if cleaned['status'] == 'available' and tenant_after:
            return jsonify({'message': 'Cannot set status to available while a tenant is assigned'}), 400

        if cleaned['unit_number'] and cleaned['unit_number'] != unit.unit_number and \
                OccupancyService.unit_number_taken(unit.property_id, cleaned['unit_number'], exclude_id=unit.id):
            return jsonify({'message': 'Unit number already exists for this property'}), 400

        if cleaned['unit_number']:
            unit.unit_number = cleaned['unit_number']
        if cleaned['floor_number'] is not None:
            unit.floor_number = cleaned['floor_number']
        if cleaned['unit_details'] is not None:
            unit.unit_details = _normalise_details({**(unit.unit_details or {}), **cleaned['unit_details']})
        if cleaned['financial'] is not None:
            unit.financial = _normalise_financial({**(unit.financial or {}), **cleaned['financial']})
        for field in ('amenities', 'photos'):
            if cleaned[field] is not None:
                setattr(unit, field, cleaned[field])
        if 'notes' in data:
            unit.notes = cleaned['notes']
        if cleaned['is_active'] is not None:
            unit.is_active = cleaned['is_active']
        if 'move_in_date' in data:
            unit.move_in_date = cleaned['move_in_date']
        if 'lease_end_date' in data:
            unit.lease_end_date = cleaned['lease_end_date']

        if tenant_cleared:
            unit.release_tenant()
        elif tenant_given and cleaned['tenant_id']:
            unit.assign_tenant(cleaned['tenant_id'], cleaned['move_in_date'])
        elif cleaned['status']:
            unit.status = cleaned['status']

        if unit.move_in_date and unit.lease_end_date and unit.lease_end_date <= unit.move_in_date:
            db.session.rollback()
            return validation_response({'lease_end_date': ['The lease end date must be a date after move in date.']})

        db.session.flush()
        OccupancyService.sync_property_status(unit.property)
        db.session.commit()

        return jsonify({
            'message': 'Rental unit updated successfully',
            'rental_unit': unit.to_dict(include_property=True, include_tenant=True)
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update rental unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to update rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def delete_rental_unit(unit_id):
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        property = unit.property
        db.session.delete(unit)
        db.session.flush()
        OccupancyService.sync_property_status(property)
        db.session.commit()

        return jsonify({'message': 'Rental unit deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete rental unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to delete rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/property/<int:property_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_units_by_property(property_id):
    """Active rental units of one property"""
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        units = property.rental_units.filter_by(is_active=True) \
            .order_by(RentalUnit.floor_number.asc(), RentalUnit.unit_number.asc()).all()

        return jsonify({
            'property': {'id': property.id, 'name': property.name},
            'rental_units': [u.to_dict(include_tenant=True) for u in units]
        }), 200

    except Exception as e:
        logger.error('Failed to fetch rental units for property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to fetch rental units', 'error': str(e)}), 500


@rental_units_bp.route('/property/<int:property_id>/capacity', methods=['GET'])
@jwt_required()
@active_user_required
def get_unit_capacity(property_id):
    try:
        property, error = get_accessible_property(property_id)
        if error:
            return error

        return jsonify({'capacity': OccupancyService.property_capacity(property)}), 200

    except Exception as e:
        logger.error('Failed to fetch capacity for property %s: %s', property_id, e)
        return jsonify({'message': 'Failed to fetch property capacity', 'error': str(e)}), 500


@rental_units_bp.route('/maintenance-assets', methods=['GET'])
@jwt_required()
@active_user_required
def get_maintenance_assets():
    """Active asset assignments currently under maintenance"""
    try:
        user = get_current_user()
        query = RentalUnitAsset.query.filter_by(is_active=True, status='maintenance')

        if user.is_property_manager():
            query = query.join(RentalUnit).join(Property).filter(Property.assigned_manager_id == user.id)

        assignments = query.order_by(RentalUnitAsset.updated_at.desc()).all()

        items = []
        for assignment in assignments:
            item = assignment.to_dict(include_asset=True, include_unit=True)
            latest = assignment.latest_maintenance_cost()
            item['latest_maintenance_cost'] = latest.to_dict() if latest else None
            items.append(item)

        return jsonify({'maintenance_assets': items, 'total': len(items)}), 200

    except Exception as e:
        logger.error('Failed to fetch maintenance assets: %s', e)
        return jsonify({'message': 'Failed to fetch maintenance assets', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>/assets', methods=['GET'])
@jwt_required()
@active_user_required
def get_unit_assets(unit_id):
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        return jsonify({
            'assets': [a.to_dict(include_asset=True) for a in unit.active_assets()]
        }), 200

    except Exception as e:
        logger.error('Failed to fetch assets for unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to fetch rental unit assets', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>/assets', methods=['POST'])
@jwt_required()
@staff_required
def add_unit_assets(unit_id):
    """Attach assets to a unit, reactivating earlier assignments"""
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        data = request.get_json(silent=True) or {}
        errors = {}
        entries = check_list(data, 'assets', errors, required=True)
        if entries is not None:
            for index, entry in enumerate(entries):
                if not isinstance(entry, dict):
                    add_error(errors, f'assets.{index}', 'Each asset must be an object.')
                    continue
                entry_errors = {}
                check_int(entry, 'asset_id', entry_errors, required=True, minimum=1, label='asset id')
                check_int(entry, 'quantity', entry_errors, minimum=1)
                for field, messages in entry_errors.items():
                    errors[f'assets.{index}.{field}'] = messages
        if errors:
            return validation_response(errors)

        added_assets = []
        skipped_assets = []

        for entry in entries:
            asset = db.session.get(Asset, int(entry['asset_id']))
            if not asset:
                skipped_assets.append({'asset_id': entry['asset_id'], 'reason': 'Asset not found'})
                continue

            quantity = int(entry.get('quantity') or 1)
            assignment = RentalUnitAsset.query.filter_by(rental_unit_id=unit.id, asset_id=asset.id).first()
            if assignment:
                assignment.quantity = quantity
                assignment.is_active = True
                assignment.set_status('working')
            else:
                assignment = RentalUnitAsset(
                    rental_unit_id=unit.id,
                    asset_id=asset.id,
                    quantity=quantity,
                    status='working',
                    is_active=True,
                )
                db.session.add(assignment)
            added_assets.append(assignment)

        db.session.commit()

        return jsonify({
            'message': 'Assets added to rental unit successfully',
            'added_assets': [a.to_dict(include_asset=True) for a in added_assets],
            'skipped_assets': skipped_assets
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to add assets to unit %s: %s', unit_id, e)
        return jsonify({'message': 'Failed to add assets to rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>/assets/<int:asset_id>', methods=['DELETE'])
@jwt_required()
@staff_required
def remove_unit_asset(unit_id, asset_id):
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        assignment = RentalUnitAsset.query.filter_by(
            rental_unit_id=unit.id, asset_id=asset_id, is_active=True
        ).first()
        if not assignment:
            return jsonify({'message': 'Asset is not assigned to this rental unit'}), 404

        assignment.deactivate()
        db.session.commit()

        return jsonify({'message': 'Asset removed from rental unit successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to remove asset %s from unit %s: %s', asset_id, unit_id, e)
        return jsonify({'message': 'Failed to remove asset from rental unit', 'error': str(e)}), 500


@rental_units_bp.route('/<int:unit_id>/assets/<int:asset_id>/status', methods=['PATCH', 'PUT'])
@jwt_required()
@active_user_required
def update_unit_asset_status(unit_id, asset_id):
    """Move an assigned asset between working and maintenance"""
    try:
        unit, error = _get_unit(unit_id)
        if error:
            return error

        data = request.get_json(silent=True) or {}
        errors = {}
        status = check_choice(data, 'status', ASSIGNMENT_STATUSES, errors, required=True)
        notes = check_string(data, 'maintenance_notes', errors, max_length=1000, label='maintenance notes')
        quantity = check_int(data, 'quantity', errors, minimum=1)
        if errors:
            return validation_response(errors)

        assignment = RentalUnitAsset.query.filter_by(
            rental_unit_id=unit.id, asset_id=asset_id, is_active=True
        ).first()
        if not assignment:
            return jsonify({'message': 'Asset is not assigned to this rental unit'}), 404

        assignment.set_status(status, notes)
        if quantity is not None:
            assignment.quantity = quantity

        db.session.commit()

        return jsonify({
            'message': 'Asset status updated successfully',
            'asset': assignment.to_dict(include_asset=True)
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update asset %s status on unit %s: %s', asset_id, unit_id, e)
        return jsonify({'message': 'Failed to update asset status', 'error': str(e)}), 500
