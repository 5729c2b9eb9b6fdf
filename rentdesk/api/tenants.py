import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import or_
from rentdesk import db
from rentdesk.models.tenant import Tenant, TENANT_STATUSES, GENDERS
from rentdesk.models.payment import Payment
from rentdesk.services.storage_service import StorageService
from rentdesk.utils.decorators import active_user_required, staff_required, admin_required
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_string, sanitize_search_query
from rentdesk.utils.validators import (
    validate_email, validate_phone, validation_response, read_payload, add_error, check_string,
    check_choice, check_date, check_mapping,
)

logger = logging.getLogger(__name__)

tenants_bp = Blueprint('tenants', __name__)

JSON_FIELDS = ['personal_info', 'contact_info', 'emergency_contact', 'employment_info', 'financial_info']


def _clean_mapping(values):
    return {k: sanitize_string(v) if isinstance(v, str) else v for k, v in (values or {}).items()}


def _validate_tenant(data, creating, existing=None):
    errors = {}
    cleaned = {}

    personal = check_mapping(data, 'personal_info', errors, required=creating, label='personal info')
    if personal is not None:
        nested = {}
        check_string(personal, 'firstName', nested, required=True, max_length=100, label='first name')
        check_string(personal, 'lastName', nested, required=True, max_length=100, label='last name')
        check_date(personal, 'dateOfBirth', nested, label='date of birth')
        check_choice(personal, 'gender', GENDERS, nested)
        check_string(personal, 'nationality', nested, max_length=100)
        check_string(personal, 'idNumber', nested, max_length=50, label='id number')
        for field, messages in nested.items():
            errors[f'personal_info.{field}'] = messages
        personal = _clean_mapping(personal)
    cleaned['personal_info'] = personal

    contact = check_mapping(data, 'contact_info', errors, required=creating, label='contact info')
    if contact is not None:
        nested = {}
        email = check_string(contact, 'email', nested, required=True, max_length=255)
        phone = check_string(contact, 'phone', nested, required=True, max_length=20)
        if email and not validate_email(email):
            add_error(nested, 'email', 'The email must be a valid email address.')
        if phone and not validate_phone(phone):
            add_error(nested, 'phone', 'The phone format is invalid.')
        for field, messages in nested.items():
            errors[f'contact_info.{field}'] = messages
        contact = _clean_mapping(contact)
        if contact.get('email'):
            contact['email'] = contact['email'].lower()
    cleaned['contact_info'] = contact

    for field in ('emergency_contact', 'employment_info', 'financial_info'):
        value = check_mapping(data, field, errors)
        cleaned[field] = _clean_mapping(value) if value is not None else None

    cleaned['status'] = check_choice(data, 'status', TENANT_STATUSES, errors)
    cleaned['notes'] = sanitize_string(check_string(data, 'notes', errors))
    cleaned['lease_start_date'] = check_date(data, 'lease_start_date', errors)
    cleaned['lease_end_date'] = check_date(data, 'lease_end_date', errors)

    start = cleaned['lease_start_date'] or (existing.lease_start_date if existing else None)
    end = cleaned['lease_end_date']
    if start and end and end < start:
        add_error(errors, 'lease_end_date', 'The lease end date must be a date after or equal to lease start date.')

    return cleaned, errors


def _store_documents(tenant):
    files = request.files.getlist('documents') if request.files else []
    if not files:
        return
    storage = StorageService()
    for file in files:
        if file and file.filename:
            tenant.add_document(storage.save_upload(file, folder='tenant_documents'))


@tenants_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@active_user_required
def get_tenants():
    try:
        search = sanitize_search_query(request.args.get('search', ''))
        status = request.args.get('status', '').strip()

        query = Tenant.query

        if search:
            query = query.filter(or_(
                Tenant.first_name.ilike(f'%{search}%'),
                Tenant.last_name.ilike(f'%{search}%'),
                Tenant.email.ilike(f'%{search}%')
            ))
        if status and status != 'all':
            query = query.filter(Tenant.status == status)

        tenants, meta = paginate(query.order_by(Tenant.created_at.desc(), Tenant.id.desc()))

        return jsonify({
            'tenants': [t.to_dict(include_units=True) for t in tenants],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch tenants: %s', e)
        return jsonify({'message': 'Failed to fetch tenants', 'error': str(e)}), 500


@tenants_bp.route('/<int:tenant_id>', methods=['GET'])
@jwt_required()
@active_user_required
def get_tenant(tenant_id):
    try:
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant:
            return jsonify({'message': 'Tenant not found'}), 404

        return jsonify({'tenant': tenant.to_dict(include_units=True)}), 200

    except Exception as e:
        logger.error('Failed to fetch tenant %s: %s', tenant_id, e)
        return jsonify({'message': 'Failed to fetch tenant', 'error': str(e)}), 500


@tenants_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@staff_required
def create_tenant():
    """Create a tenant from JSON or multipart form data with documents"""
    try:
        data = read_payload(JSON_FIELDS)
        cleaned, errors = _validate_tenant(data, creating=True)
        if errors:
            return validation_response(errors)

        tenant = Tenant(
            personal_info=cleaned['personal_info'],
            contact_info=cleaned['contact_info'],
            emergency_contact=cleaned['emergency_contact'] or {},
            employment_info=cleaned['employment_info'] or {},
            financial_info=cleaned['financial_info'] or {},
            documents=[],
            status=cleaned['status'] or 'active',
            notes=cleaned['notes'],
            lease_start_date=cleaned['lease_start_date'],
            lease_end_date=cleaned['lease_end_date'],
        )
        tenant.sync_search_fields()
        _store_documents(tenant)

        db.session.add(tenant)
        db.session.commit()

        return jsonify({
            'message': 'Tenant created successfully',
            'tenant': tenant.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create tenant: %s', e)
        return jsonify({'message': 'Failed to create tenant', 'error': str(e)}), 500


@tenants_bp.route('/<int:tenant_id>', methods=['PUT'])
@jwt_required()
@staff_required
def update_tenant(tenant_id):
    try:
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant:
            return jsonify({'message': 'Tenant not found'}), 404

        data = read_payload(JSON_FIELDS)
        cleaned, errors = _validate_tenant(data, creating=False, existing=tenant)
        if errors:
            return validation_response(errors)

        for field in JSON_FIELDS:
            if cleaned[field] is not None:
                setattr(tenant, field, cleaned[field])
        if cleaned['status']:
            tenant.status = cleaned['status']
        for field in ('notes', 'lease_start_date', 'lease_end_date'):
            if field in data:
                setattr(tenant, field, cleaned[field])

        tenant.sync_search_fields()
        _store_documents(tenant)
        db.session.commit()

        return jsonify({
            'message': 'Tenant updated successfully',
            'tenant': tenant.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update tenant %s: %s', tenant_id, e)
        return jsonify({'message': 'Failed to update tenant', 'error': str(e)}), 500


@tenants_bp.route('/<int:tenant_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_tenant(tenant_id):
    try:
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant:
            return jsonify({'message': 'Tenant not found'}), 404

        if tenant.rental_units.count():
            return jsonify({'message': 'Cannot delete a tenant assigned to a rental unit'}), 400

        documents = tenant.documents or []
        db.session.delete(tenant)
        db.session.commit()

        storage = StorageService()
        for document in documents:
            if document.get('path'):
                storage.delete(document['path'])

        return jsonify({'message': 'Tenant deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete tenant %s: %s', tenant_id, e)
        return jsonify({'message': 'Failed to delete tenant', 'error': str(e)}), 500


@tenants_bp.route('/<int:tenant_id>/payments', methods=['GET'])
@jwt_required()
@active_user_required
def get_tenant_payments(tenant_id):
    try:
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant:
            return jsonify({'message': 'Tenant not found'}), 404

        payments = tenant.payments.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

        return jsonify({
            'tenant': {'id': tenant.id, 'name': tenant.full_name},
            'payments': [p.to_dict() for p in payments]
        }), 200

    except Exception as e:
        logger.error('Failed to fetch payments for tenant %s: %s', tenant_id, e)
        return jsonify({'message': 'Failed to fetch tenant payments', 'error': str(e)}), 500
