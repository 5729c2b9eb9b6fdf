import logging
import re
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.role import Role, PERMISSION_MODULES, PERMISSION_ACTIONS
from rentdesk.models.audit_log import AuditLog
from rentdesk.utils.decorators import admin_required, get_current_user
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_search_query
from rentdesk.utils.validators import (
    validation_response, add_error, check_string, check_bool, check_list,
)

logger = logging.getLogger(__name__)

roles_bp = Blueprint('roles', __name__)

ROLE_NAME_PATTERN = re.compile(r'^[a-z][a-z0-9_]*$')


def _validate_role(data, role=None):
    creating = role is None
    errors = {}

    name = check_string(data, 'name', errors, required=creating, max_length=50)
    if name:
        name = name.lower()
        if not ROLE_NAME_PATTERN.match(name):
            add_error(errors, 'name', 'The name may only contain lowercase letters, numbers and underscores.')
        else:
            duplicate = Role.query.filter(Role.name == name)
            if role is not None:
                duplicate = duplicate.filter(Role.id != role.id)
            if duplicate.first():
                add_error(errors, 'name', 'Role name already exists.')

    display_name = check_string(data, 'display_name', errors, required=creating, max_length=100)
    description = check_string(data, 'description', errors, max_length=500)
    is_active = check_bool(data, 'is_active', errors)

    permissions = check_list(data, 'permissions', errors)
    if permissions is not None:
        for index, entry in enumerate(permissions):
            if not isinstance(entry, dict) or entry.get('module') not in PERMISSION_MODULES:
                add_error(errors, f'permissions.{index}.module', 'The selected module is invalid.')
                continue
            actions = entry.get('actions') or []
            if not isinstance(actions, list) or any(a not in PERMISSION_ACTIONS for a in actions):
                add_error(errors, f'permissions.{index}.actions', 'The selected actions are invalid.')

    return {
        'name': name,
        'display_name': display_name,
        'description': description,
        'is_active': is_active,
        'permissions': permissions,
    }, errors


@roles_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@admin_required
def get_roles():
    try:
        search = sanitize_search_query(request.args.get('search', ''))
        active_only = request.args.get('active_only', 'false').lower() == 'true'

        query = Role.query
        if active_only:
            query = query.filter(Role.is_active.is_(True))
        if search:
            query = query.filter(
                db.or_(
                    Role.name.ilike(f'%{search}%'),
                    Role.display_name.ilike(f'%{search}%')
                )
            )

        roles, meta = paginate(query.order_by(Role.name.asc()))

        return jsonify({
            'roles': [r.to_dict() for r in roles],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch roles: %s', e)
        return jsonify({'message': 'Failed to fetch roles', 'error': str(e)}), 500


@roles_bp.route('/<int:role_id>', methods=['GET'])
@jwt_required()
@admin_required
def get_role(role_id):
    try:
        role = db.session.get(Role, role_id)
        if not role:
            return jsonify({'message': 'Role not found'}), 404

        return jsonify({'role': role.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch role %s: %s', role_id, e)
        return jsonify({'message': 'Failed to fetch role', 'error': str(e)}), 500


@roles_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@admin_required
def create_role():
    try:
        data = request.get_json(silent=True) or {}
        cleaned, errors = _validate_role(data)
        if errors:
            return validation_response(errors)

        admin = get_current_user()
        role = Role(
            name=cleaned['name'],
            display_name=cleaned['display_name'],
            description=cleaned['description'],
            permissions=cleaned['permissions'] or [],
            is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
            created_by_id=admin.id,
        )
        db.session.add(role)
        db.session.flush()
        AuditLog.log('role_created', user_id=admin.id, resource_type='role', resource_id=role.id,
                     details={'name': role.name})
        db.session.commit()

        return jsonify({
            'message': 'Role created successfully',
            'role': role.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create role: %s', e)
        return jsonify({'message': 'Failed to create role', 'error': str(e)}), 500


@roles_bp.route('/<int:role_id>', methods=['PUT'])
@jwt_required()
@admin_required
def update_role(role_id):
    try:
        role = db.session.get(Role, role_id)
        if not role:
            return jsonify({'message': 'Role not found'}), 404

        data = request.get_json(silent=True) or {}
        cleaned, errors = _validate_role(data, role)
        if errors:
            return validation_response(errors)

        if role.is_system and cleaned['name'] and cleaned['name'] != role.name:
            return jsonify({'message': 'System roles cannot be renamed'}), 400

        for field in ('name', 'display_name'):
            if cleaned[field]:
                setattr(role, field, cleaned[field])
        if 'description' in data:
            role.description = cleaned['description']
        if cleaned['permissions'] is not None:
            role.permissions = cleaned['permissions']
        if cleaned['is_active'] is not None:
            role.is_active = cleaned['is_active']

        AuditLog.log('role_updated', user_id=get_current_user().id, resource_type='role', resource_id=role.id)
        db.session.commit()

        return jsonify({
            'message': 'Role updated successfully',
            'role': role.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update role %s: %s', role_id, e)
        return jsonify({'message': 'Failed to update role', 'error': str(e)}), 500


@roles_bp.route('/<int:role_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_role(role_id):
    try:
        role = db.session.get(Role, role_id)
        if not role:
            return jsonify({'message': 'Role not found'}), 404

        if role.is_system:
            return jsonify({'message': 'System roles cannot be deleted'}), 400

        users_count = role.users.count()
        if users_count:
            return jsonify({'message': f'Cannot delete role. {users_count} user(s) are assigned to this role'}), 400

        AuditLog.log('role_deleted', user_id=get_current_user().id, resource_type='role', resource_id=role.id,
                     details={'name': role.name})
        db.session.delete(role)
        db.session.commit()

        return jsonify({'message': 'Role deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete role %s: %s', role_id, e)
        return jsonify({'message': 'Failed to delete role', 'error': str(e)}), 500


@roles_bp.route('/<int:role_id>/users', methods=['GET'])
@jwt_required()
@admin_required
def get_role_users(role_id):
    try:
        role = db.session.get(Role, role_id)
        if not role:
            return jsonify({'message': 'Role not found'}), 404

        return jsonify({
            'role': role.to_dict(include_permissions=False),
            'users': [u.to_dict() for u in role.users]
        }), 200

    except Exception as e:
        logger.error('Failed to fetch users for role %s: %s', role_id, e)
        return jsonify({'message': 'Failed to fetch role users', 'error': str(e)}), 500
