import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk import db
from rentdesk.models.user import User, USER_ROLES
from rentdesk.models.role import Role
from rentdesk.models.audit_log import AuditLog
from rentdesk.utils.decorators import admin_required, get_current_user
from rentdesk.utils.pagination import paginate
from rentdesk.utils.sanitizers import sanitize_string, sanitize_search_query
from rentdesk.utils.validators import (
    validate_email, validate_password, validation_response, add_error,
    check_string, check_bool,
)

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__)


def _validate_user(data, user=None):
    """Validate a create (user is None) or partial update payload"""
    creating = user is None
    errors = {}
    cleaned = {}

    cleaned['name'] = check_string(data, 'name', errors, required=creating, max_length=255)
    email = check_string(data, 'email', errors, required=creating, max_length=255)
    cleaned['mobile'] = check_string(data, 'mobile', errors, max_length=20)
    cleaned['id_card_number'] = check_string(data, 'id_card_number', errors, max_length=50)
    cleaned['is_active'] = check_bool(data, 'is_active', errors)

    if email:
        email = email.lower()
        duplicate = User.query.filter(User.email == email)
        if user is not None:
            duplicate = duplicate.filter(User.id != user.id)
        if not validate_email(email):
            add_error(errors, 'email', 'The email must be a valid email address.')
        elif duplicate.first():
            add_error(errors, 'email', 'The email has already been taken.')
    cleaned['email'] = email

    if creating or data.get('password'):
        if not validate_password(data.get('password')):
            add_error(errors, 'password', 'The password must be at least 6 characters.')
    cleaned['password'] = data.get('password')

    role = check_string(data, 'role', errors, required=creating, max_length=50)
    cleaned['role'] = role

    return cleaned, errors


def _apply_role(user, role_name, created_by_id):
    role = Role.get_or_create(role_name, created_by_id=created_by_id)
    user.role_id = role.id
    user.legacy_role = role_name if role_name in USER_ROLES else 'property_manager'


@users_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@admin_required
def get_users():
    """Get all users (admin only)"""
    try:
        search = sanitize_search_query(request.args.get('search', ''))
        role = request.args.get('role', '').strip()
        status = request.args.get('status', '').strip()

        query = User.query

        if search:
            query = query.filter(
                db.or_(
                    User.name.ilike(f'%{search}%'),
                    User.email.ilike(f'%{search}%')
                )
            )

        if role and role != 'all':
            query = query.filter(User.legacy_role == role)

        if status == 'active':
            query = query.filter(User.is_active.is_(True))
        elif status == 'inactive':
            query = query.filter(User.is_active.is_(False))

        users, meta = paginate(query.order_by(User.created_at.desc()))

        return jsonify({
            'users': [u.to_dict() for u in users],
            'pagination': meta
        }), 200

    except Exception as e:
        logger.error('Failed to fetch users: %s', e)
        return jsonify({'message': 'Failed to fetch users', 'error': str(e)}), 500


@users_bp.route('/<int:user_id>', methods=['GET'])
@jwt_required()
@admin_required
def get_user(user_id):
    """Get a single user by ID (admin only)"""
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({'message': 'User not found'}), 404

        return jsonify({'user': user.to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch user %s: %s', user_id, e)
        return jsonify({'message': 'Failed to fetch user', 'error': str(e)}), 500


@users_bp.route('/', methods=['POST'], strict_slashes=False)
@jwt_required()
@admin_required
def create_user():
    """Create a user, resolving (or creating) their role by name"""
    try:
        data = request.get_json(silent=True) or {}
        cleaned, errors = _validate_user(data)
        if errors:
            return validation_response(errors)

        admin = get_current_user()
        user = User(
            name=sanitize_string(cleaned['name']),
            email=cleaned['email'],
            mobile=cleaned['mobile'],
            id_card_number=cleaned['id_card_number'],
            is_active=cleaned['is_active'] if cleaned['is_active'] is not None else True,
        )
        user.set_password(cleaned['password'])
        _apply_role(user, cleaned['role'], admin.id)

        db.session.add(user)
        db.session.flush()
        AuditLog.log('user_created', user_id=admin.id, resource_type='user', resource_id=user.id,
                     details={'email': user.email, 'role': cleaned['role']})
        db.session.commit()

        return jsonify({
            'message': 'User created successfully',
            'user': user.to_dict()
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to create user: %s', e)
        return jsonify({'message': 'Failed to create user', 'error': str(e)}), 500


@users_bp.route('/<int:user_id>', methods=['PUT'])
@jwt_required()
@admin_required
def update_user(user_id):
    """Update user details (admin only)"""
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({'message': 'User not found'}), 404

        data = request.get_json(silent=True) or {}
        cleaned, errors = _validate_user(data, user)
        if errors:
            return validation_response(errors)

        admin = get_current_user()

        if cleaned['name']:
            user.name = sanitize_string(cleaned['name'])
        if cleaned['email']:
            user.email = cleaned['email']
        if 'mobile' in data:
            user.mobile = cleaned['mobile']
        if 'id_card_number' in data:
            user.id_card_number = cleaned['id_card_number']
        if cleaned['is_active'] is not None:
            user.is_active = cleaned['is_active']
        if cleaned['password']:
            user.set_password(cleaned['password'])
        if cleaned['role']:
            _apply_role(user, cleaned['role'], admin.id)

        AuditLog.log('user_updated', user_id=admin.id, resource_type='user', resource_id=user.id,
                     details={'fields': sorted(k for k in data.keys() if k != 'password')})
        db.session.commit()

        return jsonify({
            'message': 'User updated successfully',
            'user': user.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update user %s: %s', user_id, e)
        return jsonify({'message': 'Failed to update user', 'error': str(e)}), 500


@users_bp.route('/<int:user_id>', methods=['DELETE'])
@jwt_required()
@admin_required
def delete_user(user_id):
    """Delete a user (admin only)"""
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({'message': 'User not found'}), 404

        admin = get_current_user()
        if user.id == admin.id:
            return jsonify({'message': 'You cannot delete your own account'}), 400

        AuditLog.log('user_deleted', user_id=admin.id, resource_type='user', resource_id=user.id,
                     details={'email': user.email})
        db.session.delete(user)
        db.session.commit()

        return jsonify({'message': 'User deleted successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to delete user %s: %s', user_id, e)
        return jsonify({'message': 'Failed to delete user', 'error': str(e)}), 500


@users_bp.route('/<int:user_id>/reset-password', methods=['POST'])
@jwt_required()
@admin_required
def reset_password(user_id):
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({'message': 'User not found'}), 404

        data = request.get_json(silent=True) or {}
        new_password = data.get('new_password') or ''
        if not validate_password(new_password):
            return validation_response({'new_password': ['The new password must be at least 6 characters.']})

        user.set_password(new_password)
        user.login_attempts = 0
        user.lock_until = None
        AuditLog.log('password_reset', user_id=get_current_user().id, resource_type='user', resource_id=user.id)
        db.session.commit()

        return jsonify({'message': 'Password reset successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to reset password for user %s: %s', user_id, e)
        return jsonify({'message': 'Failed to reset password', 'error': str(e)}), 500


@users_bp.route('/<int:user_id>/toggle-status', methods=['POST'])
@jwt_required()
@admin_required
def toggle_user_status(user_id):
    """Activate or deactivate a user account"""
    try:
        user = db.session.get(User, user_id)
        if not user:
            return jsonify({'message': 'User not found'}), 404

        admin = get_current_user()
        if user.id == admin.id:
            return jsonify({'message': 'You cannot deactivate your own account'}), 400

        user.is_active = not user.is_active
        AuditLog.log('user_status_toggled', user_id=admin.id, resource_type='user', resource_id=user.id,
                     details={'is_active': user.is_active})
        db.session.commit()

        state = 'activated' if user.is_active else 'deactivated'
        return jsonify({
            'message': f'User {state} successfully',
            'user': user.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to toggle status for user %s: %s', user_id, e)
        return jsonify({'message': 'Failed to update user status', 'error': str(e)}), 500
