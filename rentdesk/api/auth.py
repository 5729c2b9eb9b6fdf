import logging
from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, jwt_required
from rentdesk import db, limiter
from rentdesk.models.user import User, USER_ROLES
from rentdesk.models.role import Role
from rentdesk.models.audit_log import AuditLog
from rentdesk.utils.decorators import get_current_user, active_user_required
from rentdesk.utils.validators import (
    validate_email, validate_password, validation_response, add_error, check_string,
)
from rentdesk.utils.sanitizers import sanitize_string

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.legacy_role})


@auth_bp.route('/register', methods=['POST'])
def register():
    """Register a new user"""
    try:
        data = request.get_json(silent=True) or {}

        errors = {}
        name = sanitize_string(check_string(data, 'name', errors, required=True, max_length=255))
        email = (check_string(data, 'email', errors, required=True, max_length=255) or '').lower()
        password = data.get('password') or ''
        role_name = data.get('role') or 'property_manager'

        if email and not validate_email(email):
            add_error(errors, 'email', 'The email must be a valid email address.')
        elif email and User.query.filter_by(email=email).first():
            add_error(errors, 'email', 'The email has already been taken.')

        if not validate_password(password):
            add_error(errors, 'password', 'The password must be at least 6 characters.')

        if role_name not in USER_ROLES:
            add_error(errors, 'role', 'The selected role is invalid.')

        if errors:
            return validation_response(errors)

        role = Role.get_or_create(role_name)
        user = User(
            name=name,
            email=email,
            legacy_role=role_name,
            role_id=role.id,
            is_active=True,
        )
        user.set_password(password)

        db.session.add(user)
        db.session.flush()
        AuditLog.log('user_registered', user_id=user.id, resource_type='user', resource_id=user.id)
        db.session.commit()

        return jsonify({
            'message': 'User registered successfully',
            'user': user.to_dict(),
            'token': issue_token(user),
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error('Registration failed: %s', e)
        return jsonify({'message': 'Registration failed', 'error': str(e)}), 500


@auth_bp.route('/login', methods=['POST'])
@limiter.limit('5 per minute')
def login():
    """Login user"""
    try:
        data = request.get_json(silent=True) or {}

        email = (sanitize_string(data.get('email')) or '').lower()
        password = data.get('password') or ''

        if not email or not password:
            return jsonify({'message': 'Email and password are required'}), 400

        user = User.query.filter_by(email=email).first()

        if not user:
            return jsonify({'message': 'Invalid credentials'}), 401

        if user.is_locked():
            return jsonify({'message': 'Account is temporarily locked due to too many failed login attempts'}), 401

        if not user.check_password(password):
            if user.register_failed_login():
                logger.warning('Account %s locked after %d failed logins', user.email, user.login_attempts)
            db.session.commit()
            return jsonify({'message': 'Invalid credentials'}), 401

        if not user.is_active:
            return jsonify({'message': 'Account is deactivated'}), 401

        user.register_successful_login()
        db.session.commit()

        return jsonify({
            'message': 'Login successful',
            'user': user.to_dict(),
            'token': issue_token(user),
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Login failed: %s', e)
        return jsonify({'message': 'Login failed', 'error': str(e)}), 500


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Tokens are stateless; the client discards its copy"""
    return jsonify({'message': 'Logged out successfully'}), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
@active_user_required
def get_current_user_info():
    """Get current user information"""
    try:
        return jsonify({'user': get_current_user().to_dict()}), 200

    except Exception as e:
        logger.error('Failed to fetch current user: %s', e)
        return jsonify({'message': 'Failed to fetch user info', 'error': str(e)}), 500


@auth_bp.route('/profile', methods=['PUT'])
@jwt_required()
@active_user_required
def update_profile():
    """Update the current user's name, email or mobile"""
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}

        errors = {}
        name = check_string(data, 'name', errors, max_length=255)
        email = check_string(data, 'email', errors, max_length=255)
        mobile = check_string(data, 'mobile', errors, max_length=20)

        if email:
            email = email.lower()
            if not validate_email(email):
                add_error(errors, 'email', 'The email must be a valid email address.')
            elif User.query.filter(User.email == email, User.id != user.id).first():
                add_error(errors, 'email', 'The email has already been taken.')

        if errors:
            return validation_response(errors)

        if name:
            user.name = sanitize_string(name)
        if email:
            user.email = email
        if 'mobile' in data:
            user.mobile = mobile

        db.session.commit()

        return jsonify({
            'message': 'Profile updated successfully',
            'user': user.to_dict()
        }), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to update profile: %s', e)
        return jsonify({'message': 'Failed to update profile', 'error': str(e)}), 500


@auth_bp.route('/change-password', methods=['POST'])
@jwt_required()
@active_user_required
def change_password():
    """Change password for the logged-in user"""
    try:
        user = get_current_user()
        data = request.get_json(silent=True) or {}

        current_password = data.get('current_password') or ''
        new_password = data.get('new_password') or ''

        errors = {}
        if not current_password:
            add_error(errors, 'current_password', 'The current password field is required.')
        if not validate_password(new_password):
            add_error(errors, 'new_password', 'The new password must be at least 6 characters.')
        if errors:
            return validation_response(errors)

        if not user.check_password(current_password):
            return jsonify({'message': 'Current password is incorrect'}), 400

        user.set_password(new_password)
        AuditLog.log('password_changed', user_id=user.id, resource_type='user', resource_id=user.id)
        db.session.commit()

        return jsonify({'message': 'Password changed successfully'}), 200

    except Exception as e:
        db.session.rollback()
        logger.error('Failed to change password: %s', e)
        return jsonify({'message': 'Failed to change password', 'error': str(e)}), 500
