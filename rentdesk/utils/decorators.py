from functools import wraps
from flask import jsonify, g
from flask_jwt_extended import get_jwt_identity
from rentdesk import db
from rentdesk.models.user import User


def get_current_user():
    """Load the user behind the current JWT, cached on flask.g"""
    if 'current_user' not in g:
        identity = get_jwt_identity()
        g.current_user = db.session.get(User, int(identity)) if identity is not None else None
    return g.current_user


def roles_required(*roles):
    """Decorator to require one of the given legacy roles"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = get_current_user()

            if not user:
                return jsonify({'message': 'User not found'}), 404

            if not user.is_active:
                return jsonify({'message': 'Account is deactivated'}), 401

            if user.legacy_role not in roles:
                return jsonify({'message': 'Insufficient permissions'}), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    """Decorator to require admin role"""
    return roles_required('admin')(fn)


def staff_required(fn):
    """Decorator to require admin or property manager"""
    return roles_required('admin', 'property_manager')(fn)


def active_user_required(fn):
    """Decorator to reject deleted or deactivated users holding a valid token"""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = get_current_user()

        if not user:
            return jsonify({'message': 'User not found'}), 404

        if not user.is_active:
            return jsonify({'message': 'Account is deactivated'}), 401

        return fn(*args, **kwargs)
    return wrapper


def get_accessible_property(property_id):
    """Return (property, None) or (None, error response) for the current user"""
    from rentdesk.models.property import Property

    property = db.session.get(Property, property_id)
    if not property:
        return None, (jsonify({'message': 'Property not found'}), 404)

    user = get_current_user()
    if user and not user.can_manage_property(property):
        return None, (jsonify({'message': 'Access denied to this property'}), 403)

    return property, None
