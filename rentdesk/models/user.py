from datetime import datetime, timedelta
from flask import current_app, has_app_context
from rentdesk import db
import bcrypt

USER_ROLES = ['admin', 'property_manager', 'accountant']

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION = timedelta(hours=2)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    mobile = db.Column(db.String(20), nullable=True)
    id_card_number = db.Column(db.String(50), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)

    role_id = db.Column(db.Integer, db.ForeignKey('roles.id'), nullable=True, index=True)
    # admin, property_manager, accountant
    legacy_role = db.Column(db.String(30), nullable=False, default='property_manager')

    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    login_attempts = db.Column(db.Integer, default=0)
    lock_until = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    role = db.relationship('Role', backref=db.backref('users', lazy='dynamic'),
                           foreign_keys=[role_id])
    managed_properties = db.relationship('Property', backref='assigned_manager', lazy='dynamic',
                                         foreign_keys='Property.assigned_manager_id')

    def set_password(self, password):
        """Hash and set user password"""
        rounds = current_app.config.get('BCRYPT_LOG_ROUNDS', 12) if has_app_context() else 12
        salt = bcrypt.gensalt(rounds=rounds)
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        if not self.password_hash:
            return False
        return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))

    def is_locked(self):
        return bool(self.lock_until and self.lock_until > datetime.utcnow())

    def register_failed_login(self):
        """Count a failed login and lock the account once the limit is reached"""
        if self.lock_until and self.lock_until <= datetime.utcnow():
            # expired lock, start counting again
            self.login_attempts = 0
            self.lock_until = None
        self.login_attempts = (self.login_attempts or 0) + 1
        if self.login_attempts >= MAX_LOGIN_ATTEMPTS:
            self.lock_until = datetime.utcnow() + LOCK_DURATION
        return self.is_locked()

    def register_successful_login(self):
        self.login_attempts = 0
        self.lock_until = None
        self.last_login = datetime.utcnow()

    def is_admin(self):
        return self.legacy_role == 'admin'

    def is_property_manager(self):
        return self.legacy_role == 'property_manager'

    def is_accountant(self):
        return self.legacy_role == 'accountant'

    def can_manage_property(self, property):
        """Admins and accountants see every property, managers only their own"""
        if self.is_property_manager():
            return property.assigned_manager_id == self.id
        return True

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'mobile': self.mobile,
            'id_card_number': self.id_card_number,
            'role': self.legacy_role,
            'role_id': self.role_id,
            'role_details': self.role.to_dict(include_permissions=False) if self.role else None,
            'is_active': self.is_active,
            'is_locked': self.is_locked(),
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'
