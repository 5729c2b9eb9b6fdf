from datetime import datetime
from rentdesk import db

PERMISSION_MODULES = [
    'users', 'properties', 'tenants', 'payments', 'maintenance',
    'reports', 'settings', 'currencies', 'payment_types',
    'payment_modes', 'rental_units', 'assets', 'invoices', 'payment_records',
]

PERMISSION_ACTIONS = ['create', 'read', 'update', 'delete', 'manage']


class Role(db.Model):
    __tablename__ = 'roles'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)

    # [{'module': 'properties', 'actions': ['read', 'update']}, ...]
    permissions = db.Column(db.JSON, default=list)

    is_active = db.Column(db.Boolean, default=True, index=True)
    is_system = db.Column(db.Boolean, default=False)
    created_by_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def get_or_create(name, created_by_id=None):
        """Resolve a role by name, creating it on first use"""
        role = Role.query.filter_by(name=name).first()
        if not role:
            role = Role(
                name=name,
                display_name=name.replace('_', ' ').title(),
                description=f'Auto-created role for {name}',
                permissions=[],
                created_by_id=created_by_id,
            )
            db.session.add(role)
            db.session.flush()
        return role

    def permission_summary(self):
        return '; '.join(
            f"{p.get('module')}: {', '.join(p.get('actions') or [])}" for p in self.permissions or []
        )

    def to_dict(self, include_permissions=True):
        data = {
            'id': self.id,
            'name': self.name,
            'display_name': self.display_name,
            'description': self.description,
            'is_active': self.is_active,
            'is_system': self.is_system,
        }
        if include_permissions:
            data.update({
                'permissions': self.permissions or [],
                'permission_summary': self.permission_summary(),
                'users_count': self.users.count(),
                'created_by_id': self.created_by_id,
                'created_at': self.created_at.isoformat() if self.created_at else None,
            })
        return data

    def __repr__(self):
        return f'<Role {self.name}>'
