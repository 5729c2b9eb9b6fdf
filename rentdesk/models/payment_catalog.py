from datetime import datetime
from rentdesk import db


class CatalogMixin:
    """Shared columns for simple named lookup tables"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class PaymentType(CatalogMixin, db.Model):
    __tablename__ = 'payment_types'

    def __repr__(self):
        return f'<PaymentType {self.name}>'


class PaymentMode(CatalogMixin, db.Model):
    __tablename__ = 'payment_modes'

    def __repr__(self):
        return f'<PaymentMode {self.name}>'
