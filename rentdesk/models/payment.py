from datetime import datetime
from rentdesk import db

PAYMENT_TYPES = ['rent', 'deposit', 'maintenance', 'utility', 'other']
PAYMENT_METHODS = ['cash', 'bank_transfer', 'cheque', 'card', 'mobile']
PAYMENT_STATUSES = ['pending', 'completed', 'failed', 'refunded']


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    rental_unit_id = db.Column(db.Integer, db.ForeignKey('rental_units.id'), nullable=True)

    # Payment Details
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), default='MVR')
    payment_type = db.Column(db.String(50), nullable=False)
    payment_method = db.Column(db.String(50), nullable=False)
    payment_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)
    description = db.Column(db.Text, nullable=True)
    reference_number = db.Column(db.String(100), nullable=True, index=True)

    # Status: pending, completed, failed, refunded
    status = db.Column(db.String(20), default='pending', index=True)

    # 'metadata' is reserved on declarative models
    extra_data = db.Column('metadata', db.JSON, default=dict)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property = db.relationship('Property', foreign_keys=[property_id],
                               backref=db.backref('payments', lazy='dynamic', cascade='all, delete-orphan'))
    rental_unit = db.relationship('RentalUnit', foreign_keys=[rental_unit_id],
                                  backref=db.backref('payments', lazy='dynamic'))

    def complete(self):
        """Mark payment as completed"""
        self.status = 'completed'

    def to_dict(self):
        data = {
            'id': self.id,
            'tenant_id': self.tenant_id,
            'property_id': self.property_id,
            'rental_unit_id': self.rental_unit_id,
            'amount': float(self.amount),
            'currency': self.currency,
            'payment_type': self.payment_type,
            'payment_method': self.payment_method,
            'payment_date': self.payment_date.isoformat() if self.payment_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'description': self.description,
            'reference_number': self.reference_number,
            'status': self.status,
            'metadata': self.extra_data or {},
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if self.tenant:
            data['tenant'] = {'id': self.tenant.id, 'name': self.tenant.full_name}
        if self.property:
            data['property'] = {'id': self.property.id, 'name': self.property.name}

        return data

    def __repr__(self):
        return f'<Payment {self.id}>'
