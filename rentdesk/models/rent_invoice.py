from datetime import datetime, date
from rentdesk import db

INVOICE_STATUSES = ['pending', 'paid', 'overdue', 'cancelled']


class RentInvoice(db.Model):
    __tablename__ = 'rent_invoices'

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(100), unique=True, nullable=False, index=True)

    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    rental_unit_id = db.Column(db.Integer, db.ForeignKey('rental_units.id'), nullable=False, index=True)

    invoice_date = db.Column(db.Date, nullable=False, index=True)
    due_date = db.Column(db.Date, nullable=False)

    rent_amount = db.Column(db.Numeric(12, 2), nullable=False)
    late_fee = db.Column(db.Numeric(12, 2), default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), default='MVR')

    # Status: pending, paid, overdue, cancelled
    status = db.Column(db.String(20), default='pending', index=True)
    paid_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    payment_details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenant = db.relationship('Tenant', backref=db.backref('rent_invoices', lazy='dynamic',
                                                         cascade='all, delete-orphan'))
    property = db.relationship('Property', backref=db.backref('rent_invoices', lazy='dynamic',
                                                             cascade='all, delete-orphan'))
    rental_unit = db.relationship('RentalUnit', backref=db.backref('rent_invoices', lazy='dynamic',
                                                                  cascade='all, delete-orphan'))

    def recalculate_total(self):
        self.total_amount = float(self.rent_amount or 0) + float(self.late_fee or 0)

    def mark_as_paid(self, paid_on=None, payment_details=None, notes=None):
        """Mark invoice as paid"""
        self.status = 'paid'
        self.paid_date = paid_on or date.today()
        if payment_details is not None:
            self.payment_details = payment_details
        if notes is not None:
            self.notes = notes

    def is_overdue(self, today=None):
        today = today or date.today()
        return self.status in ('pending', 'overdue') and self.due_date < today

    def days_overdue(self, today=None):
        today = today or date.today()
        if not self.is_overdue(today):
            return 0
        return (today - self.due_date).days

    def to_dict(self):
        data = {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'tenant_id': self.tenant_id,
            'property_id': self.property_id,
            'rental_unit_id': self.rental_unit_id,
            'invoice_date': self.invoice_date.isoformat() if self.invoice_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'rent_amount': float(self.rent_amount),
            'late_fee': float(self.late_fee or 0),
            'total_amount': float(self.total_amount),
            'currency': self.currency,
            'status': self.status,
            'paid_date': self.paid_date.isoformat() if self.paid_date else None,
            'notes': self.notes,
            'payment_details': self.payment_details,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if self.tenant:
            data['tenant'] = {'id': self.tenant.id, 'name': self.tenant.full_name}
        if self.property:
            data['property'] = {'id': self.property.id, 'name': self.property.name}
        if self.rental_unit:
            data['rental_unit'] = {'id': self.rental_unit.id, 'unit_number': self.rental_unit.unit_number}

        return data

    def __repr__(self):
        return f'<RentInvoice {self.invoice_number}>'
