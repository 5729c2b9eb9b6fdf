from datetime import datetime
from rentdesk import db


class PaymentRecord(db.Model):
    """A recorded receipt against a rental unit, typed by payment type and mode"""
    __tablename__ = 'payment_records'

    id = db.Column(db.Integer, primary_key=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('rental_units.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_type_id = db.Column(db.Integer, db.ForeignKey('payment_types.id'), nullable=False, index=True)
    payment_mode_id = db.Column(db.Integer, db.ForeignKey('payment_modes.id'), nullable=False, index=True)
    paid_date = db.Column(db.Date, nullable=False)
    paid_by = db.Column(db.String(255), nullable=True)
    mobile_no = db.Column(db.String(20), nullable=True)

    # Transfer details
    blaz_no = db.Column(db.String(100), nullable=True)
    account_name = db.Column(db.String(255), nullable=True)
    account_no = db.Column(db.String(100), nullable=True)
    bank = db.Column(db.String(100), nullable=True)
    cheque_no = db.Column(db.String(100), nullable=True)

    currency_id = db.Column(db.Integer, db.ForeignKey('currencies.id'), nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    unit = db.relationship('RentalUnit', backref=db.backref('payment_records', lazy='dynamic',
                                                           cascade='all, delete-orphan'))
    payment_type = db.relationship('PaymentType', backref=db.backref('payment_records', lazy='dynamic'))
    payment_mode = db.relationship('PaymentMode', backref=db.backref('payment_records', lazy='dynamic'))
    currency = db.relationship('Currency')
    created_by = db.relationship('User')

    def to_dict(self):
        """Flattened view used by the payment records screens"""
        unit = self.unit
        tenant = unit.tenant if unit else None
        return {
            'id': self.id,
            'unit_id': self.unit_id,
            'tenant': {'id': tenant.id, 'name': tenant.full_name} if tenant else None,
            'property': {'id': unit.property.id, 'name': unit.property.name} if unit and unit.property else None,
            'unit': {'id': unit.id, 'unit_number': unit.unit_number} if unit else None,
            'amount': float(self.amount),
            'payment_type': self.payment_type.name if self.payment_type else None,
            'payment_type_id': self.payment_type_id,
            'payment_mode': self.payment_mode.name if self.payment_mode else None,
            'payment_mode_id': self.payment_mode_id,
            'paid_date': self.paid_date.isoformat() if self.paid_date else None,
            'paid_by': self.paid_by,
            'mobile_no': self.mobile_no,
            'reference_number': self.blaz_no,
            'account_name': self.account_name,
            'account_no': self.account_no,
            'bank': self.bank,
            'cheque_no': self.cheque_no,
            'currency': self.currency.code if self.currency else None,
            'remarks': self.remarks,
            'status': 'active' if self.is_active else 'inactive',
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<PaymentRecord {self.id}>'
