from datetime import datetime
from rentdesk import db

TENANT_STATUSES = ['active', 'inactive', 'suspended']
GENDERS = ['male', 'female', 'other']


class Tenant(db.Model):
    __tablename__ = 'tenants'

    id = db.Column(db.Integer, primary_key=True)

    # {'firstName', 'lastName', 'dateOfBirth', 'gender', 'nationality', 'idNumber'}
    personal_info = db.Column(db.JSON, nullable=False, default=dict)
    # {'email', 'phone', 'address'}
    contact_info = db.Column(db.JSON, nullable=False, default=dict)
    emergency_contact = db.Column(db.JSON, default=dict)
    employment_info = db.Column(db.JSON, default=dict)
    financial_info = db.Column(db.JSON, default=dict)

    # [{'filename', 'path', 'uploaded_at'}]
    documents = db.Column(db.JSON, default=list)

    status = db.Column(db.String(20), default='active', index=True)
    notes = db.Column(db.Text, nullable=True)
    lease_start_date = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)

    # Denormalised for search
    first_name = db.Column(db.String(100), index=True)
    last_name = db.Column(db.String(100), index=True)
    email = db.Column(db.String(255), index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rental_units = db.relationship('RentalUnit', backref='tenant', lazy='dynamic')
    payments = db.relationship('Payment', backref='tenant', lazy='dynamic', cascade='all, delete-orphan')

    def sync_search_fields(self):
        personal = self.personal_info or {}
        contact = self.contact_info or {}
        self.first_name = personal.get('firstName')
        self.last_name = personal.get('lastName')
        self.email = contact.get('email')

    @property
    def full_name(self):
        personal = self.personal_info or {}
        return f"{personal.get('firstName', '')} {personal.get('lastName', '')}".strip()

    @property
    def phone(self):
        return (self.contact_info or {}).get('phone')

    def add_document(self, document):
        # Reassign so the JSON column is flagged dirty
        self.documents = list(self.documents or []) + [document]

    def to_dict(self, include_units=False):
        data = {
            'id': self.id,
            'personal_info': self.personal_info or {},
            'contact_info': self.contact_info or {},
            'emergency_contact': self.emergency_contact or {},
            'employment_info': self.employment_info or {},
            'financial_info': self.financial_info or {},
            'documents': self.documents or [],
            'status': self.status,
            'notes': self.notes,
            'lease_start_date': self.lease_start_date.isoformat() if self.lease_start_date else None,
            'lease_end_date': self.lease_end_date.isoformat() if self.lease_end_date else None,
            'full_name': self.full_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_units:
            data['rental_units'] = [u.to_dict(include_property=True) for u in self.rental_units]

        return data

    def __repr__(self):
        return f'<Tenant {self.full_name}>'
