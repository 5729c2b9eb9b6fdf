from datetime import datetime
from rentdesk import db

ASSET_CATEGORIES = ['furniture', 'appliance', 'electronics', 'plumbing', 'electrical', 'hvac', 'security', 'other']
ASSET_STATUSES = ['working', 'faulty', 'maintenance', 'retired']


class Asset(db.Model):
    __tablename__ = 'assets'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    brand = db.Column(db.String(50), nullable=True)
    serial_no = db.Column(db.String(100), nullable=True, index=True)
    category = db.Column(db.String(30), default='other', index=True)
    status = db.Column(db.String(20), default='working', index=True)
    maintenance_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignments = db.relationship('RentalUnitAsset', backref='asset', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def set_status(self, status, maintenance_notes=None):
        self.status = status
        if status == 'maintenance':
            if maintenance_notes is not None:
                self.maintenance_notes = maintenance_notes
        else:
            self.maintenance_notes = None

    def has_active_assignment(self):
        return self.assignments.filter_by(is_active=True).first() is not None

    def to_dict(self, include_units=False):
        data = {
            'id': self.id,
            'name': self.name,
            'brand': self.brand,
            'serial_no': self.serial_no,
            'category': self.category,
            'status': self.status,
            'maintenance_notes': self.maintenance_notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_units:
            data['rental_units'] = [
                a.to_dict(include_unit=True) for a in self.assignments.filter_by(is_active=True)
            ]

        return data

    def __repr__(self):
        return f'<Asset {self.name}>'
