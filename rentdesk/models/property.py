from datetime import datetime
from rentdesk import db

PROPERTY_TYPES = ['house', 'apartment', 'villa', 'commercial', 'office', 'shop', 'warehouse', 'land']
PROPERTY_STATUSES = ['occupied', 'vacant', 'maintenance', 'renovation']


class Property(db.Model):
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(50), nullable=False)

    # Address
    street = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False, index=True)
    island = db.Column(db.String(100), nullable=False, index=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(100), default='Maldives')

    # Details
    number_of_floors = db.Column(db.Integer, nullable=False, default=1)
    number_of_rental_units = db.Column(db.Integer, nullable=False, default=1)
    bedrooms = db.Column(db.Integer, nullable=False, default=0)
    bathrooms = db.Column(db.Integer, nullable=False, default=0)
    square_feet = db.Column(db.Integer, nullable=True)
    year_built = db.Column(db.Integer, nullable=True)
    description = db.Column(db.Text, nullable=True)

    # occupied, vacant, partially_occupied, maintenance, renovation
    status = db.Column(db.String(30), default='vacant', index=True)

    photos = db.Column(db.JSON, default=list)
    amenities = db.Column(db.JSON, default=list)

    assigned_manager_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    rental_units = db.relationship('RentalUnit', backref='property', lazy='dynamic',
                                   cascade='all, delete-orphan')
    maintenance_requests = db.relationship('MaintenanceRequest', backref='property', lazy='dynamic',
                                           cascade='all, delete-orphan')

    @property
    def address(self):
        return {
            'street': self.street,
            'city': self.city,
            'island': self.island,
            'postalCode': self.postal_code,
            'country': self.country,
        }

    def to_dict(self, include_units=False):
        data = {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'address': self.address,
            'number_of_floors': self.number_of_floors,
            'number_of_rental_units': self.number_of_rental_units,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'square_feet': self.square_feet,
            'year_built': self.year_built,
            'description': self.description,
            'status': self.status,
            'photos': self.photos or [],
            'amenities': self.amenities or [],
            'assigned_manager_id': self.assigned_manager_id,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        if self.assigned_manager:
            data['assigned_manager'] = {
                'id': self.assigned_manager.id,
                'name': self.assigned_manager.name,
                'email': self.assigned_manager.email,
            }

        if include_units:
            data['rental_units'] = [u.to_dict() for u in self.rental_units]

        return data

    def __repr__(self):
        return f'<Property {self.name}>'
