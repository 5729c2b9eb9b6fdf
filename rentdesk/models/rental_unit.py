from datetime import datetime, date
from rentdesk import db

UNIT_STATUSES = ['available', 'occupied', 'maintenance', 'renovation']
ASSIGNMENT_STATUSES = ['working', 'maintenance']


class RentalUnit(db.Model):
    __tablename__ = 'rental_units'
    __table_args__ = (
        db.UniqueConstraint('property_id', 'unit_number', name='uq_rental_units_property_unit_number'),
    )

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    unit_number = db.Column(db.String(50), nullable=False)
    floor_number = db.Column(db.Integer, nullable=False, default=1)

    # {'numberOfRooms': 2, 'numberOfToilets': 1}
    unit_details = db.Column(db.JSON, default=dict)
    # {'rentAmount': 8000, 'depositAmount': 16000, 'currency': 'MVR'}
    financial = db.Column(db.JSON, default=dict)

    status = db.Column(db.String(20), default='available', index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=True, index=True)
    move_in_date = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)

    amenities = db.Column(db.JSON, default=list)
    photos = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    asset_assignments = db.relationship('RentalUnitAsset', backref='rental_unit', lazy='dynamic',
                                        cascade='all, delete-orphan')

    @property
    def number_of_rooms(self):
        return int((self.unit_details or {}).get('numberOfRooms') or 0)

    @property
    def number_of_toilets(self):
        return int((self.unit_details or {}).get('numberOfToilets') or 0)

    @property
    def rent_amount(self):
        return float((self.financial or {}).get('rentAmount') or 0)

    @property
    def currency(self):
        return (self.financial or {}).get('currency') or 'MVR'

    def assign_tenant(self, tenant_id, move_in_date=None):
        """Occupy the unit, defaulting the move-in date to today"""
        self.tenant_id = tenant_id
        self.status = 'occupied'
        if move_in_date:
            self.move_in_date = move_in_date
        elif not self.move_in_date:
            self.move_in_date = date.today()

    def release_tenant(self):
        self.tenant_id = None
        self.status = 'available'
        self.move_in_date = None
        self.lease_end_date = None

    def active_assets(self):
        return self.asset_assignments.filter_by(is_active=True).all()

    def to_dict(self, include_property=False, include_tenant=False, include_assets=False):
        data = {
            'id': self.id,
            'property_id': self.property_id,
            'unit_number': self.unit_number,
            'floor_number': self.floor_number,
            'unit_details': self.unit_details or {},
            'financial': self.financial or {},
            'status': self.status,
            'tenant_id': self.tenant_id,
            'move_in_date': self.move_in_date.isoformat() if self.move_in_date else None,
            'lease_end_date': self.lease_end_date.isoformat() if self.lease_end_date else None,
            'amenities': self.amenities or [],
            'photos': self.photos or [],
            'notes': self.notes,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_property and self.property:
            data['property'] = {
                'id': self.property.id,
                'name': self.property.name,
                'address': self.property.address,
            }

        if include_tenant and self.tenant:
            data['tenant'] = {
                'id': self.tenant.id,
                'name': self.tenant.full_name,
                'email': self.tenant.email,
                'phone': self.tenant.phone,
            }

        if include_assets:
            data['assets'] = [a.to_dict(include_asset=True) for a in self.active_assets()]

        return data

    def __repr__(self):
        return f'<RentalUnit {self.unit_number}>'


class RentalUnitAsset(db.Model):
    """Assignment of an asset to a rental unit"""
    __tablename__ = 'rental_unit_assets'

    id = db.Column(db.Integer, primary_key=True)
    rental_unit_id = db.Column(db.Integer, db.ForeignKey('rental_units.id'), nullable=False, index=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False, index=True)
    assigned_date = db.Column(db.Date, default=date.today)
    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, index=True)
    quantity = db.Column(db.Integer, default=1)
    status = db.Column(db.String(20), default='working', index=True)
    maintenance_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    maintenance_costs = db.relationship('MaintenanceCost', backref='rental_unit_asset', lazy='dynamic',
                                        cascade='all, delete-orphan')

    def set_status(self, status, maintenance_notes=None):
        self.status = status
        if status == 'maintenance':
            if maintenance_notes is not None:
                self.maintenance_notes = maintenance_notes
        else:
            self.maintenance_notes = None

    def deactivate(self):
        self.is_active = False

    def latest_maintenance_cost(self):
        from rentdesk.models.maintenance import MaintenanceCost
        return self.maintenance_costs.order_by(MaintenanceCost.created_at.desc(),
                                               MaintenanceCost.id.desc()).first()

    def to_dict(self, include_asset=False, include_unit=False):
        data = {
            'id': self.id,
            'rental_unit_id': self.rental_unit_id,
            'asset_id': self.asset_id,
            'assigned_date': self.assigned_date.isoformat() if self.assigned_date else None,
            'notes': self.notes,
            'is_active': self.is_active,
            'quantity': self.quantity,
            'status': self.status,
            'maintenance_notes': self.maintenance_notes,
        }

        if include_asset and self.asset:
            data['asset'] = {
                'id': self.asset.id,
                'name': self.asset.name,
                'brand': self.asset.brand,
                'serial_no': self.asset.serial_no,
                'category': self.asset.category,
            }

        if include_unit and self.rental_unit:
            unit = self.rental_unit
            data['rental_unit'] = {
                'id': unit.id,
                'unit_number': unit.unit_number,
                'floor_number': unit.floor_number,
                'property': {
                    'id': unit.property.id,
                    'name': unit.property.name,
                } if unit.property else None,
            }

        return data

    def __repr__(self):
        return f'<RentalUnitAsset unit={self.rental_unit_id} asset={self.asset_id}>'
