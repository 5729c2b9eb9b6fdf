from datetime import datetime, date
from rentdesk import db

REQUEST_PRIORITIES = ['low', 'medium', 'high']
REQUEST_STATUSES = ['pending', 'in_progress', 'completed', 'cancelled']
COST_STATUSES = ['draft', 'pending', 'paid', 'rejected']


class MaintenanceRequest(db.Model):
    __tablename__ = 'maintenance_requests'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    rental_unit_id = db.Column(db.Integer, db.ForeignKey('rental_units.id'), nullable=True, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('tenants.id'), nullable=True, index=True)

    priority = db.Column(db.String(10), default='medium', index=True)
    status = db.Column(db.String(20), default='pending', index=True)

    request_date = db.Column(db.Date, default=date.today)
    scheduled_date = db.Column(db.Date, nullable=True)
    completed_date = db.Column(db.DateTime, nullable=True)

    assigned_to = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    estimated_cost = db.Column(db.Numeric(12, 2), nullable=True)
    actual_cost = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    rental_unit = db.relationship('RentalUnit', foreign_keys=[rental_unit_id],
                                  backref=db.backref('maintenance_requests', lazy='dynamic'))
    tenant = db.relationship('Tenant', foreign_keys=[tenant_id],
                             backref=db.backref('maintenance_requests', lazy='dynamic'))
    assignee = db.relationship('User', foreign_keys=[assigned_to])

    def complete(self, completed_at=None):
        """Mark request as completed"""
        self.status = 'completed'
        self.completed_date = completed_at or datetime.utcnow()

    def is_urgent(self):
        return self.priority == 'high' and self.status not in ('completed', 'cancelled')

    def to_dict(self):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'property_id': self.property_id,
            'rental_unit_id': self.rental_unit_id,
            'tenant_id': self.tenant_id,
            'priority': self.priority,
            'status': self.status,
            'request_date': self.request_date.isoformat() if self.request_date else None,
            'is_urgent': self.is_urgent(),
            'scheduled_date': self.scheduled_date.isoformat() if self.scheduled_date else None,
            'completed_date': self.completed_date.isoformat() if self.completed_date else None,
            'assigned_to': self.assigned_to,
            'estimated_cost': float(self.estimated_cost) if self.estimated_cost is not None else None,
            'actual_cost': float(self.actual_cost) if self.actual_cost is not None else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if self.property:
            data['property'] = {'id': self.property.id, 'name': self.property.name}
        if self.rental_unit:
            data['rental_unit'] = {'id': self.rental_unit.id, 'unit_number': self.rental_unit.unit_number}
        if self.tenant:
            data['tenant'] = {'id': self.tenant.id, 'name': self.tenant.full_name}

        return data

    def __repr__(self):
        return f'<MaintenanceRequest {self.title}>'


class MaintenanceCost(db.Model):
    __tablename__ = 'maintenance_costs'

    id = db.Column(db.Integer, primary_key=True)
    rental_unit_asset_id = db.Column(db.Integer, db.ForeignKey('rental_unit_assets.id'),
                                     nullable=False, index=True)
    repair_cost = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), default='MVR')
    description = db.Column(db.Text, nullable=True)
    attached_bills = db.Column(db.JSON, default=list)
    repair_date = db.Column(db.Date, nullable=True)
    repair_provider = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), default='draft', index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, include_assignment=False):
        data = {
            'id': self.id,
            'rental_unit_asset_id': self.rental_unit_asset_id,
            'repair_cost': float(self.repair_cost) if self.repair_cost is not None else None,
            'currency': self.currency,
            'description': self.description,
            'attached_bills': self.attached_bills or [],
            'repair_date': self.repair_date.isoformat() if self.repair_date else None,
            'repair_provider': self.repair_provider,
            'status': self.status,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

        if include_assignment and self.rental_unit_asset:
            data['rental_unit_asset'] = self.rental_unit_asset.to_dict(include_asset=True, include_unit=True)

        return data

    def __repr__(self):
        return f'<MaintenanceCost {self.id}>'
