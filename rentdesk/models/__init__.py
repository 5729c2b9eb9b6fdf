from .user import User
from .role import Role
from .property import Property
from .rental_unit import RentalUnit, RentalUnitAsset
from .asset import Asset
from .maintenance import MaintenanceRequest, MaintenanceCost
from .tenant import Tenant
from .payment import Payment
from .payment_catalog import PaymentType, PaymentMode
from .payment_record import PaymentRecord
from .currency import Currency
from .rent_invoice import RentInvoice
from .setting import Setting
from .audit_log import AuditLog

__all__ = [
    'User', 'Role', 'Property', 'RentalUnit', 'RentalUnitAsset', 'Asset',
    'MaintenanceRequest', 'MaintenanceCost', 'Tenant', 'Payment', 'PaymentType',
    'PaymentMode', 'PaymentRecord', 'Currency', 'RentInvoice', 'Setting', 'AuditLog',
]
