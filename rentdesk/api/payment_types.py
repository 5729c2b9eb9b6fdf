from flask import Blueprint
from rentdesk.api.catalog import register_catalog_routes
from rentdesk.models.payment_catalog import PaymentType

payment_types_bp = Blueprint('payment_types', __name__)

register_catalog_routes(payment_types_bp, PaymentType, 'payment_types', 'payment_type', 'payment type')
