from flask import Blueprint
from rentdesk.api.catalog import register_catalog_routes
from rentdesk.models.payment_catalog import PaymentMode

payment_modes_bp = Blueprint('payment_modes', __name__)

register_catalog_routes(payment_modes_bp, PaymentMode, 'payment_modes', 'payment_mode', 'payment mode')
