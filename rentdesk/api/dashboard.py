import logging
from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from sqlalchemy import func
from rentdesk import db
from rentdesk.models.maintenance import MaintenanceRequest
from rentdesk.models.payment import Payment
from rentdesk.models.property import Property
from rentdesk.models.rent_invoice import RentInvoice
from rentdesk.models.rental_unit import RentalUnit
from rentdesk.models.tenant import Tenant
from rentdesk.utils.decorators import active_user_required

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__)

RECENT_LIMIT = 5


def _sum(column, *criteria):
    value = db.session.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
    return float(value or 0)


@dashboard_bp.route('/statistics', methods=['GET'])
@jwt_required()
@active_user_required
def get_statistics():
    """Headline counts for the dashboard cards"""
    try:
        total_units = RentalUnit.query.count()
        occupied_units = RentalUnit.query.filter_by(status='occupied').count()
        available_units = RentalUnit.query.filter_by(status='available').count()
        occupancy_rate = round(occupied_units / total_units * 100, 2) if total_units else 0

        total_revenue = _sum(Payment.amount, Payment.status == 'completed') \
            + _sum(RentInvoice.total_amount, RentInvoice.status == 'paid')

        open_requests = MaintenanceRequest.query.filter(
            MaintenanceRequest.status.notin_(['completed', 'cancelled'])
        )

        return jsonify({
            'statistics': {
                'total_properties': Property.query.count(),
                'total_tenants': Tenant.query.count(),
                'total_rental_units': total_units,
                'occupied_units': occupied_units,
                'available_units': available_units,
                'occupancy_rate': occupancy_rate,
                'total_revenue': total_revenue,
                'pending_maintenance': MaintenanceRequest.query.filter_by(status='pending').count(),
                'urgent_maintenance': open_requests.filter(MaintenanceRequest.priority == 'high').count(),
            }
        }), 200

    except Exception as e:
        logger.error('Failed to compute dashboard statistics: %s', e)
        return jsonify({'message': 'Failed to fetch dashboard statistics', 'error': str(e)}), 500


@dashboard_bp.route('/recent-activity', methods=['GET'])
@jwt_required()
@active_user_required
def get_recent_activity():
    try:
        properties = Property.query.order_by(Property.created_at.desc(), Property.id.desc()) \
            .limit(RECENT_LIMIT).all()
        tenants = Tenant.query.order_by(Tenant.created_at.desc(), Tenant.id.desc()).limit(RECENT_LIMIT).all()
        payments = Payment.query.order_by(Payment.created_at.desc(), Payment.id.desc()).limit(RECENT_LIMIT).all()
        requests = MaintenanceRequest.query.order_by(
            MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc()
        ).limit(RECENT_LIMIT).all()

        return jsonify({
            'recent_properties': [p.to_dict() for p in properties],
            'recent_tenants': [t.to_dict() for t in tenants],
            'recent_payments': [p.to_dict() for p in payments],
            'recent_maintenance': [m.to_dict() for m in requests],
        }), 200

    except Exception as e:
        logger.error('Failed to fetch recent activity: %s', e)
        return jsonify({'message': 'Failed to fetch recent activity', 'error': str(e)}), 500
