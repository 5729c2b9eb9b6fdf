import logging
from datetime import datetime
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from rentdesk.models.audit_log import AuditLog
from rentdesk.utils.decorators import admin_required
from rentdesk.utils.pagination import paginate

logger = logging.getLogger(__name__)

audit_bp = Blueprint('audit', __name__)


@audit_bp.route('/', methods=['GET'], strict_slashes=False)
@jwt_required()
@admin_required
def get_audit_logs():
    """Admin endpoint to fetch audit logs with filters"""
    try:
        action_filter = request.args.get('action')
        resource_type_filter = request.args.get('resource_type')
        user_id_filter = request.args.get('user_id', type=int)
        date_from = request.args.get('date_from')
        date_to = request.args.get('date_to')

        query = AuditLog.query

        if action_filter and action_filter != 'all':
            query = query.filter(AuditLog.action == action_filter)
        if resource_type_filter and resource_type_filter != 'all':
            query = query.filter(AuditLog.resource_type == resource_type_filter)
        if user_id_filter:
            query = query.filter(AuditLog.user_id == user_id_filter)
        try:
            if date_from:
                query = query.filter(AuditLog.created_at >= datetime.fromisoformat(date_from))
            if date_to:
                query = query.filter(AuditLog.created_at <= datetime.fromisoformat(date_to))
        except ValueError:
            return jsonify({'message': 'Invalid date filter'}), 400

        logs, meta = paginate(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()), default_limit=50)

        # Distinct action types for the filter dropdown
        distinct_actions = [r[0] for r in AuditLog.query.with_entities(AuditLog.action).distinct().all()]

        return jsonify({
            'logs': [log.to_dict() for log in logs],
            'pagination': meta,
            'distinct_actions': sorted(distinct_actions)
        }), 200

    except Exception as e:
        logger.error('Failed to fetch audit logs: %s', e)
        return jsonify({'message': 'Failed to fetch audit logs', 'error': str(e)}), 500
