"""
Usage statistics endpoints.

POST /api/stats/report is called by the booking app and authenticated by
its license key; everything else requires admin credentials.
"""
import logging

from flask import Blueprint, jsonify

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.exceptions import ValidationError
from license_console.services import stats_service
from license_console.utils.request_helpers import get_json_body, int_arg

logger = logging.getLogger(__name__)

stats_bp = Blueprint('stats', __name__, url_prefix='/api/stats')


@stats_bp.route('/report', methods=['POST'])
def report_stats():
    """Public: store a usage snapshot. Body: {licenseKey, stats: {...}}"""
    session = get_session()
    payload = get_json_body()
    row = stats_service.report_stats(session, payload.get('licenseKey'), payload.get('stats'))
    return jsonify({
        'success': True,
        'message': 'Stats updated',
        'lastUpdated': row.last_updated.isoformat(),
    })


@stats_bp.route('/report', methods=['GET'])
@admin_required
def get_stats():
    """All snapshots, or one organization's with ?organizationId=."""
    session = get_session()
    organization_id = int_arg('organizationId')

    rows = stats_service.list_stats(session, organization_id)
    if organization_id is not None:
        return jsonify({'stats': rows[0].to_dict(include_organization=True) if rows else None})
    return jsonify({'stats': [row.to_dict(include_organization=True) for row in rows]})


@stats_bp.route('/fetch', methods=['POST'])
@admin_required
def fetch_stats():
    """Pull a snapshot from the organization's booking app. Body: {organizationId}"""
    session = get_session()
    organization_id = get_json_body().get('organizationId')
    if isinstance(organization_id, bool) or not isinstance(organization_id, int):
        raise ValidationError('organizationId is required')

    stats = stats_service.fetch_stats(session, organization_id)
    return jsonify({'success': True, 'message': 'Stats fetched and updated', 'stats': stats})
