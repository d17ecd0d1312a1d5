"""
License Blueprint - organization administration and the public license
endpoints used by the booking app.
"""
import logging

from flask import Blueprint, jsonify, request

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.services import organization_service, license_service
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

license_bp = Blueprint('license', __name__, url_prefix='/api/license')


@license_bp.route('/list', methods=['GET'])
@admin_required
def list_organizations():
    """All organizations with stats and validation counts."""
    session = get_session()
    return jsonify({'organizations': organization_service.list_organizations(session)})


@license_bp.route('/list', methods=['POST'])
@admin_required
def create_organization():
    """Register a new organization with a generated license key."""
    session = get_session()
    organization = organization_service.create_organization(session, get_json_body())
    return jsonify({'success': True, 'organization': organization.to_dict()}), 201


@license_bp.route('/update', methods=['POST'])
@admin_required
def update_organization():
    """Partial update of an organization identified by slug."""
    session = get_session()
    organization = organization_service.update_organization(session, get_json_body())
    return jsonify({
        'success': True,
        'organization': {
            'id': organization.id,
            'name': organization.name,
            'slug': organization.slug,
            'licenseType': organization.license_type,
            'isActive': organization.is_active,
            'isSuspended': organization.is_suspended,
            'expiresAt': organization.expires_at.isoformat(),
        }
    })


@license_bp.route('/validate', methods=['POST'])
def validate_license():
    """
    Public: validate a license key + organization slug pair.

    Always answers 200 with {valid, plan, reason, validUntil} once the
    request is well-formed.
    """
    session = get_session()
    payload = get_json_body()
    result = license_service.validate_license(
        session,
        payload.get('licenseKey'),
        payload.get('orgSlug'),
        ip_address=request.remote_addr
    )
    return jsonify(result)


@license_bp.route('/pricing', methods=['GET'])
def get_pricing():
    """Public: monthly price breakdown for ?licenseKey=."""
    session = get_session()
    return jsonify(license_service.get_pricing_for_license_key(session, request.args.get('licenseKey')))
