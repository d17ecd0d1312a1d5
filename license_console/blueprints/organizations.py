"""Per-organization module toggles."""
import logging

from flask import Blueprint, jsonify

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.services import organization_service
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

organizations_bp = Blueprint('organizations', __name__, url_prefix='/api/organizations')


@organizations_bp.route('/<int:organization_id>/modules', methods=['GET'])
@admin_required
def get_modules(organization_id):
    session = get_session()
    org_modules = organization_service.get_organization_modules(session, organization_id)
    return jsonify({'modules': [org_module.to_dict() for org_module in org_modules]})


@organizations_bp.route('/<int:organization_id>/modules', methods=['POST'])
@admin_required
def set_module(organization_id):
    """
    Enable or disable a module for an organization.

    Body: {"moduleId": int, "isActive": bool}
    """
    session = get_session()
    payload = get_json_body()
    org_module = organization_service.set_organization_module(
        session,
        organization_id,
        payload.get('moduleId'),
        payload.get('isActive')
    )
    return jsonify({'success': True, 'organizationModule': org_module.to_dict()})
