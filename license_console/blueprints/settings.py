"""Company settings endpoints (issuer identity, banking, invoice defaults, email templates)."""
import logging

from flask import Blueprint, jsonify

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.services.settings_service import get_company_settings, update_company_settings
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@settings_bp.route('/company', methods=['GET'])
@admin_required
def get_company():
    """Return the settings, creating them with defaults on first read."""
    session = get_session()
    settings = get_company_settings(session)
    session.commit()
    return jsonify({'settings': settings.to_dict()})


@settings_bp.route('/company', methods=['POST'])
@admin_required
def update_company():
    session = get_session()
    settings = update_company_settings(session, get_json_body())
    session.commit()
    return jsonify({'success': True, 'settings': settings.to_dict()})
