"""Admin authentication endpoints."""
import logging

from flask import Blueprint, jsonify, request

from license_console.services.auth_service import issue_admin_token, is_admin_request
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/login', methods=['POST'])
def login():
    """Exchange the admin password for a bearer token."""
    payload = get_json_body()
    token = issue_admin_token(payload.get('password'))
    return jsonify({'success': True, **token})


@admin_bp.route('/check', methods=['GET'])
def check():
    """Report whether the caller's credentials are accepted."""
    return jsonify({'authenticated': is_admin_request(request.headers)})
