"""SMTP diagnostics."""
import logging
from datetime import date

from flask import Blueprint, jsonify

from license_console.decorators.admin_security import admin_required
from license_console.services.email_service import (
    check_smtp_connection, get_smtp_config_summary, send_invoice_email
)
from license_console.utils.formatters import date_no_long, format_period
from license_console.utils.request_helpers import get_json_body

logger = logging.getLogger(__name__)

email_bp = Blueprint('email', __name__, url_prefix='/api/email')


@email_bp.route('/test', methods=['GET'])
@admin_required
def smtp_config():
    """SMTP configuration with the password masked."""
    return jsonify({'config': get_smtp_config_summary()})


@email_bp.route('/test', methods=['POST'])
@admin_required
def smtp_test():
    """
    Check the SMTP connection and optionally send a sample invoice email.

    Body (optional): {"testEmail": "someone@example.com"}
    Failures are reported in the body with the step that failed.
    """
    payload = get_json_body(required=False)
    test_email = payload.get('testEmail')
    config = get_smtp_config_summary()

    connection = check_smtp_connection()
    if not connection['success']:
        return jsonify({
            'success': False,
            'step': 'connection',
            'error': connection['error'],
            'config': config,
        })

    if not test_email:
        return jsonify({
            'success': True,
            'message': 'SMTP connection OK',
            'config': config,
            'hint': "Add 'testEmail' to the request body to send a test email",
        })

    today = date.today()
    result = send_invoice_email(
        to_email=test_email,
        customer_name='Test Bruker',
        invoice_number='TEST-001',
        amount=999,
        due_date=date_no_long(today),
        period=format_period(today.month, today.year),
    )
    if not result['success']:
        return jsonify({
            'success': False,
            'step': 'sending',
            'error': result['error'],
            'config': config,
            'connectionOk': True,
        })

    logger.info(f"Test email sent to {test_email}")
    return jsonify({'success': True, 'message': f'Test email sent to {test_email}', 'config': config})
