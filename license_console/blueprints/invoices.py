"""
Invoices Blueprint - billing documents for organizations.

Flow:
    create (draft) -> send by email (sent) -> paid / overdue / cancelled
"""
import base64
import binascii
import logging

from flask import Blueprint, jsonify, request

from license_console.database import get_session
from license_console.decorators.admin_security import admin_required
from license_console.exceptions import ValidationError
from license_console.services import invoice_service
from license_console.services.email_service import send_invoice_email, invoice_email_kwargs
from license_console.services.settings_service import get_company_settings
from license_console.blueprints.metrics import invoice_emails_total
from license_console.utils.formatters import format_period
from license_console.utils.request_helpers import get_json_body, int_arg, date_field

logger = logging.getLogger(__name__)

invoices_bp = Blueprint('invoices', __name__, url_prefix='/api/invoices')


def _invoice_json(invoice):
    data = invoice.to_dict()
    data['periodLabel'] = format_period(invoice.period_month, invoice.period_year, invoice.period_months or 1)
    return data


@invoices_bp.route('/list', methods=['GET'])
@admin_required
def list_invoices():
    """
    List invoices with optional filters.

    Query params:
        organizationId, status, year, month
    """
    session = get_session()

    status = request.args.get('status')
    invoices = invoice_service.list_invoices(
        session,
        organization_id=int_arg('organizationId'),
        status=invoice_service.parse_status(status) if status else None,
        year=int_arg('year'),
        month=int_arg('month')
    )

    return jsonify({
        'invoices': [_invoice_json(invoice) for invoice in invoices],
        'summary': invoice_service.get_invoice_summary(invoices),
    })


@invoices_bp.route('/create', methods=['POST'])
@admin_required
def create_invoice():
    """
    Create a draft invoice.

    Body: {organizationId, periodMonth, periodYear, periodMonths?, dueDate?, notes?}
    """
    session = get_session()
    payload = get_json_body()

    invoice = invoice_service.create_invoice({
        'organization_id': payload.get('organizationId'),
        'period_month': payload.get('periodMonth'),
        'period_year': payload.get('periodYear'),
        'period_months': payload.get('periodMonths'),
        'due_date': date_field(payload, 'dueDate'),
        'notes': payload.get('notes'),
    }, session)

    return jsonify({'success': True, 'invoice': _invoice_json(invoice)}), 201


@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
@admin_required
def get_invoice(invoice_id):
    session = get_session()
    invoice = invoice_service.get_invoice_or_404(session, invoice_id)
    return jsonify({'invoice': _invoice_json(invoice)})


@invoices_bp.route('/<int:invoice_id>', methods=['POST'])
@admin_required
def update_invoice(invoice_id):
    """
    Update status, paid date, due date or notes.

    Body: {status?, paidDate?, dueDate?, notes?}
    """
    session = get_session()
    payload = get_json_body()

    data = {
        'paid_date': date_field(payload, 'paidDate'),
        'due_date': date_field(payload, 'dueDate'),
    }
    if payload.get('status') is not None:
        data['status'] = invoice_service.parse_status(payload['status'])
    if 'notes' in payload:
        notes = payload['notes']
        if notes is not None and not isinstance(notes, str):
            raise ValidationError('notes must be a string or null')
        data['notes'] = notes

    invoice = invoice_service.update_invoice(invoice_id, data, session)
    return jsonify({'success': True, 'invoice': _invoice_json(invoice)})


@invoices_bp.route('/<int:invoice_id>', methods=['DELETE'])
@admin_required
def delete_invoice(invoice_id):
    session = get_session()
    invoice_number = invoice_service.delete_invoice(invoice_id, session)
    return jsonify({'success': True, 'invoiceNumber': invoice_number})


@invoices_bp.route('/<int:invoice_id>/send', methods=['POST'])
@admin_required
def send_invoice(invoice_id):
    """
    Email the invoice to the organization's contact.

    Body (optional): {"pdfBase64": "..."} attached as <invoice number>.pdf.
    A draft invoice moves to sent once the email is accepted.
    """
    session = get_session()
    invoice = invoice_service.get_invoice_or_404(session, invoice_id)
    payload = get_json_body(required=False)

    pdf_bytes = None
    if payload.get('pdfBase64'):
        try:
            pdf_bytes = base64.b64decode(payload['pdfBase64'], validate=True)
        except (binascii.Error, ValueError, TypeError):
            raise ValidationError('pdfBase64 must be valid base64')

    settings = get_company_settings(session)
    result = send_invoice_email(pdf_bytes=pdf_bytes, **invoice_email_kwargs(invoice, settings))

    if not result['success']:
        invoice_emails_total.labels(result='failed').inc()
        session.rollback()
        return jsonify({'success': False, 'error': result.get('error') or 'Could not send email'}), 500

    invoice_emails_total.labels(result='sent').inc()
    recipient = invoice.organization.contact_email
    invoice_service.mark_invoice_sent(invoice, session)

    return jsonify({
        'success': True,
        'message': f'Invoice sent to {recipient}',
        'sentTo': recipient,
        'invoice': _invoice_json(invoice),
    })
