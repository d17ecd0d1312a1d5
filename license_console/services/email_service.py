"""
Email service for invoice dispatch and SMTP diagnostics.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
import re
from typing import Optional, Dict, Any

from flask import current_app
from flask_mail import Mail, Message
from markupsafe import escape

from license_console.utils.formatters import money_nok, format_period, date_no_long

logger = logging.getLogger(__name__)

mail = Mail()

DEFAULT_SUBJECT = 'Faktura {invoiceNumber} - SportFlow'
DEFAULT_GREETING = 'Hei {customerName},'
DEFAULT_BODY = (
    'Vedlagt finner du faktura for SportFlow-abonnementet ditt for {period}.\n\n'
    'Faktura er vedlagt som PDF. Vennligst betal innen forfallsdato {dueDate}.'
)
DEFAULT_FOOTER = 'Med vennlig hilsen,\nSportFlow'

# Only these five tokens are substituted; anything else in braces is left alone
TEMPLATE_TOKEN = re.compile(r'\{(customerName|invoiceNumber|amount|dueDate|period)\}')


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def render_email_template(template: str, data: Dict[str, Any]) -> str:
    """
    Replace the placeholder tokens in a template string.

    Substitution is a single pass, so values containing token-like text are
    not expanded again.

    Args:
        template: Text with {customerName}, {invoiceNumber}, {amount},
            {dueDate} and/or {period}
        data: Dictionary with the same keys; amount is a number and is
            rendered as kroner with thousands separators

    Example:
        render_email_template('Beløp: {amount}', {'amount': 3600, ...})
        -> "Beløp: 3 600 kr"
    """
    def _replace(match):
        key = match.group(1)
        if key == 'amount':
            return money_nok(data.get('amount'))
        return str(data.get(key, ''))

    return TEMPLATE_TOKEN.sub(_replace, template or '')


def _html_text(value: str):
    return str(escape(value)).replace('\n', '<br>')


def _build_html(greeting, body, footer, data) -> str:
    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <style>
                body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ text-align: center; margin-bottom: 30px; }}
                .invoice-box {{ background: #f9f9f9; border-radius: 8px; padding: 20px; margin: 20px 0; }}
                .invoice-row {{ padding: 8px 0; border-bottom: 1px solid #eee; }}
                .invoice-total {{ font-size: 1.2em; font-weight: bold; color: #22c55e; }}
                .due-date {{ background: #fff3cd; padding: 10px; border-radius: 4px; margin-top: 15px; }}
                .footer {{ margin-top: 30px; font-size: 0.85em; color: #666; text-align: center; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1 style="color: #3b82f6; margin: 0;">SportFlow</h1>
                    <p style="color: #666; margin: 5px 0;">Faktura</p>
                </div>

                <p>{_html_text(greeting)}</p>
                <p>{_html_text(body)}</p>

                <div class="invoice-box">
                    <div class="invoice-row">Fakturanummer: <strong>{escape(data['invoiceNumber'])}</strong></div>
                    <div class="invoice-row">Periode: {escape(data['period'])}</div>
                    <div class="invoice-row invoice-total">Beløp: {escape(money_nok(data['amount']))}</div>
                    <div class="due-date"><strong>Forfallsdato:</strong> {escape(data['dueDate'])}</div>
                </div>

                <p>Har du spørsmål? Svar gjerne på denne e-posten.</p>

                <div class="footer">
                    <p>{_html_text(footer)}</p>
                </div>
            </div>
        </body>
        </html>
        """


def _build_text(greeting, body, footer, data) -> str:
    return (
        f"{greeting}\n\n"
        f"{body}\n\n"
        f"Fakturanummer: {data['invoiceNumber']}\n"
        f"Periode: {data['period']}\n"
        f"Beløp: {money_nok(data['amount'])}\n"
        f"Forfallsdato: {data['dueDate']}\n\n"
        f"{footer}"
    )


def _sender():
    cfg = current_app.config
    address = cfg.get('MAIL_DEFAULT_SENDER') or cfg.get('MAIL_USERNAME')
    name = cfg.get('MAIL_SENDER_NAME')
    return (name, address) if name else address


def _credentials_missing() -> bool:
    cfg = current_app.config
    return not cfg.get('MAIL_SUPPRESS_SEND', False) and not cfg.get('MAIL_PASSWORD')


def send_invoice_email(
    to_email: str,
    customer_name: str,
    invoice_number: str,
    amount,
    due_date: str,
    period: str,
    pdf_bytes: Optional[bytes] = None,
    templates: Optional[Dict[str, Optional[str]]] = None
) -> Dict[str, Any]:
    """
    Send an invoice email (HTML + plain text), optionally with the PDF attached.

    Args:
        to_email: Recipient email
        customer_name: Contact name or organization name
        invoice_number: e.g. INV-2025-001
        amount: Invoice total in kroner
        due_date: Due date as displayed (e.g. "15. januar 2025")
        period: Billing period label (e.g. "januar – mars 2025")
        pdf_bytes: Rendered invoice PDF, attached as {invoice_number}.pdf
        templates: Company template strings (subject/greeting/body/footer);
            missing or empty entries fall back to the defaults

    Returns:
        {'success': True} or {'success': False, 'error': message}.
        Transport and credential failures never raise.
    """
    if _credentials_missing():
        logger.warning(f"[EMAIL] SMTP password not configured, invoice {invoice_number} not sent")
        return {'success': False, 'error': 'SMTP password is not configured'}

    templates = templates or {}
    data = {
        'customerName': customer_name,
        'invoiceNumber': invoice_number,
        'amount': amount,
        'dueDate': due_date,
        'period': period,
    }

    subject = render_email_template(templates.get('subject') or DEFAULT_SUBJECT, data)
    greeting = render_email_template(templates.get('greeting') or DEFAULT_GREETING, data)
    body = render_email_template(templates.get('body') or DEFAULT_BODY, data)
    footer = render_email_template(templates.get('footer') or DEFAULT_FOOTER, data)

    try:
        msg = Message(
            subject=subject,
            recipients=[to_email],
            body=_build_text(greeting, body, footer, data),
            html=_build_html(greeting, body, footer, data),
            sender=_sender(),
        )
        if pdf_bytes:
            msg.attach(f"{invoice_number}.pdf", 'application/pdf', pdf_bytes)

        logger.info(f"[EMAIL] Sending invoice {invoice_number} to {to_email}")
        mail.send(msg)
        logger.info(f"[EMAIL] Invoice {invoice_number} sent to {to_email}")
        return {'success': True}

    except Exception as e:
        logger.exception(f"[EMAIL] Error sending invoice {invoice_number}: {e}")
        return {'success': False, 'error': str(e) or 'Unknown error while sending email'}


def invoice_email_kwargs(invoice, settings) -> Dict[str, Any]:
    """Arguments for send_invoice_email derived from an invoice and company settings."""
    organization = invoice.organization
    return {
        'to_email': organization.contact_email,
        'customer_name': organization.contact_name or organization.name,
        'invoice_number': invoice.invoice_number,
        'amount': invoice.amount,
        'due_date': date_no_long(invoice.due_date),
        'period': format_period(invoice.period_month, invoice.period_year, invoice.period_months or 1),
        'templates': settings.email_templates if settings is not None else None,
    }


def check_smtp_connection() -> Dict[str, Any]:
    """Open (and close) an SMTP connection with the configured credentials."""
    try:
        with mail.connect():
            pass
        logger.info("[EMAIL] SMTP connection OK")
        return {'success': True}
    except Exception as e:
        logger.warning(f"[EMAIL] SMTP connection failed: {e}")
        return {'success': False, 'error': str(e) or 'Could not connect to SMTP server'}


def get_smtp_config_summary() -> Dict[str, str]:
    """SMTP settings for diagnostics, with the password masked."""
    cfg = current_app.config
    not_set = '(not set)'
    return {
        'SMTP_HOST': cfg.get('MAIL_SERVER') or not_set,
        'SMTP_PORT': str(cfg.get('MAIL_PORT') or not_set),
        'SMTP_USER': cfg.get('MAIL_USERNAME') or not_set,
        'SMTP_PASS': '***configured***' if cfg.get('MAIL_PASSWORD') else '(NOT SET)',
        'SMTP_FROM': cfg.get('MAIL_DEFAULT_SENDER') or not_set,
        'SMTP_SECURE': 'ssl' if cfg.get('MAIL_USE_SSL') else ('tls' if cfg.get('MAIL_USE_TLS') else 'none'),
    }
