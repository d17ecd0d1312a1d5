"""Company settings service - singleton read/update."""
import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from license_console.models import CompanySettings
from license_console.exceptions import ValidationError

logger = logging.getLogger(__name__)

# camelCase payload key -> column, for nullable text fields (explicit null clears them)
NULLABLE_TEXT_FIELDS = {
    'orgNumber': 'org_number',
    'vatNumber': 'vat_number',
    'email': 'email',
    'phone': 'phone',
    'website': 'website',
    'address': 'address',
    'postalCode': 'postal_code',
    'city': 'city',
    'bankAccount': 'bank_account',
    'bankName': 'bank_name',
    'iban': 'iban',
    'swift': 'swift',
    'logoUrl': 'logo_url',
    'invoiceNote': 'invoice_note',
    'paymentTerms': 'payment_terms',
    'emailSubject': 'email_subject',
    'emailGreeting': 'email_greeting',
    'emailBody': 'email_body',
    'emailFooter': 'email_footer',
}

# Required text fields (null is ignored)
REQUIRED_TEXT_FIELDS = {
    'companyName': 'company_name',
    'country': 'country',
    'invoicePrefix': 'invoice_prefix',
}


def get_company_settings(session: Session) -> CompanySettings:
    """Return the settings row, creating it with defaults on first read."""
    settings = session.query(CompanySettings).order_by(CompanySettings.id).first()
    if settings is None:
        settings = CompanySettings()
        session.add(settings)
        session.flush()
        logger.info("Created default company settings")
    return settings


def update_company_settings(session: Session, data: dict) -> CompanySettings:
    """
    Apply a partial update to the company settings.

    Keys missing from data are left untouched. Nullable text fields may be
    cleared with an explicit null.

    Raises:
        ValidationError: for non-string text values, a non-positive due-day
            count or a VAT rate outside 0-100.
    """
    settings = get_company_settings(session)

    for key, column in REQUIRED_TEXT_FIELDS.items():
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f'{key} must be a non-empty string')
        setattr(settings, column, value.strip())

    for key, column in NULLABLE_TEXT_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'{key} must be a string or null')
        setattr(settings, column, value)

    if data.get('defaultDueDays') is not None:
        due_days = data['defaultDueDays']
        if isinstance(due_days, bool) or not isinstance(due_days, int) or due_days < 0:
            raise ValidationError('defaultDueDays must be a non-negative integer')
        settings.default_due_days = due_days

    if data.get('vatRate') is not None:
        try:
            vat_rate = Decimal(str(data['vatRate']))
        except (InvalidOperation, ValueError):
            raise ValidationError('vatRate must be a number')
        if isinstance(data['vatRate'], bool) or not vat_rate.is_finite() or vat_rate < 0 or vat_rate > 100:
            raise ValidationError('vatRate must be between 0 and 100')
        settings.vat_rate = vat_rate

    session.flush()
    logger.info(f"Company settings updated ({', '.join(sorted(data)) or 'no fields'})")
    return settings
