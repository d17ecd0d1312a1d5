"""
Invoice service - creation, lifecycle and queries.

Lifecycle:
    draft -> sent | cancelled
    sent -> paid | overdue | cancelled
    overdue -> paid | cancelled
    paid -> refunded
    cancelled, refunded: terminal (cancelled invoices may be deleted)
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from license_console.models import Invoice, InvoiceStatus, Organization
from license_console.exceptions import (
    BusinessLogicError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError
)
from license_console.services import pricing_service
from license_console.services.invoice_number_service import next_invoice_number
from license_console.services.settings_service import get_company_settings
from license_console.blueprints.metrics import invoices_created_total, invoice_transitions_total

logger = logging.getLogger(__name__)

ALLOWED_PERIOD_MONTHS = (1, 3, 6, 12)
CENT = Decimal('0.01')

# Statuses for which a hard delete is logged as a warning
BILLED_STATUSES = {InvoiceStatus.SENT, InvoiceStatus.OVERDUE, InvoiceStatus.PAID, InvoiceStatus.REFUNDED}


def _require_int(value, field: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field} is required')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')


def parse_status(value) -> InvoiceStatus:
    try:
        return InvoiceStatus(value)
    except ValueError:
        allowed = ', '.join(status.value for status in InvoiceStatus)
        raise ValidationError(f'status must be one of: {allowed}')


def get_invoice_or_404(session: Session, invoice_id: int) -> Invoice:
    invoice = session.query(Invoice).filter_by(id=invoice_id).first()
    if not invoice:
        raise NotFoundError('Invoice not found')
    return invoice


def _snapshot_modules(organization: Organization, period_months: int) -> List[Dict[str, Any]]:
    """Active modules at billing time; pilot customers see every module at 0."""
    is_pilot = organization.license_type == pricing_service.PILOT
    return [
        {
            'key': org_module.module.key,
            'name': org_module.module.name,
            'price': 0.0 if is_pilot else float(Decimal(str(org_module.module.price or 0)) * period_months),
        }
        for org_module in organization.active_modules
    ]


def create_invoice(payload: dict, session: Session, today: Optional[date] = None) -> Invoice:
    """
    Create a draft invoice for an organization and billing period.

    Steps:
    1. Validate period fields
    2. Load organization with its modules
    3. Reserve the next invoice number for the period year (locks the
       year counter until commit)
    4. Reject if a non-cancelled invoice already covers the same period
    5. Price the period (monthly price x number of months, plus VAT)
    6. Snapshot license type and active modules
    7. Commit transaction

    Args:
        payload: Dictionary with:
            - organization_id: int
            - period_month: int (1-12)
            - period_year: int
            - period_months: int (1, 3, 6 or 12), default 1
            - due_date: date | None
            - notes: str | None
        session: SQLAlchemy session
        today: Invoice date (defaults to date.today())

    Returns:
        The created Invoice

    Raises:
        ValidationError, NotFoundError, BusinessLogicError, ConflictError
    """
    today = today or date.today()

    organization_id = _require_int(payload.get('organization_id'), 'organizationId')
    period_month = _require_int(payload.get('period_month'), 'periodMonth')
    period_year = _require_int(payload.get('period_year'), 'periodYear')
    period_months = payload.get('period_months')
    period_months = 1 if period_months is None else _require_int(period_months, 'periodMonths')

    if period_month < 1 or period_month > 12:
        raise ValidationError('periodMonth must be between 1 and 12')
    if period_year < 1:
        raise ValidationError('periodYear must be a positive year')
    if period_months not in ALLOWED_PERIOD_MONTHS:
        raise ValidationError('periodMonths must be 1, 3, 6, or 12')

    try:
        organization = session.query(Organization).filter_by(id=organization_id).first()
        if not organization:
            raise NotFoundError('Organization not found')

        settings = get_company_settings(session)
        # Holding the year counter lock serializes creates for the same period
        invoice_number = next_invoice_number(session, period_year, settings.invoice_prefix)

        existing = (session.query(Invoice)
                    .filter(
                        Invoice.organization_id == organization_id,
                        Invoice.period_month == period_month,
                        Invoice.period_year == period_year,
                        Invoice.status != InvoiceStatus.CANCELLED
                    )
                    .first())
        if existing:
            raise BusinessLogicError('Invoice already exists for this period')

        license_type = organization.license_type
        active_modules = organization.active_modules

        monthly_base = pricing_service.get_base_price(session, license_type)
        monthly_modules = pricing_service.calculate_module_price(license_type, active_modules)
        monthly_total = pricing_service.calculate_monthly_price(license_type, active_modules, monthly_base)

        base_price = (monthly_base * period_months).quantize(CENT)
        module_price = (monthly_modules * period_months).quantize(CENT)
        subtotal = (monthly_total * period_months).quantize(CENT)

        vat_rate = Decimal(str(settings.vat_rate or 0))
        vat_amount = (subtotal * vat_rate / Decimal('100')).quantize(CENT)

        due_date = payload.get('due_date') or today + timedelta(days=settings.default_due_days)

        invoice = Invoice(
            invoice_number=invoice_number,
            organization_id=organization.id,
            period_month=period_month,
            period_year=period_year,
            period_months=period_months,
            base_price=base_price,
            module_price=module_price,
            vat_amount=vat_amount,
            amount=subtotal + vat_amount,
            status=InvoiceStatus.DRAFT,
            invoice_date=today,
            due_date=due_date,
            license_type=license_type,
            license_type_name=pricing_service.license_type_name(license_type),
            modules=_snapshot_modules(organization, period_months),
            notes=payload.get('notes') or None
        )
        session.add(invoice)
        session.commit()

    except (ValidationError, NotFoundError, BusinessLogicError):
        session.rollback()
        raise

    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error creating invoice: {e.orig}")
        raise ConflictError('Invoice number already taken, please retry')

    invoices_created_total.labels(license_type=invoice.license_type).inc()
    logger.info(
        f"Created invoice {invoice.invoice_number} for organization {organization_id} "
        f"({period_month}/{period_year} x{period_months}, amount {invoice.amount})"
    )
    return invoice


def transition_invoice(invoice: Invoice, new_status: InvoiceStatus, paid_date: Optional[date] = None,
                       today: Optional[date] = None) -> bool:
    """
    Move an invoice to a new status, stamping dates on the way.

    An explicit paid_date on an invoice that is already paid corrects the
    recorded payment date. Nothing is committed; callers commit and then
    call count_transition().

    Returns:
        True if the status changed, False if it already had that status.

    Raises:
        InvalidTransitionError: if the lifecycle does not allow the move.
    """
    current = invoice.status
    if new_status == current:
        if current == InvoiceStatus.PAID and paid_date is not None:
            invoice.paid_date = paid_date
        return False

    if not invoice.can_transition_to(new_status):
        raise InvalidTransitionError(current.value, new_status.value)

    invoice.status = new_status

    if new_status == InvoiceStatus.PAID:
        invoice.paid_date = paid_date or today or date.today()
    elif new_status == InvoiceStatus.SENT and invoice.sent_at is None:
        invoice.sent_at = datetime.utcnow()

    logger.info(f"Invoice {invoice.invoice_number}: {current.value} -> {new_status.value}")
    return True


def count_transition(previous: InvoiceStatus, new_status: InvoiceStatus, amount: int = 1) -> None:
    """Record committed status changes in the transitions counter."""
    invoice_transitions_total.labels(from_status=previous.value, to_status=new_status.value).inc(amount)


def update_invoice(invoice_id: int, data: dict, session: Session, today: Optional[date] = None) -> Invoice:
    """
    Update status, paid date, due date and/or notes of an invoice.

    Args:
        data: Dictionary with optional keys status (InvoiceStatus),
            paid_date (date), due_date (date), notes (str)
    """
    invoice = get_invoice_or_404(session, invoice_id)
    previous = invoice.status
    changed = False

    try:
        new_status = data.get('status')
        if new_status is not None:
            changed = transition_invoice(invoice, new_status, paid_date=data.get('paid_date'), today=today)
        elif data.get('paid_date') is not None:
            if invoice.status != InvoiceStatus.PAID:
                raise BusinessLogicError('paidDate can only be set on paid invoices')
            invoice.paid_date = data['paid_date']

        if data.get('due_date') is not None:
            invoice.due_date = data['due_date']

        if 'notes' in data:
            invoice.notes = data['notes'] or None

        session.commit()
    except BusinessLogicError:
        session.rollback()
        raise

    if changed:
        count_transition(previous, new_status)
    return invoice


def mark_invoice_sent(invoice: Invoice, session: Session) -> Invoice:
    """Record a successful email dispatch; drafts advance to sent."""
    if invoice.status == InvoiceStatus.DRAFT:
        transition_invoice(invoice, InvoiceStatus.SENT)
        session.commit()
        count_transition(InvoiceStatus.DRAFT, InvoiceStatus.SENT)
    else:
        invoice.sent_at = datetime.utcnow()
        session.commit()
    return invoice


def delete_invoice(invoice_id: int, session: Session) -> str:
    """
    Hard delete an invoice.

    Returns:
        The deleted invoice number
    """
    invoice = get_invoice_or_404(session, invoice_id)
    invoice_number = invoice.invoice_number

    if invoice.status in BILLED_STATUSES:
        logger.warning(f"Deleting invoice {invoice_number} in status '{invoice.status.value}'")

    session.delete(invoice)
    session.commit()
    logger.info(f"Deleted invoice {invoice_number}")
    return invoice_number


def list_invoices(session: Session, organization_id: Optional[int] = None, status: Optional[InvoiceStatus] = None,
                  year: Optional[int] = None, month: Optional[int] = None) -> List[Invoice]:
    """Invoices, newest period first."""
    query = session.query(Invoice)

    if organization_id is not None:
        query = query.filter(Invoice.organization_id == organization_id)
    if status is not None:
        query = query.filter(Invoice.status == status)
    if year is not None:
        query = query.filter(Invoice.period_year == year)
    if month is not None:
        query = query.filter(Invoice.period_month == month)

    return query.order_by(
        Invoice.period_year.desc(),
        Invoice.period_month.desc(),
        Invoice.invoice_date.desc()
    ).all()


def is_invoice_overdue(invoice: Invoice, today: Optional[date] = None) -> bool:
    """
    Check if an invoice is overdue.

    An invoice is overdue once flagged so, or when it was sent and the due
    date has passed.
    """
    if today is None:
        today = date.today()

    if invoice.status == InvoiceStatus.OVERDUE:
        return True
    return (
        invoice.status == InvoiceStatus.SENT and
        invoice.due_date is not None and
        invoice.due_date < today
    )


def get_invoice_summary(invoices: List[Invoice], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Totals shown above the invoice list.

    Returns:
        dict with keys:
            - totalOutstanding: sum of sent/overdue amounts
            - overdueCount: int
            - paidThisMonth: sum of amounts paid in the current month
    """
    if today is None:
        today = date.today()

    outstanding = Decimal('0.00')
    paid_this_month = Decimal('0.00')
    overdue_count = 0

    for invoice in invoices:
        if invoice.status in (InvoiceStatus.SENT, InvoiceStatus.OVERDUE):
            outstanding += invoice.amount
        if is_invoice_overdue(invoice, today):
            overdue_count += 1
        if (invoice.status == InvoiceStatus.PAID and invoice.paid_date is not None
                and invoice.paid_date.year == today.year and invoice.paid_date.month == today.month):
            paid_this_month += invoice.amount

    return {
        'totalOutstanding': float(outstanding),
        'overdueCount': overdue_count,
        'paidThisMonth': float(paid_this_month),
    }


def mark_overdue_invoices(session: Session, today: Optional[date] = None) -> List[Invoice]:
    """Flag sent invoices past their due date as overdue."""
    if today is None:
        today = date.today()

    candidates = session.query(Invoice).filter(
        Invoice.status == InvoiceStatus.SENT,
        Invoice.due_date < today
    ).all()

    for invoice in candidates:
        transition_invoice(invoice, InvoiceStatus.OVERDUE)

    session.commit()
    if candidates:
        count_transition(InvoiceStatus.SENT, InvoiceStatus.OVERDUE, len(candidates))
        logger.info(f"Marked {len(candidates)} invoice(s) as overdue")
    return candidates
