"""Invoice and InvoiceSequence models."""
from sqlalchemy import Column, Integer, String, Date, Numeric, DateTime, Enum, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from license_console.database import Base
import enum


class InvoiceStatus(enum.Enum):
    """Invoice status enum."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# Forward-only lifecycle; cancelled and refunded are terminal.
ALLOWED_TRANSITIONS = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.CANCELLED},
    InvoiceStatus.SENT: {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
    InvoiceStatus.PAID: {InvoiceStatus.REFUNDED},
    InvoiceStatus.CANCELLED: set(),
    InvoiceStatus.REFUNDED: set(),
}


def _money(value):
    return float(value) if value is not None else 0.0


class Invoice(Base):
    """
    Billing document for one organization and billing period.

    Prices, license type name and the active modules are snapshotted when
    the invoice is created, so later price changes never alter it.
    """

    __tablename__ = 'invoice'

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(40), nullable=False, unique=True)
    organization_id = Column(Integer, ForeignKey('organization.id'), nullable=False)

    # Billing period
    period_month = Column(Integer, nullable=False)
    period_year = Column(Integer, nullable=False)
    period_months = Column(Integer, nullable=False, default=1)

    # Amounts (totals for the whole period)
    base_price = Column(Numeric(12, 2), nullable=False, default=0)
    module_price = Column(Numeric(12, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False)

    status = Column(
        Enum(InvoiceStatus, name='invoice_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=InvoiceStatus.DRAFT
    )

    # Dates
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    sent_at = Column(DateTime, nullable=True)

    # Snapshot at creation time
    license_type = Column(String(20), nullable=False)
    license_type_name = Column(String(100), nullable=False)
    modules = Column(JSON, nullable=True)  # [{key, name, price}]

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    organization = relationship('Organization', back_populates='invoices')

    def __repr__(self):
        return f"<Invoice(id={self.id}, invoice_number='{self.invoice_number}', status={self.status.value})>"

    def can_transition_to(self, new_status: InvoiceStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS.get(self.status, set())

    def to_dict(self, include_organization=True):
        data = {
            'id': self.id,
            'invoiceNumber': self.invoice_number,
            'organizationId': self.organization_id,
            'periodMonth': self.period_month,
            'periodYear': self.period_year,
            'periodMonths': self.period_months,
            'amount': _money(self.amount),
            'basePrice': _money(self.base_price),
            'modulePrice': _money(self.module_price),
            'vatAmount': _money(self.vat_amount),
            'status': self.status.value,
            'invoiceDate': self.invoice_date.isoformat() if self.invoice_date else None,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'paidDate': self.paid_date.isoformat() if self.paid_date else None,
            'sentAt': self.sent_at.isoformat() if self.sent_at else None,
            'licenseType': self.license_type,
            'licenseTypeName': self.license_type_name,
            'modules': self.modules or [],
            'notes': self.notes,
        }
        if include_organization and self.organization is not None:
            data['organization'] = self.organization.summary_dict()
        return data


class InvoiceSequence(Base):
    """
    Per-year invoice counter.

    Rows are read with SELECT ... FOR UPDATE so concurrent invoice creation
    for the same year cannot hand out the same number.
    """
    __tablename__ = 'invoice_sequence'

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<InvoiceSequence year={self.year} last_value={self.last_value}>'
