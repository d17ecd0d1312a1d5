"""
Company settings - singleton with the issuing company's identity,
banking details, invoice defaults and invoice email templates.
"""
from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime
from sqlalchemy.sql import func
from license_console.database import Base


DEFAULT_COMPANY_NAME = 'SportFlow AS'
DEFAULT_COUNTRY = 'Norge'
DEFAULT_INVOICE_PREFIX = 'INV'
DEFAULT_DUE_DAYS = 14


class CompanySettings(Base):
    __tablename__ = 'company_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    company_name = Column(String(200), nullable=False, default=DEFAULT_COMPANY_NAME)
    org_number = Column(String(50))
    vat_number = Column(String(50))
    email = Column(String(255))
    phone = Column(String(50))
    website = Column(String(255))
    address = Column(String(255))
    postal_code = Column(String(20))
    city = Column(String(100))
    country = Column(String(100), nullable=False, default=DEFAULT_COUNTRY)
    logo_url = Column(String(500))

    # Banking
    bank_account = Column(String(50))
    bank_name = Column(String(100))
    iban = Column(String(50))
    swift = Column(String(20))

    # Invoice defaults
    invoice_prefix = Column(String(20), nullable=False, default=DEFAULT_INVOICE_PREFIX)
    default_due_days = Column(Integer, nullable=False, default=DEFAULT_DUE_DAYS)
    vat_rate = Column(Numeric(5, 2), nullable=False, default=0)
    invoice_note = Column(Text)
    payment_terms = Column(Text)

    # Email templates ({customerName}, {invoiceNumber}, {amount}, {dueDate}, {period})
    email_subject = Column(String(255))
    email_greeting = Column(Text)
    email_body = Column(Text)
    email_footer = Column(Text)

    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f'<CompanySettings id={self.id} company={self.company_name}>'

    @property
    def email_templates(self):
        """Template strings keyed the way the email service expects them."""
        return {
            'subject': self.email_subject,
            'greeting': self.email_greeting,
            'body': self.email_body,
            'footer': self.email_footer,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'companyName': self.company_name,
            'orgNumber': self.org_number,
            'vatNumber': self.vat_number,
            'email': self.email,
            'phone': self.phone,
            'website': self.website,
            'address': self.address,
            'postalCode': self.postal_code,
            'city': self.city,
            'country': self.country,
            'logoUrl': self.logo_url,
            'bankAccount': self.bank_account,
            'bankName': self.bank_name,
            'iban': self.iban,
            'swift': self.swift,
            'invoicePrefix': self.invoice_prefix,
            'defaultDueDays': self.default_due_days,
            'vatRate': float(self.vat_rate) if self.vat_rate is not None else 0.0,
            'invoiceNote': self.invoice_note,
            'paymentTerms': self.payment_terms,
            'emailSubject': self.email_subject,
            'emailGreeting': self.email_greeting,
            'emailBody': self.email_body,
            'emailFooter': self.email_footer,
        }
