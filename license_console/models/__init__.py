"""Models package - exports all SQLAlchemy models."""
# Customers and licensing
from license_console.models.organization import Organization
from license_console.models.module import Module, OrganizationModule
from license_console.models.license_type_price import LicenseTypePrice
from license_console.models.license_validation import LicenseValidation
from license_console.models.organization_stats import OrganizationStats

# Billing
from license_console.models.invoice import Invoice, InvoiceStatus, InvoiceSequence, ALLOWED_TRANSITIONS
from license_console.models.company_settings import CompanySettings

__all__ = [
    # Customers and licensing
    'Organization', 'Module', 'OrganizationModule', 'LicenseTypePrice',
    'LicenseValidation', 'OrganizationStats',
    # Billing
    'Invoice', 'InvoiceStatus', 'InvoiceSequence', 'ALLOWED_TRANSITIONS',
    'CompanySettings',
]
