"""
Pricing service - monthly license cost for an organization.

Monthly price = license type base price + price of each active module.
Pilot customers get every module for free.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional, Dict, Any

from sqlalchemy.orm import Session

from license_console.models import LicenseTypePrice, Module, Organization
from license_console.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

LICENSE_TYPES = {
    'inactive': {'name': 'Inaktiv', 'price': Decimal('0.00')},
    'pilot': {'name': 'Pilot', 'price': Decimal('1000.00')},
    'free': {'name': 'Gratis', 'price': Decimal('0.00')},
    'standard': {'name': 'Standard', 'price': Decimal('1000.00')},
}

PILOT = 'pilot'
INACTIVE = 'inactive'

# Core booking functionality is always included and never billed
CORE_MODULE = {'key': 'booking', 'name': 'Booking'}


def license_type_name(license_type: str) -> str:
    return LICENSE_TYPES.get(license_type, {}).get('name', license_type)


def get_license_price(license_type: str, override=None) -> Decimal:
    """
    Base monthly price for a license type.

    An admin override wins over the configured default; unknown license
    types are priced at zero.
    """
    if override is not None:
        return Decimal(str(override))
    return LICENSE_TYPES.get(license_type, {}).get('price', ZERO)


def _module_of(item):
    """Accept OrganizationModule rows or bare Module records."""
    return getattr(item, 'module', None) or item


def _is_active(item) -> bool:
    return bool(getattr(item, 'is_active', True))


def calculate_module_price(license_type: str, organization_modules: Iterable) -> Decimal:
    """Sum of active module prices; zero for pilot customers."""
    if license_type == PILOT:
        return ZERO

    total = ZERO
    for item in organization_modules:
        if not _is_active(item):
            continue
        price = _module_of(item).price
        if price:
            total += Decimal(str(price))
    return total


def calculate_monthly_price(license_type: str, organization_modules: Iterable, base_price=None) -> Decimal:
    """Base price plus module price for one month, before VAT."""
    modules = list(organization_modules)
    return get_license_price(license_type, base_price) + calculate_module_price(license_type, modules)


def calculate_pricing(license_type: str, organization_modules: Iterable, base_price=None) -> Dict[str, Decimal]:
    """
    Monthly price breakdown.

    Returns:
        dict with keys basePrice, modulePrice, totalMonthlyPrice
    """
    modules = list(organization_modules)
    base = get_license_price(license_type, base_price)
    module_price = calculate_module_price(license_type, modules)
    return {
        'basePrice': base,
        'modulePrice': module_price,
        'totalMonthlyPrice': base + module_price,
    }


def get_price_override(session: Session, license_type: str) -> Optional[Decimal]:
    row = session.query(LicenseTypePrice).filter_by(license_type=license_type).first()
    return row.price if row else None


def get_base_price(session: Session, license_type: str) -> Decimal:
    """Base price honoring any admin override stored in the database."""
    return get_license_price(license_type, get_price_override(session, license_type))


def get_organization_pricing(session: Session, organization: Organization) -> Dict[str, Any]:
    """
    Detailed monthly pricing for an organization, as shown to the booking app.
    """
    license_type = organization.license_type
    is_pilot = license_type == PILOT
    active_modules = organization.active_modules

    base_price = get_base_price(session, license_type)
    pricing = calculate_pricing(license_type, active_modules, base_price)

    module_list = [
        {
            'key': org_module.module.key,
            'name': org_module.module.name,
            'price': 0.0 if is_pilot else float(org_module.module.price or 0),
            'isStandard': org_module.module.is_standard,
        }
        for org_module in active_modules
    ]

    if license_type != INACTIVE:
        module_list.insert(0, {**CORE_MODULE, 'price': 0.0, 'isStandard': True})

    return {
        'licenseType': license_type,
        'licenseTypeName': license_type_name(license_type),
        'basePrice': float(pricing['basePrice']),
        'modules': module_list,
        'modulePrice': float(pricing['modulePrice']),
        'totalMonthlyPrice': float(pricing['totalMonthlyPrice']),
    }


def list_license_type_prices(session: Session):
    """Effective base price per license type, flagging admin overrides."""
    overrides = {row.license_type: row.price for row in session.query(LicenseTypePrice).all()}
    return [
        {
            'licenseType': license_type,
            'name': config['name'],
            'price': float(overrides.get(license_type, config['price'])),
            'defaultPrice': float(config['price']),
            'isOverride': license_type in overrides,
        }
        for license_type, config in LICENSE_TYPES.items()
    ]


def set_license_type_price(session: Session, license_type: str, price: Decimal) -> LicenseTypePrice:
    """Create or update the base price override for a license type."""
    if license_type not in LICENSE_TYPES:
        raise ValidationError(f"licenseType must be one of: {', '.join(LICENSE_TYPES)}")

    row = session.query(LicenseTypePrice).filter_by(license_type=license_type).first()
    if row is None:
        row = LicenseTypePrice(license_type=license_type, price=price)
        session.add(row)
    else:
        row.price = price

    session.flush()
    logger.info(f"License type price for '{license_type}' set to {price}")
    return row


def set_module_price(session: Session, module_id: int, price: Optional[Decimal]) -> Module:
    """Update a module's monthly price (None makes it free)."""
    module = session.query(Module).filter_by(id=module_id).first()
    if not module:
        raise NotFoundError('Module not found')

    module.price = price
    session.flush()
    logger.info(f"Module '{module.key}' price set to {price}")
    return module
