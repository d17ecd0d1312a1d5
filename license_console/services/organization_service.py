"""
Organization service - customer records, license settings and module toggles.

Organizations are never hard-deleted; they are deactivated or suspended.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from license_console.models import Organization, Module, OrganizationModule, LicenseValidation
from license_console.exceptions import ConflictError, NotFoundError, ValidationError
from license_console.services.pricing_service import LICENSE_TYPES
from license_console.utils.parsing import parse_iso_datetime, slugify, is_valid_slug

logger = logging.getLogger(__name__)

DEFAULT_LICENSE_DAYS = 365
LICENSE_KEY_PREFIX = 'SF'

# camelCase payload key -> column for free-text fields
TEXT_FIELDS = {
    'name': 'name',
    'contactEmail': 'contact_email',
    'contactName': 'contact_name',
    'contactPhone': 'contact_phone',
    'suspendReason': 'suspend_reason',
    'appUrl': 'app_url',
    'notes': 'notes',
}

# Fields that may not be emptied
REQUIRED_FIELDS = {'name', 'contactEmail'}

BOOLEAN_FIELDS = {
    'isActive': 'is_active',
    'isSuspended': 'is_suspended',
}

LIMIT_FIELDS = {
    'maxUsers': 'max_users',
    'maxResources': 'max_resources',
}


def generate_license_key() -> str:
    """Random license key, e.g. SF-3F9A1C2B-7D4E8A60-B1C2D3E4."""
    raw = secrets.token_hex(12).upper()
    return f"{LICENSE_KEY_PREFIX}-{raw[0:8]}-{raw[8:16]}-{raw[16:24]}"


def _validate_license_type(license_type) -> str:
    if license_type not in LICENSE_TYPES:
        raise ValidationError(f"licenseType must be one of: {', '.join(LICENSE_TYPES)}")
    return license_type


def _parse_expires_at(value) -> datetime:
    if value is None:
        raise ValidationError('expiresAt cannot be null')
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError('expiresAt must be a valid ISO date string')


def get_organization_or_404(session: Session, organization_id: int) -> Organization:
    organization = session.query(Organization).filter_by(id=organization_id).first()
    if not organization:
        raise NotFoundError('Organization not found')
    return organization


def get_organization_by_slug(session: Session, slug: str) -> Organization:
    organization = session.query(Organization).filter_by(slug=slug).first()
    if not organization:
        raise NotFoundError('Organization not found')
    return organization


def list_organizations(session: Session) -> List[Dict[str, Any]]:
    """
    All organizations, newest first, with usage stats and validation count.
    """
    organizations = session.query(Organization).order_by(Organization.created_at.desc(), Organization.id.desc()).all()

    counts = dict(
        session.query(LicenseValidation.organization_id, func.count(LicenseValidation.id))
        .filter(LicenseValidation.organization_id.isnot(None))
        .group_by(LicenseValidation.organization_id)
        .all()
    )

    result = []
    for organization in organizations:
        data = organization.to_dict()
        data['stats'] = organization.stats.to_dict() if organization.stats else None
        data['validationCount'] = counts.get(organization.id, 0)
        result.append(data)
    return result


def create_organization(session: Session, data: dict, now: Optional[datetime] = None) -> Organization:
    """
    Register a new customer organization.

    Args:
        data: Dictionary with camelCase keys:
            - name: str (required)
            - contactEmail: str (required)
            - slug: str (derived from name if absent)
            - licenseType: str (default 'inactive')
            - expiresAt: ISO date (default one year ahead)
            - contactName, contactPhone, appUrl, notes, maxUsers, maxResources

    Raises:
        ValidationError: missing/invalid fields
        ConflictError: slug already taken
    """
    now = now or datetime.utcnow()

    name = (data.get('name') or '').strip()
    contact_email = (data.get('contactEmail') or '').strip()
    if not name:
        raise ValidationError('name is required')
    if not contact_email:
        raise ValidationError('contactEmail is required')

    slug = (data.get('slug') or '').strip().lower() or slugify(name)
    if not is_valid_slug(slug):
        raise ValidationError('slug may only contain lowercase letters, digits and hyphens')

    license_type = _validate_license_type(data.get('licenseType') or 'inactive')

    if 'expiresAt' in data:
        expires_at = _parse_expires_at(data['expiresAt'])
    else:
        expires_at = now + timedelta(days=DEFAULT_LICENSE_DAYS)

    if session.query(Organization).filter_by(slug=slug).first():
        raise ConflictError(f"Organization with slug '{slug}' already exists")

    organization = Organization(
        name=name,
        slug=slug,
        contact_email=contact_email,
        contact_name=data.get('contactName') or None,
        contact_phone=data.get('contactPhone') or None,
        app_url=data.get('appUrl') or None,
        notes=data.get('notes') or None,
        license_key=generate_license_key(),
        license_type=license_type,
        is_active=True,
        is_suspended=False,
        activated_at=now if license_type != 'inactive' else None,
        expires_at=expires_at,
        total_users=0,
        total_bookings=0,
    )
    _apply_limits(organization, data)

    try:
        session.add(organization)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error creating organization '{slug}': {e.orig}")
        raise ConflictError(f"Organization with slug '{slug}' already exists")

    logger.info(f"Created organization '{slug}' ({license_type})")
    return organization


def _apply_limits(organization: Organization, data: dict):
    for key, column in LIMIT_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
            raise ValidationError(f'{key} must be a non-negative integer or null')
        setattr(organization, column, value)


def update_organization(session: Session, data: dict, now: Optional[datetime] = None) -> Organization:
    """
    Partially update an organization identified by data['slug'].

    Raises:
        ValidationError: missing slug, invalid values or nothing to update
        NotFoundError: unknown slug
    """
    now = now or datetime.utcnow()

    slug = data.get('slug')
    if not slug:
        raise ValidationError('slug is required')

    updates = {key: value for key, value in data.items() if key != 'slug'}
    known = set(TEXT_FIELDS) | set(BOOLEAN_FIELDS) | set(LIMIT_FIELDS) | {'licenseType', 'expiresAt'}
    if not any(key in known for key in updates):
        raise ValidationError('Nothing to update')

    organization = get_organization_by_slug(session, slug)

    try:
        for key, column in TEXT_FIELDS.items():
            if key not in updates:
                continue
            value = updates[key]
            if value is not None and not isinstance(value, str):
                raise ValidationError(f'{key} must be a string')
            if key in REQUIRED_FIELDS and not (value or '').strip():
                raise ValidationError(f'{key} cannot be empty')
            setattr(organization, column, value)

        for key, column in BOOLEAN_FIELDS.items():
            if isinstance(updates.get(key), bool):
                setattr(organization, column, updates[key])

        _apply_limits(organization, updates)

        if 'licenseType' in updates:
            license_type = _validate_license_type(updates['licenseType'])
            if organization.activated_at is None and license_type != 'inactive':
                organization.activated_at = now
            organization.license_type = license_type

        if 'expiresAt' in updates:
            organization.expires_at = _parse_expires_at(updates['expiresAt'])

        session.commit()
    except ValidationError:
        session.rollback()
        raise

    logger.info(f"Updated organization '{slug}' ({', '.join(sorted(updates))})")
    return organization


def list_modules(session: Session) -> List[Module]:
    return session.query(Module).order_by(Module.sort_order, Module.name).all()


def get_organization_modules(session: Session, organization_id: int) -> List[OrganizationModule]:
    organization = get_organization_or_404(session, organization_id)
    return sorted(organization.modules, key=lambda org_module: (org_module.module.sort_order, org_module.module.name))


def set_organization_module(session: Session, organization_id: int, module_id, is_active,
                            now: Optional[datetime] = None) -> OrganizationModule:
    """
    Switch a module on or off for an organization (upsert).

    Raises:
        ValidationError: missing arguments or deactivating a standard module
        NotFoundError: unknown organization or module
    """
    now = now or datetime.utcnow()

    if isinstance(module_id, bool) or not isinstance(module_id, int) or not isinstance(is_active, bool):
        raise ValidationError('moduleId and isActive are required')

    organization = get_organization_or_404(session, organization_id)
    module = session.query(Module).filter_by(id=module_id).first()
    if not module:
        raise NotFoundError('Module not found')

    if module.is_standard and not is_active:
        raise ValidationError('Standard modules cannot be deactivated')

    org_module = (session.query(OrganizationModule)
                  .filter_by(organization_id=organization.id, module_id=module.id)
                  .first())

    try:
        if org_module is None:
            org_module = OrganizationModule(
                organization_id=organization.id,
                module_id=module.id,
                is_active=is_active,
                activated_at=now
            )
            session.add(org_module)
        else:
            org_module.is_active = is_active
            if is_active:
                org_module.activated_at = now
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning(f"Integrity error toggling module {module.key} for organization {organization.id}: {e.orig}")
        raise ConflictError('Module already exists for this organization')

    logger.info(f"Module '{module.key}' {'enabled' if is_active else 'disabled'} for '{organization.slug}'")
    return org_module
