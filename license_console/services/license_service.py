"""
License service - public license checks made by the booking app.
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from license_console.models import Organization, LicenseValidation
from license_console.exceptions import NotFoundError, ValidationError
from license_console.services.pricing_service import INACTIVE, get_organization_pricing
from license_console.blueprints.metrics import license_validations_total

logger = logging.getLogger(__name__)

REASON_MISMATCH = 'mismatch'
REASON_INACTIVE = 'inactive'
REASON_SUSPENDED = 'suspended'
REASON_EXPIRED = 'expired'


def license_status(organization: Organization, now: datetime):
    """
    Evaluate a license at a point in time.

    Returns:
        (valid, reason) where reason is None for a valid license.
        A license past expires_at stays valid until grace_ends_at, if set.
    """
    if not organization.is_active or organization.license_type == INACTIVE:
        return False, REASON_INACTIVE
    if organization.is_suspended:
        return False, REASON_SUSPENDED
    if organization.expires_at is not None and organization.expires_at < now:
        if organization.grace_ends_at is None or organization.grace_ends_at < now:
            return False, REASON_EXPIRED
    return True, None


def validate_license(session: Session, license_key, org_slug, ip_address: Optional[str] = None,
                     now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Validate a license key + organization slug pair.

    Every request for a known key is written to the validation log.

    Returns:
        dict with keys valid, plan, reason, validUntil

    Raises:
        ValidationError: if licenseKey or orgSlug is missing
    """
    now = now or datetime.utcnow()

    if not license_key or not org_slug:
        raise ValidationError('licenseKey and orgSlug are required')

    organization = session.query(Organization).filter_by(license_key=license_key).first()

    if organization is None or organization.slug != org_slug:
        valid, reason = False, REASON_MISMATCH
    else:
        valid, reason = license_status(organization, now)

    if organization is not None:
        session.add(LicenseValidation(
            organization_id=organization.id,
            license_key=license_key,
            org_slug=org_slug,
            valid=valid,
            reason=reason,
            ip_address=ip_address,
        ))
        session.commit()

    license_validations_total.labels(result='valid' if valid else reason).inc()

    if valid:
        logger.info(f"License validated for '{org_slug}'")
    else:
        logger.warning(f"License validation failed for '{org_slug}': {reason}")

    return {
        'valid': valid,
        'plan': organization.license_type if organization is not None else None,
        'reason': reason,
        'validUntil': organization.expires_at.isoformat()
        if organization is not None and organization.expires_at and reason != REASON_MISMATCH else None,
    }


def get_pricing_for_license_key(session: Session, license_key) -> Dict[str, Any]:
    """
    Monthly price breakdown for the organization owning a license key.

    Returns:
        {licenseKey, organization: <name>, pricing: {licenseType,
        licenseTypeName, basePrice, modules, modulePrice, totalMonthlyPrice}}
    """
    if not license_key:
        raise ValidationError('licenseKey is required')

    organization = session.query(Organization).filter_by(license_key=license_key).first()
    if not organization:
        raise NotFoundError('Organization not found')

    return {
        'licenseKey': organization.license_key,
        'organization': organization.name,
        'pricing': get_organization_pricing(session, organization),
    }
