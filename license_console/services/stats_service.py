"""
Usage statistics service.

The booking app pushes a usage snapshot with its license key; an admin can
also pull the snapshot from the app on demand.
"""
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

import requests
from flask import current_app
from sqlalchemy.orm import Session

from license_console.models import Organization, OrganizationStats
from license_console.exceptions import NotFoundError, UpstreamError, ValidationError
from license_console.utils.parsing import parse_iso_datetime

logger = logging.getLogger(__name__)

STATS_PATH = '/api/license/stats'


def _counter(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def apply_stats(session: Session, organization: Organization, stats: Dict[str, Any],
                now: Optional[datetime] = None) -> OrganizationStats:
    """
    Upsert the usage snapshot for an organization and stamp its heartbeat.

    Missing or malformed counters are stored as 0. The caller commits.
    """
    now = now or datetime.utcnow()

    row = session.query(OrganizationStats).filter_by(organization_id=organization.id).first()
    if row is None:
        row = OrganizationStats(organization_id=organization.id)
        session.add(row)

    for key, column in OrganizationStats.COUNTER_FIELDS.items():
        setattr(row, column, _counter(stats.get(key)))

    last_login = stats.get('lastUserLogin')
    try:
        row.last_user_login = parse_iso_datetime(last_login) if last_login else None
    except ValueError:
        logger.warning(f"Ignoring invalid lastUserLogin from '{organization.slug}': {last_login}")
        row.last_user_login = None

    row.last_updated = now

    organization.last_heartbeat = now
    organization.total_users = row.total_users
    organization.total_bookings = row.total_bookings
    if stats.get('appVersion'):
        organization.app_version = str(stats['appVersion'])

    session.flush()
    return row


def report_stats(session: Session, license_key, stats, now: Optional[datetime] = None) -> OrganizationStats:
    """
    Store a snapshot pushed by the booking app.

    Raises:
        ValidationError: missing license key or stats object
        NotFoundError: unknown license key
    """
    if not license_key:
        raise ValidationError('licenseKey is required')
    if not isinstance(stats, dict):
        raise ValidationError('stats object is required')

    organization = session.query(Organization).filter_by(license_key=license_key).first()
    if not organization:
        raise NotFoundError('Invalid license key')

    row = apply_stats(session, organization, stats, now)
    session.commit()
    logger.info(f"Stats reported by '{organization.slug}' (users={row.total_users}, bookings={row.total_bookings})")
    return row


def list_stats(session: Session, organization_id: Optional[int] = None) -> List[OrganizationStats]:
    """All snapshots, most recently updated first, or a single organization's."""
    query = session.query(OrganizationStats)
    if organization_id is not None:
        query = query.filter(OrganizationStats.organization_id == organization_id)
    return query.order_by(OrganizationStats.last_updated.desc()).all()


def fetch_stats(session: Session, organization_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Pull a usage snapshot from the organization's booking app and store it.

    Raises:
        NotFoundError: unknown organization
        ValidationError: organization has no app URL
        UpstreamError: the booking app failed or could not be reached
    """
    organization = session.query(Organization).filter_by(id=organization_id).first()
    if not organization:
        raise NotFoundError('Organization not found')
    if not organization.app_url:
        raise ValidationError('No app URL configured for this organization')

    url = organization.app_url.rstrip('/') + STATS_PATH
    timeout = current_app.config.get('STATS_FETCH_TIMEOUT', 10)

    try:
        response = requests.post(url, json={'licenseKey': organization.license_key}, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"Could not reach booking app for '{organization.slug}': {e}")
        raise UpstreamError(f'Could not contact the booking app: {e}')

    if not response.ok:
        logger.error(f"Booking app for '{organization.slug}' answered {response.status_code}")
        raise UpstreamError(f'Booking app responded with error: {response.status_code} - {response.text[:200]}')

    try:
        stats = response.json()
    except ValueError:
        raise UpstreamError('Booking app returned invalid JSON')
    if not isinstance(stats, dict):
        raise UpstreamError('Booking app returned invalid JSON')

    apply_stats(session, organization, stats, now)
    session.commit()
    logger.info(f"Fetched stats from booking app for '{organization.slug}'")
    return stats
