"""
Admin authentication.

A single admin password (ADMIN_PASSWORD) guards the console. Callers either
send it in the x-admin-secret header or exchange it once for a signed,
expiring bearer token.
"""
import hmac
import logging
from datetime import datetime, timedelta
from typing import Optional

import jwt
from flask import current_app

from config import DEV_SECRET_KEY
from license_console.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = 'HS256'
TOKEN_SUBJECT = 'admin'


def _signing_key() -> Optional[str]:
    """SECRET_KEY, or None while it is unset or still the public placeholder."""
    key = current_app.config.get('SECRET_KEY') or ''
    if not key or key == DEV_SECRET_KEY:
        return None
    return key


def check_admin_password(candidate: Optional[str]) -> bool:
    """Constant-time comparison; an unset password rejects everything."""
    expected = current_app.config.get('ADMIN_PASSWORD') or ''
    if not expected or not candidate:
        return False
    return hmac.compare_digest(candidate.encode('utf-8'), expected.encode('utf-8'))


def issue_admin_token(password: Optional[str], now: Optional[datetime] = None) -> dict:
    """
    Exchange the admin password for a bearer token.

    Returns:
        dict with token, tokenType and expiresAt (ISO)

    Raises:
        UnauthorizedError: wrong password or no usable SECRET_KEY
    """
    if not check_admin_password(password):
        logger.warning("Admin login failed")
        raise UnauthorizedError()

    key = _signing_key()
    if key is None:
        logger.error("Admin token requested but SECRET_KEY is unset or the development default")
        raise UnauthorizedError()

    now = now or datetime.utcnow()
    expires_at = now + timedelta(seconds=current_app.config.get('ADMIN_TOKEN_TTL', 28800))
    payload = {
        'sub': TOKEN_SUBJECT,
        'iat': now,
        'exp': expires_at,
    }
    token = jwt.encode(payload, key, algorithm=TOKEN_ALGORITHM)

    logger.info("Admin token issued")
    return {
        'token': token,
        'tokenType': 'Bearer',
        'expiresAt': expires_at.isoformat(),
    }


def verify_admin_token(token: Optional[str]) -> bool:
    """True for an unexpired token signed with this app's SECRET_KEY."""
    if not token:
        return False
    key = _signing_key()
    if key is None:
        return False
    try:
        payload = jwt.decode(token, key, algorithms=[TOKEN_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Expired admin token rejected")
        return False
    except jwt.InvalidTokenError:
        logger.warning("Invalid admin token rejected")
        return False
    return payload.get('sub') == TOKEN_SUBJECT


def is_admin_request(headers) -> bool:
    """Check request headers for the admin secret or a valid bearer token."""
    if check_admin_password(headers.get('x-admin-secret')):
        return True

    authorization = headers.get('Authorization', '')
    scheme, _, token = authorization.partition(' ')
    if scheme.lower() == 'bearer':
        return verify_admin_token(token.strip())
    return False
