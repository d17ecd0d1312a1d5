"""Parsing utilities for JSON request values."""
import re
import unicodedata
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

SLUG_STRIP_PATTERN = re.compile(r"[^a-z0-9]+")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Letters that NFKD does not decompose to ASCII
_SLUG_TRANSLITERATIONS = {'æ': 'ae', 'ø': 'o', 'å': 'a', 'ß': 'ss'}


def parse_iso_datetime(value) -> datetime:
    """
    Parse an ISO-8601 string to a naive UTC datetime.

    Accepts dates ("2025-01-31") and datetimes with or without offset
    ("2025-01-31T10:00:00Z").

    Raises:
        ValueError: if the value is not a valid ISO date string.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError('Invalid date')

    cleaned = value.strip()
    if cleaned.endswith('Z'):
        cleaned = cleaned[:-1] + '+00:00'

    parsed = datetime.fromisoformat(cleaned)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_iso_date(value) -> date:
    """Parse an ISO-8601 string to a date. Raises ValueError when invalid."""
    return parse_iso_datetime(value).date()


def parse_price(value, allow_none=False):
    """
    Parse a price to Decimal with 2 decimals.

    Raises:
        ValueError: if the value is missing, not numeric or negative.
    """
    if value is None:
        if allow_none:
            return None
        raise ValueError('Price is required')
    if isinstance(value, bool):
        raise ValueError('Price must be a number')

    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError('Price must be a number')

    if not price.is_finite():
        raise ValueError('Price must be a number')
    if price < 0:
        raise ValueError('Price cannot be negative')

    return price.quantize(Decimal('0.01'))


def slugify(value: str) -> str:
    """
    Build a URL-safe slug from a display name.

    Examples:
        slugify("Bærum Tennisklubb") -> "baerum-tennisklubb"
    """
    lowered = (value or '').strip().lower()
    for char, replacement in _SLUG_TRANSLITERATIONS.items():
        lowered = lowered.replace(char, replacement)
    ascii_value = unicodedata.normalize('NFKD', lowered).encode('ascii', 'ignore').decode('ascii')
    return SLUG_STRIP_PATTERN.sub('-', ascii_value).strip('-')


def is_valid_slug(value: str) -> bool:
    return bool(value) and bool(SLUG_PATTERN.match(value))
