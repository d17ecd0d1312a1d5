"""Helpers for reading JSON bodies and query arguments in API routes."""
from flask import request

from license_console.exceptions import ValidationError
from license_console.utils.parsing import parse_iso_date


def get_json_body(required=True) -> dict:
    """
    Return the request body as a dict.

    An empty body gives {} when required is False; malformed JSON or a
    non-object body is always a ValidationError.
    """
    if not request.get_data(cache=True):
        if required:
            raise ValidationError('Invalid JSON')
        return {}

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('Invalid JSON')
    return payload


def int_arg(name: str):
    """Optional integer query argument."""
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f'{name} must be an integer')


def date_field(payload: dict, key: str):
    """Optional ISO date from a JSON payload (None when absent or null)."""
    value = payload.get(key)
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f'{key} must be a valid ISO date string')
