"""
Formatting helpers in Norwegian (nb-NO) style.
Numbers, money, dates and billing periods as shown on invoices and emails.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

# Thousands separator used by nb-NO (non-breaking space)
THOUSANDS_SEPARATOR = '\u00a0'

MONTH_NAMES_NO = [
    'januar', 'februar', 'mars', 'april', 'mai', 'juni',
    'juli', 'august', 'september', 'oktober', 'november', 'desember',
]


def num_no(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number in Norwegian style:
    - Thousands separator: non-breaking space
    - Decimal separator: comma (,)
    - Trailing zero decimals are dropped

    Examples:
        num_no(3600) -> "3 600"
        num_no(1234.5) -> "1 234,5"
        num_no(999) -> "999"
        num_no(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        if isinstance(value, str):
            value = value.replace(",", ".")
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    num_str = f"{num:f}"

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part = num_str
        decimal_part = ""

    if integer_part.startswith('-'):
        sign_str = '-'
        integer_part = integer_part[1:]
    else:
        sign_str = ''

    # Group thousands: reverse, chunk by 3, reverse back
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = THOUSANDS_SEPARATOR.join(groups)[::-1]

    if decimal_part:
        return f"{sign_str}{integer_formatted},{decimal_part[:2]}"
    return f"{sign_str}{integer_formatted}"


def money_nok(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount in kroner.

    Examples:
        money_nok(3600) -> "3 600 kr"
        money_nok(999) -> "999 kr"
    """
    return f"{num_no(value)} kr"


def month_name(month: int) -> str:
    """Norwegian month name for 1-12."""
    return MONTH_NAMES_NO[month - 1]


def period_end(start_month: int, start_year: int, months: int = 1):
    """Return (end_month, end_year) for a period starting at start_month/start_year."""
    offset = start_month - 1 + months - 1
    return (offset % 12) + 1, start_year + offset // 12


def format_period(start_month: int, start_year: int, months: int = 1) -> str:
    """
    Human label for a billing period.

    Examples:
        format_period(1, 2025) -> "januar 2025"
        format_period(4, 2025, 12) -> "2025 (helår)"
        format_period(1, 2025, 3) -> "januar – mars 2025"
        format_period(11, 2025, 3) -> "november – januar 2026"
    """
    if months == 1:
        return f"{month_name(start_month)} {start_year}"
    if months == 12:
        return f"{start_year} (helår)"
    end_month, end_year = period_end(start_month, start_year, months)
    return f"{month_name(start_month)} – {month_name(end_month)} {end_year}"


def date_no_long(value: Union[date, datetime, None]) -> str:
    """
    Long Norwegian date.

    Examples:
        date_no_long(date(2025, 1, 15)) -> "15. januar 2025"
    """
    if not value:
        return "-"
    return f"{value.day}. {month_name(value.month)} {value.year}"
