"""
Invoice numbering - sequential per calendar year, formatted INV-2025-001.
"""
import logging
import re

from sqlalchemy.orm import Session

from license_console.models import Invoice, InvoiceSequence
from license_console.models.company_settings import DEFAULT_INVOICE_PREFIX

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 3


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    """format_invoice_number('INV', 2025, 7) -> 'INV-2025-007'"""
    return f"{prefix}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def _highest_existing_sequence(session: Session, year: int, prefix: str) -> int:
    """
    Highest numeric suffix among stored invoice numbers for the year.

    Used once per year to seed the counter from invoices created before the
    counter existed. Numbers that do not follow the pattern are skipped.
    """
    pattern = re.compile(rf"{re.escape(prefix)}-{year}-(\d+)")
    rows = session.query(Invoice.invoice_number).filter(
        Invoice.invoice_number.startswith(f"{prefix}-{year}-", autoescape=True)
    ).all()

    highest = 0
    for (invoice_number,) in rows:
        match = pattern.fullmatch(invoice_number)
        if not match:
            logger.warning(f"Ignoring invoice number with unexpected format: {invoice_number}")
            continue
        highest = max(highest, int(match.group(1)))
    return highest


def next_invoice_number(session: Session, year: int, prefix: str = DEFAULT_INVOICE_PREFIX) -> str:
    """
    Reserve and return the next invoice number for a year.

    The per-year counter row is locked (SELECT ... FOR UPDATE) until the
    caller's transaction ends, so two concurrent requests cannot get the
    same number. The caller commits or rolls back.
    """
    sequence = (session.query(InvoiceSequence)
                .filter_by(year=year)
                .with_for_update()
                .first())

    if sequence is None:
        sequence = InvoiceSequence(year=year, last_value=_highest_existing_sequence(session, year, prefix))
        session.add(sequence)

    sequence.last_value += 1
    session.flush()

    invoice_number = format_invoice_number(prefix, year, sequence.last_value)
    logger.info(f"Reserved invoice number {invoice_number}")
    return invoice_number
