"""
Flask CLI commands for database setup and invoice housekeeping.

Commands:
- flask init-db: Create tables and seed the module catalog
- flask mark-overdue: Flag sent invoices past their due date as overdue
"""

import click
from datetime import date
from decimal import Decimal
from license_console.database import create_all, get_session
from license_console.models import Module
from license_console.services.invoice_service import mark_overdue_invoices

# key, name, description, is_standard, price, sort_order
DEFAULT_MODULES = [
    ('reporting', 'Rapporter', 'Rapporter og statistikk over bookinger', False, None, 10),
    ('payments', 'Betaling', 'Nettbetaling ved booking', False, Decimal('200.00'), 20),
    ('seasonal', 'Sesongbooking', 'Faste tider for en hel sesong', False, Decimal('150.00'), 30),
    ('sms', 'SMS-varsling', 'SMS-påminnelser til brukere', False, Decimal('100.00'), 40),
]


def seed_modules(session):
    """Insert catalog modules that do not exist yet. Returns the number added."""
    existing = {key for (key,) in session.query(Module.key).all()}
    added = 0
    for key, name, description, is_standard, price, sort_order in DEFAULT_MODULES:
        if key in existing:
            continue
        session.add(Module(
            key=key,
            name=name,
            description=description,
            is_standard=is_standard,
            is_active=True,
            price=price,
            sort_order=sort_order
        ))
        added += 1
    session.commit()
    return added


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables and seed the module catalog."""
        create_all()
        added = seed_modules(get_session())
        click.echo(click.style('✅ Database initialized', fg='green', bold=True))
        click.echo(f'   Modules added: {added}')

    @app.cli.command('mark-overdue')
    @click.option('--today', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
                  help='Reference date (YYYY-MM-DD), defaults to today')
    def mark_overdue_command(today):
        """Flag sent invoices past their due date as overdue."""
        reference = today.date() if today else date.today()
        session = get_session()
        try:
            invoices = mark_overdue_invoices(session, reference)
        except Exception as e:
            session.rollback()
            click.echo(click.style(f'❌ Could not update invoices: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'✅ {len(invoices)} invoice(s) marked as overdue', fg='green'))
        for invoice in invoices:
            click.echo(f'   {invoice.invoice_number} (due {invoice.due_date.isoformat()})')
