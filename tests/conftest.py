import pytest
from datetime import datetime, timedelta
from decimal import Decimal
import uuid

from license_console import create_app
from license_console.database import create_all, drop_all, get_session
from license_console.models import Organization, Module, OrganizationModule, CompanySettings


ADMIN_PASSWORD = 'test-admin-password'


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function', autouse=True)
def database(app):
    """Fresh schema for every test."""
    with app.app_context():
        create_all()
        yield
        get_session().remove()
        drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session inside an application context."""
    with app.app_context():
        session = get_session()
        yield session
        session.rollback()


@pytest.fixture
def admin_headers():
    return {'x-admin-secret': ADMIN_PASSWORD}


def make_organization(session, **overrides):
    """Insert an organization; keyword arguments override the defaults."""
    suffix = str(uuid.uuid4())[:8]
    values = dict(
        name=f'Test Klubb {suffix}',
        slug=f'test-klubb-{suffix}',
        contact_email=f'kontakt-{suffix}@example.com',
        contact_name='Kari Nordmann',
        license_key=f'SF-TEST-{suffix.upper()}',
        license_type='standard',
        is_active=True,
        is_suspended=False,
        activated_at=datetime.utcnow() - timedelta(days=30),
        expires_at=datetime.utcnow() + timedelta(days=335),
        total_users=0,
        total_bookings=0,
    )
    values.update(overrides)
    organization = Organization(**values)
    session.add(organization)
    session.commit()
    return organization


def make_module(session, key, price=None, is_standard=False, sort_order=0):
    module = Module(
        key=key,
        name=key.capitalize(),
        is_standard=is_standard,
        is_active=True,
        price=Decimal(str(price)) if price is not None else None,
        sort_order=sort_order
    )
    session.add(module)
    session.commit()
    return module


def attach_module(session, organization, module, is_active=True):
    org_module = OrganizationModule(
        organization_id=organization.id,
        module_id=module.id,
        is_active=is_active,
        activated_at=datetime.utcnow()
    )
    session.add(org_module)
    session.commit()
    return org_module


@pytest.fixture(scope='function')
def organization_factory(session):
    """Build extra organizations: organization_factory(license_type='pilot', ...)."""
    def _factory(**overrides):
        return make_organization(session, **overrides)
    return _factory


@pytest.fixture(scope='function')
def module_factory(session):
    def _factory(key, price=None, is_standard=False, sort_order=0):
        return make_module(session, key, price, is_standard, sort_order)
    return _factory


@pytest.fixture(scope='function')
def organization(session):
    """Standard-license organization without modules."""
    return make_organization(session)


@pytest.fixture(scope='function')
def paid_module(session):
    """Module priced at 200 per month."""
    return make_module(session, 'payments', price=200, sort_order=20)


@pytest.fixture(scope='function')
def free_module(session):
    """Module without a price."""
    return make_module(session, 'reporting', price=None, sort_order=10)


@pytest.fixture(scope='function')
def billed_organization(session, organization, paid_module, free_module):
    """
    Standard organization with one paid (200) and one free module active:
    1200 per month.
    """
    attach_module(session, organization, paid_module)
    attach_module(session, organization, free_module)
    return organization


@pytest.fixture(scope='function')
def company_settings(session):
    settings = CompanySettings(
        company_name='SportFlow AS',
        invoice_prefix='INV',
        default_due_days=14,
        vat_rate=Decimal('0'),
        country='Norge'
    )
    session.add(settings)
    session.commit()
    return settings


@pytest.fixture(scope='function')
def link_module(session):
    """Switch a module on (or off) for an organization: link_module(org, module, is_active=True)."""
    def _link(organization, module, is_active=True):
        return attach_module(session, organization, module, is_active)
    return _link
