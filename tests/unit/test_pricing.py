"""
Unit tests for the pricing calculator.
"""

import pytest
from decimal import Decimal

from license_console.models import Module, OrganizationModule, LicenseTypePrice
from license_console.exceptions import NotFoundError, ValidationError
from license_console.services import pricing_service


def org_module(price, is_active=True):
    """Unsaved OrganizationModule with a module at the given price."""
    module = Module(key=f'm{price}', name='Module', price=Decimal(str(price)) if price is not None else None)
    return OrganizationModule(module=module, is_active=is_active)


class TestLicensePrice:
    """Tests for base prices per license type."""

    def test_default_prices(self):
        assert pricing_service.get_license_price('standard') == Decimal('1000.00')
        assert pricing_service.get_license_price('pilot') == Decimal('1000.00')
        assert pricing_service.get_license_price('free') == Decimal('0.00')
        assert pricing_service.get_license_price('inactive') == Decimal('0.00')

    def test_override_wins(self):
        assert pricing_service.get_license_price('standard', Decimal('1500')) == Decimal('1500')

    def test_zero_override_is_respected(self):
        assert pricing_service.get_license_price('standard', Decimal('0')) == Decimal('0')

    def test_unknown_type_is_free(self):
        assert pricing_service.get_license_price('enterprise') == Decimal('0')

    def test_license_type_name(self):
        assert pricing_service.license_type_name('free') == 'Gratis'
        assert pricing_service.license_type_name('custom') == 'custom'


class TestMonthlyPrice:
    """Tests for base + module pricing."""

    def test_standard_with_paid_and_free_module(self):
        """Standard (1000) + paid module (200) + free module = 1200."""
        modules = [org_module(200), org_module(None)]

        assert pricing_service.calculate_monthly_price('standard', modules) == Decimal('1200.00')

    def test_pilot_gets_modules_for_free(self):
        modules = [org_module(200), org_module(None)]

        assert pricing_service.calculate_module_price('pilot', modules) == Decimal('0')
        assert pricing_service.calculate_monthly_price('pilot', modules) == Decimal('1000.00')

    def test_inactive_modules_are_not_billed(self):
        modules = [org_module(200), org_module(300, is_active=False)]

        assert pricing_service.calculate_module_price('standard', modules) == Decimal('200')

    def test_accepts_bare_modules(self):
        modules = [
            Module(key='a', name='A', price=Decimal('50'), is_active=True),
            Module(key='b', name='B', price=None, is_active=True),
        ]

        assert pricing_service.calculate_module_price('standard', modules) == Decimal('50')

    def test_base_price_override(self):
        modules = [org_module(200)]

        assert pricing_service.calculate_monthly_price('standard', modules, Decimal('800')) == Decimal('1000')

    def test_calculate_pricing_breakdown(self):
        pricing = pricing_service.calculate_pricing('standard', [org_module(200), org_module(150)])

        assert pricing == {
            'basePrice': Decimal('1000.00'),
            'modulePrice': Decimal('350'),
            'totalMonthlyPrice': Decimal('1350.00'),
        }

    def test_no_modules(self):
        assert pricing_service.calculate_monthly_price('free', []) == Decimal('0')


class TestPriceOverrides:
    """Tests for admin price overrides stored in the database."""

    def test_base_price_reads_override(self, session):
        session.add(LicenseTypePrice(license_type='standard', price=Decimal('1250.00')))
        session.commit()

        assert pricing_service.get_base_price(session, 'standard') == Decimal('1250.00')
        assert pricing_service.get_base_price(session, 'pilot') == Decimal('1000.00')

    def test_set_license_type_price_upserts(self, session):
        pricing_service.set_license_type_price(session, 'standard', Decimal('900.00'))
        pricing_service.set_license_type_price(session, 'standard', Decimal('950.00'))
        session.commit()

        rows = session.query(LicenseTypePrice).filter_by(license_type='standard').all()
        assert len(rows) == 1
        assert rows[0].price == Decimal('950.00')

    def test_set_unknown_license_type_fails(self, session):
        with pytest.raises(ValidationError):
            pricing_service.set_license_type_price(session, 'gold', Decimal('10'))

    def test_list_license_type_prices_flags_overrides(self, session):
        pricing_service.set_license_type_price(session, 'free', Decimal('10.00'))
        session.commit()

        prices = {row['licenseType']: row for row in pricing_service.list_license_type_prices(session)}
        assert prices['free']['price'] == 10.0
        assert prices['free']['isOverride'] is True
        assert prices['standard']['price'] == 1000.0
        assert prices['standard']['isOverride'] is False

    def test_set_module_price_unknown_module(self, session):
        with pytest.raises(NotFoundError):
            pricing_service.set_module_price(session, 999, Decimal('10'))


class TestOrganizationPricing:
    """Tests for the breakdown shown to the booking app."""

    def test_standard_breakdown(self, session, billed_organization):
        pricing = pricing_service.get_organization_pricing(session, billed_organization)

        assert pricing['licenseType'] == 'standard'
        assert pricing['basePrice'] == 1000.0
        assert pricing['modulePrice'] == 200.0
        assert pricing['totalMonthlyPrice'] == 1200.0
        assert pricing['modules'][0] == {'key': 'booking', 'name': 'Booking', 'price': 0.0, 'isStandard': True}
        assert {m['key'] for m in pricing['modules']} == {'booking', 'payments', 'reporting'}

    def test_pilot_shows_zero_module_prices(self, session, billed_organization):
        billed_organization.license_type = 'pilot'
        session.commit()

        pricing = pricing_service.get_organization_pricing(session, billed_organization)

        assert pricing['totalMonthlyPrice'] == 1000.0
        assert all(m['price'] == 0.0 for m in pricing['modules'])

    def test_inactive_has_no_core_module(self, session, organization_factory):
        organization = organization_factory(license_type='inactive')

        pricing = pricing_service.get_organization_pricing(session, organization)

        assert pricing['modules'] == []
        assert pricing['totalMonthlyPrice'] == 0.0
