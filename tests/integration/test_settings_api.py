"""
Integration tests for the company settings endpoints.
"""

from decimal import Decimal

from license_console.models import CompanySettings


class TestCompanySettings:

    def test_first_read_creates_defaults(self, client, session, admin_headers):
        response = client.get('/api/settings/company', headers=admin_headers)

        assert response.status_code == 200
        settings = response.get_json()['settings']
        assert settings['companyName'] == 'SportFlow AS'
        assert settings['invoicePrefix'] == 'INV'
        assert settings['defaultDueDays'] == 14
        assert settings['vatRate'] == 0.0
        assert settings['country'] == 'Norge'
        assert session.query(CompanySettings).count() == 1

    def test_repeated_reads_keep_single_row(self, client, session, admin_headers):
        client.get('/api/settings/company', headers=admin_headers)
        client.get('/api/settings/company', headers=admin_headers)

        assert session.query(CompanySettings).count() == 1

    def test_partial_update(self, client, session, admin_headers):
        response = client.post('/api/settings/company', headers=admin_headers, json={
            'companyName': 'SportFlow Norge AS',
            'bankAccount': '1234.56.78901',
            'vatRate': 25,
            'defaultDueDays': 30,
            'emailSubject': 'Faktura {invoiceNumber}',
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['settings']['companyName'] == 'SportFlow Norge AS'
        assert data['settings']['vatRate'] == 25.0
        assert data['settings']['invoicePrefix'] == 'INV'

        settings = session.query(CompanySettings).one()
        assert settings.bank_account == '1234.56.78901'
        assert settings.vat_rate == Decimal('25.00')
        assert settings.default_due_days == 30

    def test_null_clears_optional_field(self, client, session, admin_headers):
        client.post('/api/settings/company', headers=admin_headers, json={'phone': '+47 22 00 00 00'})

        response = client.post('/api/settings/company', headers=admin_headers, json={'phone': None})

        assert response.get_json()['settings']['phone'] is None

    def test_null_does_not_clear_required_field(self, client, admin_headers):
        response = client.post('/api/settings/company', headers=admin_headers, json={'companyName': None})

        assert response.get_json()['settings']['companyName'] == 'SportFlow AS'

    def test_prefix_used_for_new_invoices(self, client, admin_headers, billed_organization):
        organization_id = billed_organization.id
        client.post('/api/settings/company', headers=admin_headers, json={'invoicePrefix': 'SF'})

        response = client.post('/api/invoices/create', headers=admin_headers, json={
            'organizationId': organization_id, 'periodMonth': 5, 'periodYear': 2025
        })

        assert response.get_json()['invoice']['invoiceNumber'] == 'SF-2025-001'

    def test_invalid_values(self, client, session, admin_headers):
        for body in ({'vatRate': 150}, {'vatRate': 'mye'}, {'defaultDueDays': -1}, {'invoicePrefix': ''}):
            response = client.post('/api/settings/company', headers=admin_headers, json=body)
            assert response.status_code == 400, body

        settings = client.get('/api/settings/company', headers=admin_headers).get_json()['settings']
        assert settings['vatRate'] == 0.0
        assert settings['defaultDueDays'] == 14
