"""
Integration tests for the SMTP diagnostics endpoints.
"""

import smtplib

from license_console.services import email_service
from license_console.services.email_service import mail


class TestSmtpDiagnostics:

    def test_config_summary(self, client, admin_headers):
        response = client.get('/api/email/test', headers=admin_headers)

        assert response.status_code == 200
        config = response.get_json()['config']
        assert config['SMTP_HOST'] == 'localhost'
        assert config['SMTP_USER'] == 'faktura@example.com'
        assert config['SMTP_PASS'] == '(NOT SET)'

    def test_connection_only(self, client, admin_headers):
        response = client.post('/api/email/test', headers=admin_headers)

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert 'testEmail' in data['hint']

    def test_send_test_email(self, client, admin_headers):
        with mail.record_messages() as outbox:
            response = client.post('/api/email/test', headers=admin_headers, json={'testEmail': 'ops@example.com'})

        assert response.get_json()['success'] is True
        assert len(outbox) == 1
        assert outbox[0].recipients == ['ops@example.com']
        assert outbox[0].subject == 'Faktura TEST-001 - SportFlow'
        assert 'Hei Test Bruker,' in outbox[0].body

    def test_connection_failure(self, client, admin_headers, monkeypatch):
        def failing_connect():
            raise smtplib.SMTPAuthenticationError(535, b'Authentication failed')

        monkeypatch.setattr(email_service.mail, 'connect', failing_connect)

        response = client.post('/api/email/test', headers=admin_headers, json={'testEmail': 'ops@example.com'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is False
        assert data['step'] == 'connection'
        assert 'Authentication failed' in data['error']

    def test_sending_failure(self, client, admin_headers, monkeypatch):
        def failing_send(message):
            raise smtplib.SMTPRecipientsRefused({'ops@example.com': (550, b'No such user')})

        monkeypatch.setattr(email_service.mail, 'send', failing_send)

        response = client.post('/api/email/test', headers=admin_headers, json={'testEmail': 'ops@example.com'})

        data = response.get_json()
        assert data['success'] is False
        assert data['step'] == 'sending'
        assert data['connectionOk'] is True
