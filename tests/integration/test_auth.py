"""
Integration tests for admin authentication.
"""

import pytest
from datetime import datetime, timedelta

import jwt

from config import DEV_SECRET_KEY

ADMIN_ROUTES = [
    ('get', '/api/license/list'),
    ('post', '/api/license/update'),
    ('get', '/api/license-types/prices'),
    ('get', '/api/modules/list'),
    ('get', '/api/organizations/1/modules'),
    ('get', '/api/invoices/list'),
    ('post', '/api/invoices/create'),
    ('get', '/api/invoices/1'),
    ('delete', '/api/invoices/1'),
    ('post', '/api/invoices/1/send'),
    ('get', '/api/settings/company'),
    ('get', '/api/stats/report'),
    ('post', '/api/stats/fetch'),
    ('get', '/api/email/test'),
]


class TestAdminSecret:
    """The x-admin-secret header guards every admin route."""

    @pytest.mark.parametrize('method, path', ADMIN_ROUTES)
    def test_missing_secret_is_rejected(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        assert response.get_json() == {'status': 'error', 'error': 'Unauthorized'}

    def test_wrong_secret_is_rejected(self, client):
        response = client.get('/api/license/list', headers={'x-admin-secret': 'gjett'})

        assert response.status_code == 401

    def test_correct_secret(self, client, admin_headers):
        response = client.get('/api/license/list', headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json() == {'organizations': []}

    def test_unconfigured_password_locks_console(self, app, client, monkeypatch):
        monkeypatch.setitem(app.config, 'ADMIN_PASSWORD', '')

        response = client.get('/api/license/list', headers={'x-admin-secret': ''})

        assert response.status_code == 401


class TestAdminLogin:
    """Exchanging the password for a bearer token."""

    def test_login_and_use_token(self, client):
        response = client.post('/api/admin/login', json={'password': 'test-admin-password'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['tokenType'] == 'Bearer'
        assert data['expiresAt']

        headers = {'Authorization': f"Bearer {data['token']}"}
        assert client.get('/api/license/list', headers=headers).status_code == 200
        assert client.get('/api/admin/check', headers=headers).get_json() == {'authenticated': True}

    def test_login_with_wrong_password(self, client):
        response = client.post('/api/admin/login', json={'password': 'feil'})

        assert response.status_code == 401
        assert 'token' not in response.get_json()

    def test_login_without_body(self, client):
        response = client.post('/api/admin/login', data='ikke json', content_type='application/json')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid JSON'

    def test_tampered_token(self, client):
        token = client.post('/api/admin/login', json={'password': 'test-admin-password'}).get_json()['token']

        response = client.get('/api/license/list', headers={'Authorization': f'Bearer {token}x'})

        assert response.status_code == 401

    def test_check_without_credentials(self, client):
        response = client.get('/api/admin/check')

        assert response.status_code == 200
        assert response.get_json() == {'authenticated': False}

    def test_check_with_secret(self, client, admin_headers):
        assert client.get('/api/admin/check', headers=admin_headers).get_json() == {'authenticated': True}


class TestErrorResponses:
    """Routing errors come back as JSON."""

    def test_unknown_route(self, client):
        response = client.get('/api/finnes-ikke')

        assert response.status_code == 404
        assert response.get_json() == {'status': 'error', 'error': 'Not Found'}

    def test_wrong_method(self, client):
        response = client.put('/api/license/validate')

        assert response.status_code == 405
        assert response.get_json()['status'] == 'error'


class TestDevelopmentSecretKey:
    """With SECRET_KEY left at the placeholder, bearer tokens are refused."""

    @pytest.fixture
    def placeholder_key(self, app, monkeypatch):
        monkeypatch.setitem(app.config, 'SECRET_KEY', DEV_SECRET_KEY)

    def test_self_signed_token_is_rejected(self, client, placeholder_key):
        token = jwt.encode(
            {'sub': 'admin', 'exp': datetime.utcnow() + timedelta(hours=1)}, DEV_SECRET_KEY, algorithm='HS256'
        )

        response = client.get('/api/license/list', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
        assert response.get_json() == {'status': 'error', 'error': 'Unauthorized'}

    def test_login_is_refused(self, client, placeholder_key):
        response = client.post('/api/admin/login', json={'password': 'test-admin-password'})

        assert response.status_code == 401

    def test_secret_header_still_works(self, client, admin_headers, placeholder_key):
        assert client.get('/api/license/list', headers=admin_headers).status_code == 200
