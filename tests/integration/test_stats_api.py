"""
Integration tests for usage statistics: push from the booking app, admin
listing and on-demand pull.
"""

import pytest
import requests

from license_console.models import Organization, OrganizationStats
from license_console.services import stats_service

SNAPSHOT = {
    'totalUsers': 120,
    'activeUsers': 45,
    'totalFacilities': 6,
    'totalCategories': 3,
    'totalBookings': 2400,
    'bookingsThisMonth': 180,
    'pendingBookings': 4,
    'totalRoles': 5,
    'lastUserLogin': '2025-01-09T18:30:00Z',
    'appVersion': '2.4.1',
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON object could be decoded')
        return self._payload


class TestReportStats:

    def test_report_creates_snapshot(self, client, session, organization):
        key, organization_id = organization.license_key, organization.id

        response = client.post('/api/stats/report', json={'licenseKey': key, 'stats': SNAPSHOT})

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['lastUpdated']

        row = session.query(OrganizationStats).filter_by(organization_id=organization_id).one()
        assert row.total_users == 120
        assert row.bookings_this_month == 180
        assert row.last_user_login is not None

        updated = session.get(Organization, organization_id)
        assert updated.last_heartbeat is not None
        assert updated.total_users == 120
        assert updated.total_bookings == 2400
        assert updated.app_version == '2.4.1'

    def test_second_report_updates_same_row(self, client, session, organization):
        key, organization_id = organization.license_key, organization.id
        client.post('/api/stats/report', json={'licenseKey': key, 'stats': SNAPSHOT})

        client.post('/api/stats/report', json={'licenseKey': key, 'stats': {'totalUsers': 130}})

        row = session.query(OrganizationStats).filter_by(organization_id=organization_id).one()
        assert row.total_users == 130
        assert row.total_bookings == 0

    def test_malformed_counters_become_zero(self, client, session, organization):
        key, organization_id = organization.license_key, organization.id

        client.post('/api/stats/report', json={
            'licenseKey': key,
            'stats': {'totalUsers': 'mange', 'activeUsers': -3, 'lastUserLogin': 'i går'}
        })

        row = session.query(OrganizationStats).filter_by(organization_id=organization_id).one()
        assert row.total_users == 0
        assert row.active_users == 0
        assert row.last_user_login is None

    def test_unknown_key(self, client):
        response = client.post('/api/stats/report', json={'licenseKey': 'SF-NOPE', 'stats': SNAPSHOT})

        assert response.status_code == 404
        assert response.get_json()['error'] == 'Invalid license key'

    @pytest.mark.parametrize('body, message', [
        ({'stats': SNAPSHOT}, 'licenseKey is required'),
        ({'licenseKey': 'SF-1'}, 'stats object is required'),
        ({'licenseKey': 'SF-1', 'stats': [1, 2]}, 'stats object is required'),
    ])
    def test_missing_fields(self, client, body, message):
        response = client.post('/api/stats/report', json=body)

        assert response.status_code == 400
        assert response.get_json()['error'] == message


class TestListStats:

    def test_list_all(self, client, admin_headers, organization, organization_factory):
        first_key, first_slug = organization.license_key, organization.slug
        second = organization_factory()
        second_key, second_slug = second.license_key, second.slug
        client.post('/api/stats/report', json={'licenseKey': first_key, 'stats': SNAPSHOT})
        client.post('/api/stats/report', json={'licenseKey': second_key, 'stats': {'totalUsers': 1}})

        response = client.get('/api/stats/report', headers=admin_headers)

        assert response.status_code == 200
        stats = response.get_json()['stats']
        assert len(stats) == 2
        assert {s['organization']['slug'] for s in stats} == {first_slug, second_slug}
        assert stats[0]['totalUsers'] == 1

    def test_single_organization(self, client, admin_headers, organization):
        key, organization_id = organization.license_key, organization.id
        client.post('/api/stats/report', json={'licenseKey': key, 'stats': SNAPSHOT})

        response = client.get(f'/api/stats/report?organizationId={organization_id}', headers=admin_headers)

        stats = response.get_json()['stats']
        assert stats['organizationId'] == organization_id
        assert stats['activeUsers'] == 45

    def test_single_organization_without_stats(self, client, admin_headers, organization):
        response = client.get(f'/api/stats/report?organizationId={organization.id}', headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json() == {'stats': None}


class TestFetchStats:

    def test_fetch_from_booking_app(self, client, session, admin_headers, organization_factory, monkeypatch):
        organization = organization_factory(app_url='https://booking.example.com/')
        organization_id, key = organization.id, organization.license_key
        calls = []

        def fake_post(url, json=None, timeout=None):
            calls.append((url, json, timeout))
            return FakeResponse(200, SNAPSHOT)

        monkeypatch.setattr(stats_service.requests, 'post', fake_post)

        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': organization_id})

        assert response.status_code == 200
        assert response.get_json()['stats']['totalUsers'] == 120
        assert calls == [('https://booking.example.com/api/license/stats', {'licenseKey': key}, 10)]
        assert session.query(OrganizationStats).filter_by(organization_id=organization_id).one().total_users == 120

    def test_booking_app_error(self, client, admin_headers, organization_factory, monkeypatch):
        organization_id = organization_factory(app_url='https://booking.example.com').id
        monkeypatch.setattr(stats_service.requests, 'post',
                            lambda url, json=None, timeout=None: FakeResponse(500, text='Internal Server Error'))

        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': organization_id})

        assert response.status_code == 502
        assert 'Booking app responded with error: 500' in response.get_json()['error']

    def test_booking_app_unreachable(self, client, admin_headers, organization_factory, monkeypatch):
        organization_id = organization_factory(app_url='https://booking.example.com').id

        def fake_post(url, json=None, timeout=None):
            raise requests.ConnectionError('Name or service not known')

        monkeypatch.setattr(stats_service.requests, 'post', fake_post)

        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': organization_id})

        assert response.status_code == 502
        assert 'Could not contact the booking app' in response.get_json()['error']

    def test_invalid_json_from_booking_app(self, client, admin_headers, organization_factory, monkeypatch):
        organization_id = organization_factory(app_url='https://booking.example.com').id
        monkeypatch.setattr(stats_service.requests, 'post',
                            lambda url, json=None, timeout=None: FakeResponse(200, None))

        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': organization_id})

        assert response.status_code == 502
        assert response.get_json()['error'] == 'Booking app returned invalid JSON'

    def test_no_app_url(self, client, admin_headers, organization):
        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': organization.id})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'No app URL configured for this organization'

    def test_missing_organization_id(self, client, admin_headers):
        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': '1'})

        assert response.status_code == 400

    def test_unknown_organization(self, client, admin_headers):
        response = client.post('/api/stats/fetch', headers=admin_headers, json={'organizationId': 999})

        assert response.status_code == 404
