"""
Prometheus instrumentation for the license console.

Every request is timed and counted per endpoint, and the billing and
licensing services bump their own counters (invoices created, status
transitions, invoice emails, license validations). Scrape them at /metrics.
"""
from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess, REGISTRY
import time
import os

PREFIX = 'license_console'

LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

metrics_bp = Blueprint('metrics', __name__)


def _select_registry():
    """Aggregate worker files when Gunicorn runs with PROMETHEUS_MULTIPROC_DIR."""
    if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
        collector_registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(collector_registry)
        return collector_registry, None
    return REGISTRY, REGISTRY


# Metrics register themselves on `_owner`; in multiprocess mode they write to
# the shared directory instead and `registry` only aggregates for scraping.
registry, _owner = _select_registry()


def _name(suffix):
    return f'{PREFIX}_{suffix}'


http_requests_total = Counter(
    _name('http_requests_total'), 'Handled HTTP requests',
    ['method', 'endpoint', 'http_status'], registry=_owner
)
http_request_duration_seconds = Histogram(
    _name('http_request_duration_seconds'), 'Time spent handling a request',
    ['method', 'endpoint'], registry=_owner, buckets=LATENCY_BUCKETS
)
http_requests_in_flight = Gauge(
    _name('http_requests_in_flight'), 'Requests being handled right now',
    registry=_owner
)

invoices_created_total = Counter(
    _name('invoices_created_total'), 'Invoices generated, by license type',
    ['license_type'], registry=_owner
)
invoice_transitions_total = Counter(
    _name('invoice_transitions_total'), 'Invoice status changes',
    ['from_status', 'to_status'], registry=_owner
)
invoice_emails_total = Counter(
    _name('invoice_emails_total'), 'Invoice emails, by outcome',
    ['result'], registry=_owner
)
license_validations_total = Counter(
    _name('license_validations_total'), 'License checks from booking apps, by outcome',
    ['result'], registry=_owner
)


def _observe(response):
    started = g.pop('_request_started', None)
    if started is None:
        return
    http_requests_in_flight.dec()

    endpoint = request.endpoint or 'unknown'
    http_request_duration_seconds.labels(request.method, endpoint).observe(time.perf_counter() - started)
    http_requests_total.labels(request.method, endpoint, response.status_code).inc()


def setup_metrics_instrumentation(app):
    """Hook request timing into the app. Called once from the factory."""

    @app.before_request
    def start_request_timer():
        g._request_started = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request_metrics(response):
        try:
            _observe(response)
        except Exception as e:
            app.logger.warning(f"Could not record request metrics: {e}")
        return response


@metrics_bp.route('/metrics')
def metrics():
    """Prometheus text exposition. Unauthenticated: keep it off the public network."""
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
