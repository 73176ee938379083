"""
/metrics for Prometheus: request counters/latency plus lumberdesk counters.

Not authenticated; keep it behind the internal network.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry, REGISTRY, CONTENT_TYPE_LATEST, generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share samples through PROMETHEUS_MULTIPROC_DIR
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _register_in = None
else:
    registry = REGISTRY
    _register_in = registry

LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)

http_requests_total = Counter(
    'http_requests_total', 'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status'], registry=_register_in
)
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds', 'HTTP request latency',
    ['method', 'endpoint'], buckets=LATENCY_BUCKETS, registry=_register_in
)
http_requests_in_flight = Gauge(
    'http_requests_in_flight', 'Requests being served', registry=_register_in
)

orders_saved_total = Counter(
    'lumberdesk_orders_saved_total', 'Quotes and orders saved', ['type'], registry=_register_in
)
pdfs_generated_total = Counter(
    'lumberdesk_pdfs_generated_total', 'Order PDFs rendered', registry=_register_in
)


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status."""

    @app.before_request
    def start_request_timer():
        g.request_started = time.perf_counter()
        http_requests_in_flight.inc()

    @app.after_request
    def record_request(response):
        started = g.pop('request_started', None)
        if started is None:
            return response

        endpoint = request.endpoint or 'unknown'
        try:
            http_request_duration_seconds.labels(request.method, endpoint).observe(time.perf_counter() - started)
            http_requests_total.labels(request.method, endpoint, response.status_code).inc()
        except ValueError as e:
            app.logger.warning(f"Request metrics not recorded: {e}")
        finally:
            http_requests_in_flight.dec()
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
