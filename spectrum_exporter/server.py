# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
WSGI application and threaded server for the exporter.

/probe?target=<url> runs a probe into a fresh registry (multi-target
exporter pattern), /metrics serves the exporter's own process metrics.
"""

import logging
from socketserver import ThreadingMixIn
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import REGISTRY, CollectorRegistry, Gauge, generate_latest, make_wsgi_app
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from spectrum_exporter.config import CredentialMap
from spectrum_exporter.probe import ProbeRequestError, probe

LOG = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain; charset=utf-8"


def _http_response(start_response, status, headers, body: bytes):
    start_response(status, headers + [("Content-Length", str(len(body)))])
    return [body]


class ExporterApp:
    """WSGI callable serving /probe, /metrics and /health."""

    def __init__(self, credentials: CredentialMap, transport, scrape_timeout: float, registry=REGISTRY):
        self.credentials = credentials
        self.transport = transport
        self.scrape_timeout = scrape_timeout
        self.metrics_app = make_wsgi_app(registry)

    def __call__(self, environ, start_response):
        path = environ.get("PATH_INFO", "/")
        if path == "/probe":
            return self.probe(environ, start_response)
        if path == "/metrics":
            return self.metrics_app(environ, start_response)
        if path == "/health":
            return _http_response(start_response, "200 OK", [("Content-Type", TEXT_PLAIN)], b"ok\n")
        return _http_response(start_response, "404 Not Found", [("Content-Type", TEXT_PLAIN)], b"not found\n")

    def probe(self, environ, start_response):
        params = parse_qs(environ.get("QUERY_STRING", ""))
        target = (params.get("target") or [""])[0]
        if not target:
            return _http_response(start_response, "400 Bad Request", [("Content-Type", TEXT_PLAIN)],
                                  b"Target parameter missing or empty\n")

        registry = CollectorRegistry()
        probe_success = Gauge('probe_success', 'Whether or not the probe succeeded', registry=registry)
        probe_duration = Gauge('probe_duration_seconds', 'How many seconds the probe took to complete',
                               registry=registry)

        try:
            result = probe(target, registry, self.transport, self.credentials, self.scrape_timeout)
        except ProbeRequestError as e:
            LOG.warning(f"Probe request rejected; error is: {e}")
            return _http_response(start_response, "400 Bad Request", [("Content-Type", TEXT_PLAIN)],
                                  f"probe: {e}\n".encode("utf-8"))

        probe_duration.set(result.duration)
        if result.success:
            probe_success.set(1)
            LOG.info(f"Probe of {target!r} succeeded, took {result.duration:.3f} seconds")
            status = "200 OK"
        else:
            # probe_success stays 0; metrics gathered so far are still returned
            LOG.warning(f"Probe of {target!r} failed, took {result.duration:.3f} seconds")
            status = "500 Internal Server Error"

        return _http_response(start_response, status, [("Content-Type", CONTENT_TYPE_LATEST)],
                              generate_latest(registry))


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    """One thread per scrape request."""
    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        LOG.debug(f"{self.address_string()} - {format % args}")


def serve(app: ExporterApp, host: str, port: int) -> None:
    httpd = make_server(host, port, app, server_class=ThreadingWSGIServer, handler_class=_LoggingHandler)
    LOG.info(f"Spectrum Virtualize exporter running, listening on {host}:{port}")
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
