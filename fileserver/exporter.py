"""
File server metrics exporter
============================
Prometheus counters for the request pipeline, plus health and readiness
endpoints. Served by a small Flask app on its own port so that none of its
routes can shadow a file in the served directory.
"""

import logging
import os
import threading
import time
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Flask, Response, current_app, jsonify
from prometheus_client import (
    Counter,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.setdefault("SERVED_ROOT", os.getcwd())

# ---------------------------------------------------------------------------
# Prometheus Metrics Registry
# ---------------------------------------------------------------------------
registry = CollectorRegistry()

fileserver_requests_total = Counter(
    "fileserver_requests_total",
    "Requests answered, by HTTP method and response status",
    ["method", "status"],
    registry=registry,
)

fileserver_errors_total = Counter(
    "fileserver_errors_total",
    "Requests that failed: decode, traversal, not_found or io",
    ["kind"],
    registry=registry,
)

fileserver_response_bytes_total = Counter(
    "fileserver_response_bytes_total",
    "Response body bytes produced",
    registry=registry,
)


# ---------------------------------------------------------------------------
# Flask Routes
# ---------------------------------------------------------------------------
@app.route("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        generate_latest(registry),
        mimetype=CONTENT_TYPE_LATEST,
    )


@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok", "timestamp": time.time()})


@app.route("/ready")
def ready():
    """Ready while the served root is a readable directory."""
    root = current_app.config["SERVED_ROOT"]
    reasons = []

    if not os.path.isdir(root):
        reasons.append("root_missing")
    elif not os.access(root, os.R_OK | os.X_OK):
        reasons.append("root_unreadable")

    if reasons:
        return jsonify({"ready": False, "root": root, "reasons": reasons}), 503

    return jsonify({"ready": True, "root": root}), 200


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------
class _ExporterServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, fmt, *args):
        logger.debug("%s - %s", self.address_string(), fmt % args)


def start_exporter(root: str, host: str, port: int) -> WSGIServer:
    """Serve the exporter from a daemon thread next to the file server.

    The port is bound before the thread starts, so a bind failure raises
    OSError in the caller.
    """
    app.config["SERVED_ROOT"] = root
    server = make_server(host, port, app, server_class=_ExporterServer, handler_class=_QuietHandler)
    thread = threading.Thread(
        target=server.serve_forever,
        name="metrics-exporter",
        daemon=True,
    )
    thread.start()
    return server
