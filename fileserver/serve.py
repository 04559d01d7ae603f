#!/usr/bin/env python3
"""
Static directory server with browsable listings.
Usage: python -m fileserver.serve [port] [directory]
"""
import argparse
import errno
import functools
import logging
import os
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from fileserver import __version__
from fileserver.dispatcher import Dispatcher
from fileserver.exporter import (
    fileserver_requests_total,
    fileserver_response_bytes_total,
    start_exporter,
)
from fileserver.mimetable import MimeTable
from fileserver.resolver import served_root

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
DEFAULT_PORT = int(os.environ.get("FILESERVER_PORT", 3000))
DEFAULT_ROOT = os.environ.get("FILESERVER_ROOT", ".")
DEFAULT_HOST = os.environ.get("FILESERVER_HOST", "0.0.0.0")
DEFAULT_METRICS_PORT = int(os.environ.get("FILESERVER_METRICS_PORT", 0))
DEFAULT_LOG_LEVEL = os.environ.get("FILESERVER_LOG_LEVEL", "INFO").upper()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
READ_CHUNK = 64 * 1024


class FileRequestHandler(BaseHTTPRequestHandler):
    server_version = f"fileserver/{__version__}"

    def __init__(self, *args, dispatcher, **kwargs):
        self.dispatcher = dispatcher
        super().__init__(*args, **kwargs)

    def log_message(self, fmt, *args):
        logger.debug("%s - %s", self.address_string(), fmt % args)

    def do_GET(self):
        self._respond(send_body=True)

    def __getattr__(self, name):
        # any other method token (POST, PROPFIND, ...) is answered like GET
        if name.startswith("do_"):
            return self.do_GET
        raise AttributeError(name)

    def do_HEAD(self):
        self._respond(send_body=False)

    def _discard_body(self):
        try:
            remaining = int(self.headers.get("Content-Length", 0))
        except ValueError:
            remaining = 0
        while remaining > 0:
            chunk = self.rfile.read(min(remaining, READ_CHUNK))
            if not chunk:
                break
            remaining -= len(chunk)

    def _respond(self, send_body):
        # the connection is closed after the reply; unread input would reset it
        self._discard_body()
        reply = self.dispatcher.dispatch(self.path)
        fileserver_requests_total.labels(
            method=self.command, status=str(reply.status)
        ).inc()
        try:
            self.send_response(reply.status)
            self.send_header("Content-Type", reply.content_type)
            self.send_header("Content-Length", str(len(reply.body)))
            self.end_headers()
            if send_body:
                self.wfile.write(reply.body)
                fileserver_response_bytes_total.inc(len(reply.body))
        except (BrokenPipeError, ConnectionResetError) as exc:
            logger.debug("Client went away during %s %s: %s", self.command, self.path, exc)


def make_server(host: str, port: int, dispatcher: Dispatcher) -> ThreadingHTTPServer:
    """Bind a threaded server; each connection is handled on its own thread."""
    handler = functools.partial(FileRequestHandler, dispatcher=dispatcher)
    return ThreadingHTTPServer((host, port), handler)


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve a directory tree over HTTP with directory listings.",
    )
    parser.add_argument(
        "port",
        nargs="?",
        type=_port,
        default=DEFAULT_PORT,
        help=f"Port to listen on (default: {DEFAULT_PORT}).",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=DEFAULT_ROOT,
        help="Directory to serve (default: current directory).",
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Interface to bind (default: {DEFAULT_HOST}).",
    )
    parser.add_argument(
        "--metrics-port",
        type=_port,
        default=DEFAULT_METRICS_PORT,
        help="Port for /metrics, /health and /ready; 0 disables the exporter.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=DEFAULT_LOG_LEVEL,
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(format=LOG_FORMAT, level=args.log_level)

    root = served_root(args.directory)
    if not os.path.isdir(root):
        logger.error("Not a directory: %s", root)
        sys.exit(1)

    dispatcher = Dispatcher(root, MimeTable())
    try:
        server = make_server(args.host, args.port, dispatcher)
    except OSError as exc:
        if exc.errno == errno.EADDRINUSE:
            logger.error("Port %d is already in use", args.port)
        else:
            logger.error("Cannot listen on %s:%d: %s", args.host, args.port, exc)
        sys.exit(1)

    if args.metrics_port:
        try:
            start_exporter(root, args.host, args.metrics_port)
        except OSError as exc:
            logger.error(
                "Metrics exporter disabled, cannot listen on %s:%d: %s",
                args.host, args.metrics_port, exc,
            )
        else:
            logger.info("Metrics on http://%s:%d/metrics", args.host, args.metrics_port)

    logger.info("Serving %s on http://%s:%d", root, args.host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopped")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
