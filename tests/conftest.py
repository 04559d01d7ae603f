import http.client
import threading

import pytest

from fileserver.dispatcher import Dispatcher
from fileserver.mimetable import MimeTable
from fileserver.resolver import served_root
from fileserver.serve import make_server


@pytest.fixture
def root(tmp_path):
    (tmp_path / "hello.txt").write_bytes(b"hello world\n")
    (tmp_path / "index.html").write_text("<h1>home</h1>")
    (tmp_path / "IMAGE.PNG").write_bytes(b"\x89PNG\r\n\x1a\n")
    (tmp_path / "<script>.txt").write_text("x")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "nested.txt").write_text("nested")
    (sub / "deeper").mkdir()
    return served_root(tmp_path)


@pytest.fixture
def dispatcher(root):
    return Dispatcher(root, MimeTable())


@pytest.fixture
def start_server():
    """Start a threaded server on an ephemeral port; stopped after the test."""
    running = []

    def _start(dispatcher):
        server = make_server("127.0.0.1", 0, dispatcher)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        running.append((server, thread))
        return server

    yield _start

    for server, thread in running:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture
def live_server(start_server, dispatcher):
    return start_server(dispatcher)


def send(server, method, target):
    """Send one request with ``target`` written to the wire untouched."""
    host, port = server.server_address[:2]
    conn = http.client.HTTPConnection(host, port, timeout=10)
    try:
        conn.request(method, target)
        resp = conn.getresponse()
        return resp, resp.read()
    finally:
        conn.close()


@pytest.fixture
def request_raw(live_server):
    return lambda method, target: send(live_server, method, target)
