"""Integration tests running the CLI end to end.

Standard input is replaced by a real OS pipe and the destination is a
local HTTP server, so these tests need no network access.
"""

import json
import os
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch

import pytest

from pipe_client.cli import main
from pipe_client.reader import NonBlockingReader


class ChunkedPutHandler(BaseHTTPRequestHandler):
    """Accepts chunked PUTs and reports how much arrived."""

    protocol_version = "HTTP/1.1"
    bodies: list = []

    def log_message(self, format, *args):
        """Suppress logging."""
        pass

    def do_PUT(self):
        body = b""
        while True:
            size = int(self.rfile.readline().strip(), 16)
            if size == 0:
                self.rfile.readline()
                break
            body += self.rfile.read(size)
            self.rfile.readline()
        ChunkedPutHandler.bodies.append(body)

        reply = f"received {len(body)} bytes\n".encode()
        self.send_response(200)
        self.send_header("Content-Length", str(len(reply)))
        self.end_headers()
        self.wfile.write(reply)


@pytest.fixture(scope="module")
def server_url():
    """Start a local HTTP server for integration tests."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), ChunkedPutHandler)
    port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever)
    thread.daemon = True
    thread.start()
    yield f"http://127.0.0.1:{port}"
    server.shutdown()


@pytest.fixture(autouse=True)
def fast_ticks(monkeypatch):
    for key in list(os.environ):
        if key.startswith("PIPE_CLIENT_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("PIPE_CLIENT_PROGRESS_INTERVAL", "0.01")
    monkeypatch.setenv("PIPE_CLIENT_CONNECT_TIMEOUT", "5")
    monkeypatch.setenv("PIPE_CLIENT_READ_TIMEOUT", "5")
    ChunkedPutHandler.bodies.clear()


@pytest.fixture
def stdin_pipe():
    """Pipe whose read end stands in for standard input."""
    read_fd, write_fd = os.pipe()
    with patch("pipe_client.cli.NonBlockingReader", lambda: NonBlockingReader(read_fd)):
        yield write_fd
    os.close(read_fd)


def write_slowly(write_fd, parts, delay):
    """Write parts with a pause in between, then close the pipe."""
    try:
        for part in parts:
            os.write(write_fd, part)
            time.sleep(delay)
    finally:
        os.close(write_fd)


class TestStreamingUpload:
    """Tests streaming stdin through the whole client."""

    def test_streams_with_idle_gaps(self, capsys, tmp_path, server_url, stdin_pipe):
        """Input arriving with gaps should upload completely after pausing."""
        summary = tmp_path / "summary.json"
        writer = threading.Thread(
            target=write_slowly,
            args=(stdin_pipe, [b"first ", b"second"], 0.2),
        )
        writer.start()

        exit_code = main(["-j", str(summary), f"{server_url}/pipe"])
        writer.join()

        captured = capsys.readouterr()
        assert exit_code == 0
        assert f"connected to: {server_url}/pipe" in captured.out
        assert "received 12 bytes" in captured.out
        assert ChunkedPutHandler.bodies == [b"first second"]

        data = json.loads(summary.read_text())
        assert data["status"] == "ok"
        assert data["bytes_sent"] == 12
        assert data["pauses"] >= 1
        assert data["pauses"] == data["resumes"]
        assert 1 <= data["idle_periods"] <= data["pauses"]

    def test_no_echo(self, capsys, server_url, stdin_pipe):
        """--no-echo should keep the response off stdout."""
        write_slowly(stdin_pipe, [b"abc"], 0)

        assert main(["--no-echo", f"{server_url}/quiet"]) == 0

        captured = capsys.readouterr()
        assert "received" not in captured.out
        assert ChunkedPutHandler.bodies == [b"abc"]


class TestTransferFailure:
    """Tests for failures reported by the HTTP layer."""

    def test_connection_refused_exits_zero(self, capsys, stdin_pipe):
        """A refused connection is reported on stderr but exits 0."""
        sock = socket.socket()
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()
        write_slowly(stdin_pipe, [b"data"], 0)

        exit_code = main([f"http://127.0.0.1:{port}/pipe"])

        captured = capsys.readouterr()
        assert exit_code == 0
        assert "upload failed:" in captured.err

    def test_connection_refused_with_fail(self, capsys, stdin_pipe):
        """--fail should turn the same failure into exit status 1."""
        sock = socket.socket()
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()
        write_slowly(stdin_pipe, [b"data"], 0)

        assert main(["--fail", f"http://127.0.0.1:{port}/pipe"]) == 1
