from __future__ import annotations

import http.client
import json
import threading
from typing import Any, Callable, Optional, Tuple

import pytest

from api.http_server import TodoHTTPServer, TodoRequestHandler
from services.action_log import ActionLogger
from services.storage import TaskStore


@pytest.fixture
def store():
    return TaskStore(logger=ActionLogger())


@pytest.fixture
def server(store):
    srv = TodoHTTPServer(("127.0.0.1", 0), TodoRequestHandler, store)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()
    thread.join(timeout=5)


@pytest.fixture
def base_url(server):
    host, port = server.server_address[:2]
    return f"http://{host}:{port}"


@pytest.fixture
def call(server) -> Callable[..., Tuple[int, Any]]:
    """call(method, path, body=None, raw=None) -> (status, parsed JSON)."""
    host, port = server.server_address[:2]

    def _call(method: str, path: str, body: Any = None, raw: Optional[bytes] = None) -> Tuple[int, Any]:
        conn = http.client.HTTPConnection(host, port, timeout=5)
        headers = {}
        data = raw
        if body is not None:
            data = json.dumps(body).encode("utf-8")
        if data is not None:
            headers["Content-Type"] = "application/json"
        try:
            conn.request(method, path, body=data, headers=headers)
            resp = conn.getresponse()
            content = resp.read()
            return resp.status, json.loads(content.decode("utf-8")) if content else None
        finally:
            conn.close()

    return _call
