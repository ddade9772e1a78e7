from __future__ import annotations

import json
import re
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlparse

from api.errors import ApiError, InternalError, MethodNotAllowedError, NotFoundError, ValidationError
from services.storage import TaskStore


_TASKS_PATH = "/tasks"
_LOGS_PATH = "/admin/logs"
_TASK_ID_RE = re.compile(r"^/tasks/([^/]+)$")
_INT_RE = re.compile(r"^[+-]?[0-9]+$")

DEFAULT_LOG_LIMIT = 100

Response = Tuple[int, Dict[str, Any]]
Route = Tuple[Callable[..., Response], str]


def _encode_json(payload: Any) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def parse_task_id(raw: str) -> int:
    raw = unquote(raw).strip()
    if not _INT_RE.match(raw):
        raise ValidationError("Invalid task ID")
    return int(raw)


def validate_title(body: Optional[dict]) -> str:
    if body is None:
        raise ValidationError("Invalid JSON body")
    title = body.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required and must not be empty")
    try:
        title.encode("utf-8")
    except UnicodeEncodeError:
        raise ValidationError("Title must be valid UTF-8 text")
    return title


class TodoHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, server_address, RequestHandlerClass, store: TaskStore):
        super().__init__(server_address, RequestHandlerClass)
        self.store = store


class TodoRequestHandler(BaseHTTPRequestHandler):
    server: TodoHTTPServer

    def _origin(self) -> Optional[str]:
        try:
            return self.client_address[0]
        except (AttributeError, IndexError, TypeError):
            return None

    def _send_json(self, status: int, payload: Any, headers: Optional[Dict[str, str]] = None) -> None:
        self._send_bytes(status, _encode_json(payload), headers)

    def _send_bytes(self, status: int, data: bytes, headers: Optional[Dict[str, str]] = None) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(data)

    def _send_error(self, error: ApiError, headers: Optional[Dict[str, str]] = None) -> None:
        self._send_json(error.status, {"success": False, "error": error.message}, headers)

    def _read_json_body(self) -> Optional[dict]:
        length_str = self.headers.get("Content-Length")
        if not length_str:
            return None
        try:
            length = int(length_str)
        except ValueError:
            return None
        if length <= 0:
            return None

        raw = self.rfile.read(length)
        try:
            obj = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError):
            return None

        if not isinstance(obj, dict):
            return None
        return obj

    def _query(self) -> Dict[str, List[str]]:
        return parse_qs(urlparse(self.path).query)

    # --- routing ---

    def _routes(self, path: str) -> Tuple[Dict[str, Route], Tuple[Any, ...]]:
        """
        Возвращает обработчики по методам (вместе с текстом ошибки для 500) и их аргументы.
        """
        if path == _TASKS_PATH:
            return {
                "GET": (self._list_tasks, "Failed to fetch tasks"),
                "POST": (self._create_task, "Server error"),
            }, ()

        if path == _LOGS_PATH:
            return {"GET": (self._list_logs, "Failed to fetch logs")}, ()

        m = _TASK_ID_RE.match(path)
        if m:
            return {
                "PUT": (self._toggle_task, "Server error"),
                "DELETE": (self._delete_task, "Server error"),
            }, (m.group(1),)

        raise NotFoundError("Not found")

    def _dispatch(self, method: str) -> None:
        path = urlparse(self.path).path
        try:
            routes, args = self._routes(path)
        except ApiError as e:
            self._send_error(e)
            return

        route = routes.get(method)
        if route is None:
            allow = ", ".join(sorted(routes))
            self._send_error(MethodNotAllowedError("Method not allowed"), {"Allow": allow})
            return

        handler, failure = route
        try:
            status, payload = handler(*args)
            data = _encode_json(payload)
        except ApiError as e:
            self._send_error(e)
            return
        except Exception:
            self._send_error(InternalError(failure))
            return

        self._send_bytes(status, data)

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_PUT(self) -> None:
        self._dispatch("PUT")

    def do_DELETE(self) -> None:
        self._dispatch("DELETE")

    # --- handlers ---

    def _list_tasks(self) -> Response:
        filter_name = self._query().get("filter", [None])[0]
        tasks, counts = self.server.store.list_with_counts(filter_name)
        return 200, {
            "success": True,
            "tasks": tasks,
            "counts": counts,
            "message": "Tasks retrieved successfully",
        }

    def _create_task(self) -> Response:
        title = validate_title(self._read_json_body())
        task = self.server.store.add_task(title, origin=self._origin())
        return 201, {"success": True, "task": task, "message": "Task created successfully"}

    def _toggle_task(self, raw_id: str) -> Response:
        task_id = parse_task_id(raw_id)
        task = self.server.store.toggle_task(task_id, origin=self._origin())
        if task is None:
            raise NotFoundError("Task not found")
        state = "completed" if task["completed"] else "pending"
        return 200, {"success": True, "task": task, "message": f"Task marked as {state}"}

    def _delete_task(self, raw_id: str) -> Response:
        task_id = parse_task_id(raw_id)
        task = self.server.store.delete_task(task_id, origin=self._origin())
        if task is None:
            raise NotFoundError("Task not found")
        return 200, {"success": True, "task": task, "message": "Task deleted successfully"}

    def _list_logs(self) -> Response:
        try:
            limit = int(self._query().get("limit", [str(DEFAULT_LOG_LIMIT)])[0])
        except ValueError:
            limit = DEFAULT_LOG_LIMIT
        if limit <= 0:
            limit = 1
        logs = self.server.store.get_logs(limit)
        return 200, {"success": True, "logs": logs, "message": "Logs retrieved successfully"}

    def log_message(self, format: str, *args) -> None:
        return
