from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib import error, request


TASK_FIELDS = ["id", "title", "completed", "createdAt"]


def _http_json(base: str, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
    url = base.rstrip("/") + path
    data_bytes = None
    headers = {}
    if body is not None:
        data_bytes = json.dumps(body, ensure_ascii=False).encode("utf-8")
        headers["Content-Type"] = "application/json; charset=utf-8"

    req = request.Request(url, data=data_bytes, method=method, headers=headers)
    try:
        with request.urlopen(req) as resp:
            content = resp.read()
            parsed = json.loads(content.decode("utf-8")) if content else None
            return resp.status, parsed
    except error.HTTPError as e:
        try:
            detail = e.read().decode("utf-8")
            parsed = json.loads(detail) if detail else None
        except (UnicodeDecodeError, json.JSONDecodeError):
            parsed = None
        return e.code, parsed
    except (error.URLError, OSError) as e:
        return -1, {"error": str(e)}


@dataclass
class CheckResult:
    name: str
    expected: Any
    actual: Any
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "name": self.name,
            "expected": self.expected,
            "actual": self.actual,
            "status": self.status,
        }


def _log(logfile: str, result: CheckResult) -> None:
    os.makedirs(os.path.dirname(logfile) or ".", exist_ok=True)
    with open(logfile, "a", encoding="utf-8") as f:
        f.write(json.dumps(result.to_dict(), ensure_ascii=False) + "\n")


def _task_of(body: Any) -> Dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("task"), dict):
        return body["task"]
    return {}


def _ids_of(body: Any) -> List[int]:
    if not isinstance(body, dict) or not isinstance(body.get("tasks"), list):
        return []
    return [t.get("id") for t in body["tasks"] if isinstance(t, dict)]


def _counts_consistent(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    counts = body.get("counts") or {}
    return counts.get("total") == counts.get("completed", 0) + counts.get("pending", 0)


def run_suite(base: str, logfile: str) -> Dict[str, Any]:
    """
    Детерминированный набор проверок против запущенного сервера.
    Сервер может быть не пустым: проверки опираются только на созданную здесь задачу.
    """
    results: List[CheckResult] = []

    def record(name: str, expected: Any, actual: Any, ok: bool) -> None:
        res = CheckResult(name=name, expected=expected, actual=actual, status="pass" if ok else "fail")
        results.append(res)
        _log(logfile, res)

    # 1) create
    status, body = _http_json(base, "POST", "/tasks", {"title": "  TestCase  "})
    task = _task_of(body)
    ok = status == 201 and set(TASK_FIELDS) <= set(task.keys()) and task.get("title") == "TestCase" and task.get("completed") is False
    record("create", {"status": 201, "fields": TASK_FIELDS, "title": "TestCase"}, {"status": status, "body": body}, ok)
    task_id = int(task["id"]) if ok else 1

    # 2) create with blank title
    status, body = _http_json(base, "POST", "/tasks", {"title": "   "})
    ok = status == 400 and isinstance(body, dict) and body.get("success") is False and "error" in body
    record("create_blank", {"status": 400}, {"status": status, "body": body}, ok)

    # 3) list contains created
    status, body = _http_json(base, "GET", "/tasks")
    ok = status == 200 and task_id in _ids_of(body) and _counts_consistent(body)
    record("list_after_create", {"status": 200, "contains_created": True}, {"status": status, "body": body}, ok)

    # 4) toggle
    status, body = _http_json(base, "PUT", f"/tasks/{task_id}")
    ok = status == 200 and _task_of(body).get("completed") is True
    record("toggle", {"status": 200, "completed": True}, {"status": status, "body": body}, ok)

    # 5) filters reflect completion
    status, body = _http_json(base, "GET", "/tasks?filter=pending")
    ok = status == 200 and task_id not in _ids_of(body)
    status2, body2 = _http_json(base, "GET", "/tasks?filter=completed")
    ok = ok and status2 == 200 and task_id in _ids_of(body2)
    record("filter_after_toggle", {"pending": "absent", "completed": "present"}, {"pending": body, "completed": body2}, ok)

    # 6) toggle with non-numeric id
    status, body = _http_json(base, "PUT", "/tasks/abc")
    ok = status == 400
    record("toggle_invalid_id", {"status": 400}, {"status": status, "body": body}, ok)

    # 7) delete
    status, body = _http_json(base, "DELETE", f"/tasks/{task_id}")
    ok = status == 200 and _task_of(body).get("id") == task_id
    record("delete", {"status": 200, "id": task_id}, {"status": status, "body": body}, ok)

    # 8) list after delete
    status, body = _http_json(base, "GET", "/tasks")
    ok = status == 200 and task_id not in _ids_of(body) and _counts_consistent(body)
    record("list_after_delete", {"status": 200, "deleted_absent": True}, {"status": status, "body": body}, ok)

    # 9) delete again / toggle deleted
    status, _body = _http_json(base, "DELETE", f"/tasks/{task_id}")
    status2, _body2 = _http_json(base, "PUT", f"/tasks/{task_id}")
    ok = status == 404 and status2 == 404
    record("missing_after_delete", {"delete": 404, "toggle": 404}, {"delete": status, "toggle": status2}, ok)

    # 10) logs endpoint
    status, body = _http_json(base, "GET", "/admin/logs?limit=5")
    ok = status == 200 and isinstance(body, dict) and isinstance(body.get("logs"), list)
    record("logs", {"status": 200, "is_list": True}, {"status": status, "body": body}, ok)

    # summary
    passed = sum(1 for r in results if r.status == "pass")
    summary = {"total": len(results), "passed": passed, "failed": len(results) - passed, "logfile": logfile}
    _log(logfile, CheckResult(name="summary", expected=None, actual=summary, status="summary"))
    return summary


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="HTTP API check runner for the Todo server.")
    parser.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the Todo server")
    parser.add_argument("--logfile", default="test_results.log", help="Where to store check results (JSONL)")
    args = parser.parse_args(argv)
    summary = run_suite(args.base, args.logfile)
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
