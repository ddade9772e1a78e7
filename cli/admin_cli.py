from __future__ import annotations

import argparse
import json
import random
import sys
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any, Dict, Optional

# Корень проекта в sys.path, чтобы tests/* импортировались при запуске как скрипта.
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


def _request(base: str, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    url = base.rstrip("/") + path
    data_bytes = None
    headers = {}
    if body is not None:
        data_bytes = json.dumps(body, ensure_ascii=False).encode("utf-8")
        headers["Content-Type"] = "application/json; charset=utf-8"

    req = urllib.request.Request(url, data=data_bytes, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req) as resp:
            content = resp.read()
            if not content:
                return {"status": resp.status, "body": None}
            return {"status": resp.status, "body": json.loads(content.decode("utf-8"))}
    except urllib.error.HTTPError as e:
        try:
            detail = e.read().decode("utf-8")
            parsed = json.loads(detail) if detail else None
        except (UnicodeDecodeError, json.JSONDecodeError):
            parsed = None
        return {"status": e.code, "body": parsed}
    except (urllib.error.URLError, OSError) as e:
        return {"status": -1, "body": {"error": str(e)}}


def cmd_list(args: argparse.Namespace) -> None:
    path = "/tasks"
    if args.filter:
        path += "?" + urllib.parse.urlencode({"filter": args.filter})
    res = _request(args.base, "GET", path)
    body = res.get("body")
    if args.limit and isinstance(body, dict) and isinstance(body.get("tasks"), list):
        body["tasks"] = body["tasks"][: args.limit]
    _print_response(res)


def cmd_logs(args: argparse.Namespace) -> None:
    res = _request(args.base, "GET", f"/admin/logs?limit={args.limit}")
    _print_response(res)


def cmd_create(args: argparse.Namespace) -> None:
    res = _request(args.base, "POST", "/tasks", {"title": args.title})
    _print_response(res)


def cmd_toggle(args: argparse.Namespace) -> None:
    res = _request(args.base, "PUT", f"/tasks/{args.id}")
    _print_response(res)


def cmd_delete(args: argparse.Namespace) -> None:
    res = _request(args.base, "DELETE", f"/tasks/{args.id}")
    _print_response(res)


def cmd_tests(args: argparse.Namespace) -> None:
    from tests.test_runner import run_suite

    summary = run_suite(args.base, args.logfile)
    print("Test suite finished:")
    print(json.dumps(summary, ensure_ascii=False, indent=2))


def cmd_fuzz_run(args: argparse.Namespace) -> None:
    from tests.fuzz_tester import run_scenario

    rng = random.Random(args.seed)
    stats = run_scenario(args.base, args.steps, rng, logfile=args.logfile)
    print(json.dumps({"summary": stats, "logfile": args.logfile}, ensure_ascii=False, indent=2))


PRESET_TITLES = [
    "Buy milk",
    "Call mom",
    "Finish report",
    "Read book",
    "Clean desk",
    "Plan trip",
    "Water plants",
    "Pay bills",
    "Workout",
    "Learn Python",
]


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    created = 0
    for _ in range(args.count):
        res = _request(args.base, "POST", "/tasks", {"title": rng.choice(PRESET_TITLES)})
        if 200 <= res.get("status", 0) < 300:
            created += 1
        _print_response(res)
    print(f"Created {created} of {args.count} requested.")


def _print_response(res: Dict[str, Any]) -> None:
    print(f"Status: {res.get('status')}")
    body = res.get("body")
    if body is not None:
        print(json.dumps(body, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Admin CLI for the Todo HTTP server.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the Todo server")

    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List tasks with counts")
    p_list.add_argument("--filter", choices=["all", "pending", "completed"], help="Show only matching tasks")
    p_list.add_argument("--limit", type=int, help="Limit number of tasks shown (client-side)")
    p_list.set_defaults(func=cmd_list)

    p_logs = sub.add_parser("logs", help="Show recent action logs")
    p_logs.add_argument("--limit", type=int, default=20, help="How many log entries to show")
    p_logs.set_defaults(func=cmd_logs)

    p_create = sub.add_parser("create", help="Create a task")
    p_create.add_argument("title")
    p_create.set_defaults(func=cmd_create)

    p_toggle = sub.add_parser("toggle", help="Flip a task between pending and completed")
    p_toggle.add_argument("id")
    p_toggle.set_defaults(func=cmd_toggle)

    p_delete = sub.add_parser("delete", help="Delete a task")
    p_delete.add_argument("id")
    p_delete.set_defaults(func=cmd_delete)

    p_rand = sub.add_parser("random", help="Create random tasks from presets")
    p_rand.add_argument("--count", type=int, default=3, help="How many tasks to create")
    p_rand.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    p_rand.set_defaults(func=cmd_random)

    p_tests = sub.add_parser("tests", help="Run deterministic API check suite and log results")
    p_tests.add_argument("--logfile", default="test_results.log", help="Where to store check results (JSONL)")
    p_tests.set_defaults(func=cmd_tests)

    p_fuzz = sub.add_parser("fuzz", help="Run fuzz tester with logging")
    p_fuzz.add_argument("--steps", type=int, default=30, help="How many random actions to run")
    p_fuzz.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    p_fuzz.add_argument("--logfile", default="fuzz_results.log", help="Where to store fuzz results (JSONL)")
    p_fuzz.set_defaults(func=cmd_fuzz_run)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
