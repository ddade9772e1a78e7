import argparse

from api.http_server import TodoHTTPServer, TodoRequestHandler
from services.action_log import ActionLogger
from services.storage import TaskStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Todo HTTP server (in-memory task list)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--action-log", default=None, help="JSONL file for the action log (default: keep in memory)")
    return parser


def main() -> None:
    args = build_parser().parse_args()

    store = TaskStore(logger=ActionLogger(args.action_log))
    server = TodoHTTPServer((args.host, args.port), TodoRequestHandler, store)

    print(f"Server started: http://{args.host}:{args.port}")
    print("Endpoints:")
    print("  GET    /tasks?filter=all|pending|completed")
    print('  POST   /tasks              JSON: {"title":"..."}')
    print("  PUT    /tasks/<id>         toggle completed")
    print("  DELETE /tasks/<id>")
    print("  GET    /admin/logs?limit=N")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
