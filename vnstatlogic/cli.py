"""CLI: serve the traffic API or run a single query against vnstat."""
import argparse
import json
import sys

from .api import build_service, create_app
from .config import Settings
from .service import GRANULARITIES
from .telemetry import configure_logging


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


def cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    service = build_service(settings)
    body = {"startDate": args.start}
    if args.stop:
        body["stopDate"] = args.stop
    result = service.query(GRANULARITIES[args.granularity], body)
    out = sys.stdout if result.status == 200 else sys.stderr
    print(json.dumps(result.payload, indent=2), file=out)
    return 0 if result.status == 200 else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="vnstat traffic API")
    parser.add_argument("--log-level", help="Override VNSTAT_API_LOG_LEVEL")
    sub = parser.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")
    serve.set_defaults(func=cmd_serve)

    query = sub.add_parser("query", help="Print bucketed traffic as JSON")
    query.add_argument("granularity", choices=sorted(GRANULARITIES))
    query.add_argument("--start", required=True, help="startDate, e.g. 2024-03-01")
    query.add_argument("--stop", help="stopDate (exclusive)")
    query.set_defaults(func=cmd_query)

    args = parser.parse_args(argv)
    settings = Settings()
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
