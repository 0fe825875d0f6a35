from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone

from storefront.core.logging import configure_logging
from storefront.persistence.database import init_db
from storefront.reconciliation.delivery_sweep import run_delivery_sweep


def _parse_now(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront order fulfillment CLI")
    parser.add_argument("--log-level", default=None)
    top = parser.add_subparsers(dest="command", required=True)

    top.add_parser("init-db", help="Create database tables")

    sweep = top.add_parser("sweep", help="Run one delivery reconciliation pass")
    sweep.add_argument(
        "--now",
        default=None,
        help="ISO timestamp to evaluate delivery dates against (default: current UTC time)",
    )
    return parser


def _run_sweep(args: argparse.Namespace) -> int:
    init_db()
    result = run_delivery_sweep(now=_parse_now(args.now))
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 1 if result.failed else 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "init-db":
        init_db()
        return 0
    if args.command == "sweep":
        return _run_sweep(args)

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
