from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from vixresolver.infrastructure.composition import resolve
from vixresolver.infrastructure.config import AppConfig, load_config
from vixresolver.infrastructure.logging.setup import configure_logging
from vixresolver.interfaces.app import build_app

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vixresolver")

    # Config wiring flags (no business logic)
    parser.add_argument("--config", default=None, help="Path to YAML config file.")
    parser.add_argument("--dotenv", default=None, help="Path to .env file.")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )
    parser.add_argument(
        "--mode",
        default=None,
        choices=["auto", "generic", "native"],
        help="Override resolution mode.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    res = sub.add_parser("resolve", help="Resolve one title and print its streams.")
    res.add_argument("media_id", help="Catalog id, e.g. 786892.")
    res.add_argument("--kind", default="movie", choices=["movie", "series", "tv"])
    res.add_argument("--season", type=int, default=None)
    res.add_argument("--episode", type=int, default=None)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None, help="Bind host (overrides HOST env).")
    serve.add_argument(
        "--port", default=None, type=int, help="Bind port (overrides PORT env)."
    )

    return parser.parse_args(argv)


def _run_resolve(args: argparse.Namespace, config: AppConfig) -> int:
    streams = asyncio.run(
        resolve(
            args.media_id,
            args.kind,
            args.season,
            args.episode,
            config=config.resolver,
        )
    )
    log.info("cli_resolve_done", media_id=args.media_id, count=len(streams))
    json.dump([s.to_dict() for s in streams], sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0 if streams else 1


def _run_serve(args: argparse.Namespace, config: AppConfig, log_config: Any) -> int:
    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7980"))
    log.info("cli_serve", host=host, port=port)
    uvicorn.run(build_app(config), host=host, port=port, log_config=log_config)
    return 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, configures logging, then dispatches.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.mode:
        cli_overrides["resolution_mode"] = args.mode

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )
    log_config = configure_logging(config)

    if args.command == "serve":
        return _run_serve(args, config, log_config)
    return _run_resolve(args, config)


if __name__ == "__main__":
    raise SystemExit(start())
