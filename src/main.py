# src/main.py - v3
"""CLI entry point: quick reads against the backend for operators.

Usage:
    silvererp pl
    silvererp stock --rate <per-kg>
    silvererp rate [--history] [--source MCX]
    silvererp statement <ledger name> [--start YYYY-MM-DD] [--end YYYY-MM-DD]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from typing import Any

from pydantic import BaseModel, ValidationError

from silvererp.config.settings import ConfigurationError, Settings, load_settings
from silvererp.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except (ValidationError, ConfigurationError) as exc:
        _setup_logging(args.verbose)
        logger.error("Invalid configuration: %s", exc)
        return 1

    _setup_logging(args.verbose, settings)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="silvererp",
        description=f"silvererp v{__version__} - silver trading ERP client",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_pl = subparsers.add_parser("pl", help="Profit and loss report")
    p_pl.set_defaults(func=_cmd_pl)

    p_stock = subparsers.add_parser("stock", help="Stock balances and valuation")
    p_stock.add_argument(
        "--rate", type=float, default=None,
        help="Silver rate per kg for valuation (default: latest recorded rate)",
    )
    p_stock.set_defaults(func=_cmd_stock)

    p_rate = subparsers.add_parser("rate", help="Latest silver rate")
    p_rate.add_argument(
        "--history", action="store_true", help="Show full rate history",
    )
    p_rate.add_argument(
        "--source", choices=["MCX", "Local Dealer"], default=None,
        help="Restrict history to one source",
    )
    p_rate.set_defaults(func=_cmd_rate)

    p_statement = subparsers.add_parser("statement", help="Ledger statement")
    p_statement.add_argument("name", help="Ledger (customer or vendor) name")
    p_statement.add_argument("--start", default=None, help="From date (YYYY-MM-DD)")
    p_statement.add_argument("--end", default=None, help="To date (YYYY-MM-DD)")
    p_statement.set_defaults(func=_cmd_statement)

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    from silvererp.logging.context import set_session_context
    from silvererp.services.container import build_services

    set_session_context(uuid.uuid4().hex, settings.settings_user_id or None)
    services = build_services(settings)
    try:
        return await args.func(services, args)
    finally:
        await services.close()


async def _cmd_pl(services: Any, args: argparse.Namespace) -> int:
    _print_json(await services.accounting.get_pl_report())
    return 0


async def _cmd_stock(services: Any, args: argparse.Namespace) -> int:
    rate = args.rate
    if rate is None:
        latest = await services.rates.get_latest_rate()
        if latest is None:
            logger.error("No silver rate recorded; pass --rate")
            return 1
        # rate_10g per 10 g -> per kg
        rate = latest.rate_10g * 100
    _print_json(await services.inventory.get_stock_summary(rate))
    return 0


async def _cmd_rate(services: Any, args: argparse.Namespace) -> int:
    if args.history:
        _print_json(await services.rates.get_rate_history(args.source))
        return 0
    latest = await services.rates.get_latest_rate()
    if latest is None:
        logger.error("No silver rate recorded")
        return 1
    _print_json(latest)
    return 0


async def _cmd_statement(services: Any, args: argparse.Namespace) -> int:
    _print_json(
        await services.accounting.get_customer_statement(args.name, args.start, args.end)
    )
    return 0


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _print_json(value: Any) -> None:
    print(json.dumps(_to_jsonable(value), indent=2, default=str))


def _setup_logging(verbose: bool, settings: Settings | None = None) -> None:
    """Configure logging for CLI usage.

    Follows the LOG_* settings; --verbose forces DEBUG. Without settings
    (configuration failed to load) logs go to stderr as text.
    """
    from silvererp.logging.logger import setup_logging

    if settings is None:
        setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")
    else:
        setup_logging(
            level="DEBUG" if verbose else settings.log_level,
            log_format=settings.log_format,
            log_file=str(settings.log_file) if settings.log_file else None,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
        )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
