# race_relay/main.py
"""Process entry point: load configuration once, then relay races until stopped."""

import argparse
import asyncio
import sys
from typing import List
from typing import Optional

from .config import Settings
from .config import get_settings
from .config import load_relay_config
from .core.exceptions import ConfigError
from .engine import RelayEngine
from .observability import configure_logging
from .observability import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="race-relay",
        description="Submit newly scheduled midos.house races to a Google Form.",
    )
    parser.add_argument("--config", type=str, help="Path to the series/form configuration JSON")
    parser.add_argument("--state", type=str, help="Path to the tracked race ids state file")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument("--log-level", type=str, help="Log level (DEBUG, INFO, WARNING, ...)")
    return parser


async def run(settings: Settings, once: bool = False) -> None:
    config = load_relay_config(settings.CONFIG_PATH, api_key_override=settings.MIDOS_API_KEY)
    async with RelayEngine(config, settings=settings) as engine:
        await engine.run_forever(max_passes=1 if once else None)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.config:
        overrides["CONFIG_PATH"] = args.config
    if args.state:
        overrides["STATE_PATH"] = args.state
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level
    settings = get_settings().model_copy(update=overrides)

    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    log = get_logger(__name__)
    log.info("Starting race relay", config=settings.CONFIG_PATH, state=settings.STATE_PATH)

    try:
        asyncio.run(run(settings, once=args.once))
    except ConfigError as e:
        log.critical("Invalid configuration; exiting", error=str(e))
        return 1
    except KeyboardInterrupt:
        log.info("Race relay stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
