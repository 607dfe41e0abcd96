"""
Headless runner for the classifieds load generator.

Runs Locust as a library so CI can start a load run with a single
command and no locustfile discovery::

    classifieds-load --users 50 --run-time 10m --mode stateless

Settings come from the environment (see :mod:`classifieds_load.config`)
and can be overridden per flag.  Exit codes:

- ``0``: the run completed (failed checks show up in Locust's stats,
  not in the exit code)
- ``2``: the configuration was invalid and nothing was started
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import Any, Sequence

import gevent
from locust.env import Environment
from locust.util.timespan import parse_timespan

from classifieds_load.config import SessionMode, Settings, get_config
from classifieds_load.errors import ConfigurationError
from classifieds_load.locustfile import MODE_TO_USER_CLASS
from classifieds_load.scenarios.base import ClassifiedsUser

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments; every flag defaults to the environment value."""
    parser = argparse.ArgumentParser(
        description="Simulate concurrent classifieds users against a running service."
    )
    parser.add_argument("--host", help="Target host (env: HOST)")
    parser.add_argument("--port", type=int, help="Target port (env: PORT)")
    parser.add_argument("-u", "--users", type=int, help="Concurrent virtual users (env: LOADGEN_USERS)")
    parser.add_argument(
        "-r", "--spawn-rate", type=float, help="Users started per second (env: LOADGEN_SPAWN_RATE)"
    )
    parser.add_argument("-t", "--run-time", help="Duration, e.g. 30s, 5m, 1h (env: LOADGEN_RUN_TIME)")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SessionMode],
        help="Simulator mode (env: LOADGEN_MODE)",
    )
    parser.add_argument("--seed", type=int, help="Base RNG seed (env: LOADGEN_SEED)")
    parser.add_argument("--env", help="Configuration profile (env: LOADGEN_ENV)")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """
    Merge environment configuration with CLI overrides.

    Raises:
        ConfigurationError: If the merged values are invalid.
    """
    settings = Settings.from_config(get_config(args.env))

    overrides: dict[str, Any] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.users is not None:
        overrides["users"] = args.users
    if args.spawn_rate is not None:
        overrides["spawn_rate"] = args.spawn_rate
    if args.run_time:
        try:
            overrides["run_time"] = parse_timespan(args.run_time)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid run time: {args.run_time!r}") from exc
    if args.mode:
        overrides["mode"] = SessionMode(args.mode)
    if args.seed is not None:
        overrides["seed"] = args.seed

    return replace(settings, **overrides) if overrides else settings


def run(settings: Settings) -> Environment:
    """
    Run one load test to completion and return its Locust environment.

    Spawns ``settings.users`` users of the class matching
    ``settings.mode`` and stops them when ``settings.run_time`` elapses,
    possibly in the middle of a session.
    """
    user_class = MODE_TO_USER_CLASS[settings.mode]
    ClassifiedsUser.configure(settings)
    ClassifiedsUser.reset_ids()

    environment = Environment(user_classes=[user_class], host=settings.base_url)
    runner = environment.create_local_runner()

    logger.info(
        "Starting %d %s users against %s for %ds",
        settings.users,
        user_class.__name__,
        settings.base_url,
        settings.run_time,
    )
    runner.start(settings.users, spawn_rate=settings.spawn_rate)
    gevent.spawn_later(settings.run_time, runner.quit)
    runner.greenlet.join()
    return environment


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``classifieds-load`` console script."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)

    try:
        settings = build_settings(args)
    except ConfigurationError as exc:
        logger.error("Invalid load generator configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    environment = run(settings)
    total = environment.stats.total
    logger.info("Run finished: %d requests, %d failed checks", total.num_requests, total.num_failures)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
