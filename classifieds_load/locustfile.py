# ruff: noqa: E402
"""
Locust entrypoint for the classifieds load generator.

This is the file that the ``locust`` CLI discovers and loads.  It
imports both concrete user classes and wires up an ``init`` listener
that validates the run settings before any user spawns and picks the
user class to run.

Usage examples::

    # Authenticated sessions (default), 10 users for 5 minutes:
    locust -f classifieds_load/locustfile.py --headless -u 10 -r 10 -t 5m

    # Anonymous one-request-per-iteration traffic:
    locust -f classifieds_load/locustfile.py --tags stateless ...

    # Same, selected through the environment:
    LOADGEN_MODE=stateless locust -f classifieds_load/locustfile.py ...

Target host, port and CSRF bypass token come from ``HOST``, ``PORT``
and ``CSRF_DEV_BYPASS`` unless ``--host`` is passed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from locust import events

# Locust may be invoked from any directory.  Inserting the project root
# onto ``sys.path`` lets ``classifieds_load`` resolve without installing.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from classifieds_load.config import SessionMode, Settings
from classifieds_load.errors import ConfigurationError
from classifieds_load.scenarios.base import ClassifiedsUser
from classifieds_load.scenarios.browse_user import BrowseUser
from classifieds_load.scenarios.session_user import SessionUser

__all__ = ["SessionUser", "BrowseUser"]

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2

TAG_TO_USER_CLASS = {
    "session": SessionUser,
    "stateless": BrowseUser,
}

MODE_TO_USER_CLASS = {
    SessionMode.AUTHENTICATED: SessionUser,
    SessionMode.STATELESS: BrowseUser,
}


def select_user_classes(tags: set[str], mode: SessionMode) -> list[type[ClassifiedsUser]]:
    """
    Pick the user classes to spawn.

    Explicit ``--tags`` win; without them the configured mode decides,
    so a plain ``locust -f`` run never mixes the two profiles.
    """
    selected = [user_class for tag, user_class in TAG_TO_USER_CLASS.items() if tag in tags]
    return selected or [MODE_TO_USER_CLASS[mode]]


@events.init.add_listener
def _configure_run(environment, **_kwargs):
    """
    Validate settings once and narrow ``environment.user_classes``.

    A :class:`ConfigurationError` stops the process with exit code 2
    before any virtual user is spawned.
    """
    try:
        settings = Settings.from_config()
    except ConfigurationError as exc:
        logger.error("Invalid load generator configuration: %s", exc)
        raise SystemExit(EXIT_CONFIG_ERROR) from exc

    ClassifiedsUser.configure(settings)
    if not environment.host:
        environment.host = settings.base_url

    parsed_options = getattr(environment, "parsed_options", None)
    tags = set(getattr(parsed_options, "tags", None) or [])
    environment.user_classes = select_user_classes(tags, settings.mode)
    logger.info(
        "Running %s against %s",
        ", ".join(c.__name__ for c in environment.user_classes),
        environment.host,
    )
