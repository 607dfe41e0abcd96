"""
Helper utilities for the classifieds session simulator.

Provides the small building blocks the simulator relies on: the
simulated-client header set and the check helper that turns a Locust
``catch_response`` response into a named pass/fail result.

Key Concepts Demonstrated:
- Reusable check helper wrapping Locust's ``catch_response`` protocol
- Transport errors (status ``0``) recorded as failed checks instead of
  exceptions that would abort the virtual user
- Expected-failure routes passing as long as the status is well formed
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Marks requests as coming from the Datastar client, as the browser would.
CLIENT_MARKER_HEADER = "Datastar-Request"
CSRF_HEADER = "X-CSRF-Token"


def client_headers(csrf_bypass_token: str = "") -> dict[str, str]:
    """
    Build the headers a real browser client attaches to actions.

    Args:
        csrf_bypass_token: Dev-mode CSRF bypass value.  When empty the
            ``X-CSRF-Token`` header is omitted.

    Returns:
        A fresh header dictionary safe for the caller to mutate.
    """
    headers = {CLIENT_MARKER_HEADER: "true"}
    if csrf_bypass_token:
        headers[CSRF_HEADER] = csrf_bypass_token
    return headers


def check_status(response: Any, check_name: str, limit: int) -> bool:
    """
    Record one named check against a ``catch_response`` response.

    The check passes when the request completed and its status code is
    below ``limit``.  Either way the response is explicitly marked, so
    Locust never applies its own "non-2xx is a failure" rule to routes
    that are expected to fail.

    Args:
        response: Locust ``ResponseContextManager`` (or a stand-in
            exposing ``status_code``, ``error``, ``success()`` and
            ``failure()``).
        check_name: Human-readable check name, e.g. ``"login ok"``.
        limit: Exclusive upper bound for a passing status code.

    Returns:
        ``True`` if the check passed, ``False`` otherwise.
    """
    error = getattr(response, "error", None)
    status = response.status_code or 0

    if error is not None or status == 0:
        response.failure(f"{check_name}: transport error: {error}")
        logger.debug("Check %r failed: transport error %s", check_name, error)
        return False

    if status >= limit:
        response.failure(f"{check_name}: got status {status}, expected < {limit}")
        logger.debug("Check %r failed: status %d >= %d", check_name, status, limit)
        return False

    response.success()
    return True
