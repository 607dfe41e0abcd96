"""
Per-virtual-user session simulator.

:class:`SessionSimulator` is the behaviour model every Locust user
delegates to.  In authenticated mode one iteration is::

    START --login--> AUTHENTICATED --browse 5..15 actions--> --sign-out--> TERMINATED

In stateless mode an iteration is a single browse action with no
credential and no login/logout.  Both modes draw from the same
:data:`~classifieds_load.weights.BROWSE_TABLE`, so their traffic mixes
stay comparable.

No request outcome ever stops an iteration: failed checks are recorded
through Locust and the simulator carries on, always reaching sign-out.

Key Concepts Demonstrated:
- One simulator parameterised by mode instead of two near-duplicate
  scripts
- Private ``random.Random`` per user so sequences are reproducible and
  independent of how many users run alongside
- Injected ``sleep`` so tests run instantly and Locust's gevent patching
  turns pauses into cooperative yields
"""

from __future__ import annotations

import enum
import logging
import random
import time
from typing import Any, Callable

from classifieds_load.config import SessionMode, Settings
from classifieds_load.credentials import Credential, credential_for_user
from classifieds_load.helpers import check_status, client_headers
from classifieds_load.weights import (
    BROWSE_TABLE,
    LOGIN,
    SIGN_OUT,
    Action,
    BodyPolicy,
    HeaderPolicy,
    RequestSpec,
    WeightTable,
)

logger = logging.getLogger(__name__)

# Pause ranges in seconds, drawn uniformly.
LOGIN_SETTLE = (0.5, 1.0)
THINK_TIME = (0.2, 0.5)
SIGN_OUT_SETTLE = (0.3, 0.6)

# Browse actions per authenticated session, inclusive.
BROWSE_COUNT = (5, 15)

# Request context attached to Locust request events, per endpoint.
SESSION_CONTEXT = {
    "login": {"endpoint": "login", "type": "session"},
    "sign-out": {"endpoint": "sign-out", "type": "session"},
}


class SessionState(enum.Enum):
    START = "start"
    AUTHENTICATED = "authenticated"
    TERMINATED = "terminated"


def make_rng(seed: int | None, user_id: int) -> random.Random:
    """Per-user generator; seeded runs offset the base seed by user id."""
    if seed is None:
        return random.Random()
    return random.Random(seed + user_id)


class SessionSimulator:
    """
    Drive one virtual user's requests.

    Args:
        client: Locust ``HttpSession`` (or any object with a compatible
            ``request(method, path, **kwargs)`` context manager and a
            ``cookies`` jar).  The jar carries the session from login to
            sign-out and is emptied at the start of every iteration.
        settings: Shared, read-only run settings.
        user_id: Virtual-user id; selects the credential slot and
            offsets the RNG seed.
        table: Browse weight table.
        rng: Random generator; defaults to :func:`make_rng`.
        sleep: Pause function; defaults to ``time.sleep``.
    """

    def __init__(
        self,
        client: Any,
        settings: Settings,
        user_id: int,
        *,
        table: WeightTable = BROWSE_TABLE,
        rng: random.Random | None = None,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.client = client
        self.settings = settings
        self.user_id = user_id
        self.mode = settings.mode
        self.table = table
        self.rng = rng or make_rng(settings.seed, user_id)
        self.sleep = sleep
        self.state = SessionState.START

        self.credential: Credential | None = None
        if self.mode is SessionMode.AUTHENTICATED:
            self.credential = credential_for_user(settings.credentials, user_id)
            self.headers = client_headers(settings.csrf_bypass_token)
        else:
            # Stateless traffic never carries the CSRF bypass token.
            self.headers = client_headers()

    def run_iteration(self) -> list[Action]:
        """
        Run one executor iteration and return the browse actions taken.

        Authenticated mode always issues exactly one login, then
        :meth:`draw_browse_count` browse actions, then one sign-out.
        Stateless mode issues one browse action.

        The cookie jar is emptied first, so nothing a previous iteration
        received (including a session that a failed sign-out left open)
        reaches this one.
        """
        self.client.cookies.clear()

        if self.mode is SessionMode.STATELESS:
            return self.browse(1)

        self.state = SessionState.START
        self.authenticate()
        actions = self.browse(self.draw_browse_count())
        self.terminate()
        return actions

    def draw_browse_count(self) -> int:
        low, high = BROWSE_COUNT
        return self.rng.randint(low, high)

    def authenticate(self) -> bool:
        """
        Log in with this user's credential.

        A failed login is only recorded; the session moves on to
        browsing regardless so load keeps flowing against a degraded
        auth path.
        """
        ok = self._send(
            LOGIN, "login ok", self.settings.status_policy.session_limit, SESSION_CONTEXT["login"]
        )
        self.state = SessionState.AUTHENTICATED
        self._pause(LOGIN_SETTLE)
        return ok

    def browse(self, count: int) -> list[Action]:
        """Issue ``count`` weighted-random actions with think-time between them."""
        return [self.step() for _ in range(count)]

    def step(self) -> Action:
        """Select, issue, and check a single browse action."""
        action = self.table.select(self.rng.random())
        self._send(
            action.request,
            "status is valid",
            self.settings.status_policy.browse_limit,
            {"endpoint": action.label, "type": action.kind},
        )
        self._pause(THINK_TIME)
        return action

    def terminate(self) -> bool:
        """Sign out and settle; ends the iteration."""
        ok = self._send(
            SIGN_OUT, "sign-out ok", self.settings.status_policy.session_limit, SESSION_CONTEXT["sign-out"]
        )
        self.state = SessionState.TERMINATED
        self._pause(SIGN_OUT_SETTLE)
        logger.debug("User %d signed out", self.user_id)
        return ok

    def _send(self, spec: RequestSpec, check_name: str, limit: int, context: dict[str, str]) -> bool:
        kwargs: dict[str, Any] = {"name": spec.name, "catch_response": True, "context": context}

        if spec.headers is HeaderPolicy.CLIENT or spec.body is BodyPolicy.CREDENTIALS_JSON:
            headers = dict(self.headers) if spec.headers is HeaderPolicy.CLIENT else {}
            if spec.body is BodyPolicy.CREDENTIALS_JSON:
                if self.credential is None:
                    raise RuntimeError(f"{spec.name} needs a credential in {self.mode.value} mode")
                headers["Content-Type"] = "application/json"
                kwargs["json"] = self.credential.login_payload()
            kwargs["headers"] = headers

        with self.client.request(spec.method, spec.path, **kwargs) as response:
            return check_status(response, check_name, limit)

    def _pause(self, bounds: tuple[float, float]) -> None:
        low, high = bounds
        self.sleep(low + (high - low) * self.rng.random())
