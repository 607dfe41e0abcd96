"""
Stateless Locust scenario.

Defines :class:`BrowseUser`, an anonymous visitor issuing one browse
action per iteration from the same weight table as
:class:`~classifieds_load.scenarios.session_user.SessionUser`, so the
two profiles can be compared directly.  No credentials, no login or
sign-out, and no CSRF bypass token.
"""

from __future__ import annotations

from locust import tag, task

from classifieds_load.config import SessionMode
from classifieds_load.scenarios.base import ClassifiedsUser


@tag("stateless")
class BrowseUser(ClassifiedsUser):
    """Hit one weighted-random page per iteration."""

    mode = SessionMode.STATELESS

    @task
    def browse_once(self) -> None:
        self.simulator.run_iteration()
