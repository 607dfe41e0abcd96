"""
Authenticated-session Locust scenario.

Defines :class:`SessionUser`, the default workload.  Every iteration
logs in as the user's pinned test account, browses 5-15 pages drawn
from the shared weight table, and signs out:

- **60 %** index, **15 %** messages, **10 %** search
- **10 %** intentional ``500`` action, **5 %** known error page

Requests that change state carry ``Datastar-Request: true`` and, when
configured, the dev-mode CSRF bypass token.
"""

from __future__ import annotations

from locust import tag, task

from classifieds_load.config import SessionMode
from classifieds_load.scenarios.base import ClassifiedsUser


@tag("session")
class SessionUser(ClassifiedsUser):
    """Log in, browse, log out, repeat until the run ends."""

    mode = SessionMode.AUTHENTICATED

    @task
    def browse_session(self) -> None:
        """One full login → browse → sign-out iteration."""
        self.simulator.run_iteration()
