"""
Shared abstract Locust user class for the classifieds scenarios.

:class:`ClassifiedsUser` adapts Locust's executor to the session
simulator: Locust owns spawning, pacing between iterations and
run-time cancellation, while all request decisions live in
:class:`~classifieds_load.session.SessionSimulator`.

Key Concepts Demonstrated:
- Abstract Locust base class for DRY scenario authoring
- Settings injected once by the entrypoint and shared read-only
- Stable virtual-user ids so credential assignment and seeding are
  reproducible

In a distributed run every worker numbers its users from 1, so the
worker index is folded into the id (``worker_index * WORKER_ID_STRIDE +
local id``).  Users on different workers then draw different credentials
and, with ``LOADGEN_SEED`` set, different action and pause sequences.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace

from locust import HttpUser, constant

from classifieds_load.config import SessionMode, Settings
from classifieds_load.session import SessionSimulator

logger = logging.getLogger(__name__)

# Id space reserved for each worker's users.  Prime, so the offset
# moves credential assignment for any pool smaller than the stride.
WORKER_ID_STRIDE = 1_000_003


class ClassifiedsUser(HttpUser):
    """
    Base user that owns one :class:`SessionSimulator`.

    ``abstract = True`` tells Locust not to spawn this class directly.
    Think-time is modelled inside the simulator, so Locust itself waits
    nothing between iterations.

    Attributes:
        mode: Simulator mode forced by the concrete subclass.
        run_settings: Run settings installed by :meth:`configure`; built
            from the environment on first use when unset.
        user_id: Virtual-user id, assigned in spawn order from 1 and
            offset by the worker index on distributed workers.
        simulator: This user's simulator instance.
    """

    abstract = True
    wait_time = constant(0)
    host = Settings().base_url

    mode: SessionMode
    run_settings: Settings | None = None

    user_id: int
    simulator: SessionSimulator

    _user_ids = itertools.count(1)

    @classmethod
    def configure(cls, settings: Settings) -> None:
        """Install validated settings for every user class in this process."""
        ClassifiedsUser.run_settings = settings
        ClassifiedsUser.host = settings.base_url

    @classmethod
    def reset_ids(cls) -> None:
        """Restart virtual-user numbering at 1 (new run in the same process)."""
        ClassifiedsUser._user_ids = itertools.count(1)

    def on_start(self) -> None:
        """Take the next user id and build this user's simulator."""
        settings = ClassifiedsUser.run_settings
        if settings is None:
            settings = Settings.from_config()
            ClassifiedsUser.configure(settings)

        self.user_id = self._worker_offset() + next(ClassifiedsUser._user_ids)
        self.simulator = SessionSimulator(
            self.client,
            replace(settings, mode=self.mode),
            self.user_id,
        )
        logger.debug("Started %s #%d in %s mode", type(self).__name__, self.user_id, self.mode.value)

    def _worker_offset(self) -> int:
        # Local and master runners have no worker_index; a worker that has
        # not yet been acknowledged by the master reports -1.
        worker_index = getattr(self.environment.runner, "worker_index", 0)
        return max(worker_index, 0) * WORKER_ID_STRIDE
