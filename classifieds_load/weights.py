"""
Weighted action selection for browsing virtual users.

A :class:`WeightTable` is an ordered list of actions, each owning a
contiguous slice of the unit interval.  One uniform draw in ``[0, 1)``
picks exactly one action: the first whose (exclusive) upper bound is
greater than the draw.  Tables are validated when they are built, so a
malformed table stops the run before any user spawns.

Key Concepts Demonstrated:
- Declarative traffic mix instead of nested ``if r < ...`` chains
- Pure lookup function that is unit-testable without any HTTP client
- Fail-fast validation of cumulative bounds at import/startup time
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, replace
from typing import Iterator, Sequence

from classifieds_load.errors import ConfigurationError

# How far per-action weights may sum from 1.0 before a table is rejected.
WEIGHT_SUM_TOLERANCE = 1e-9


class BodyPolicy(str, enum.Enum):
    """What a request sends as its body."""

    NONE = "none"
    CREDENTIALS_JSON = "credentials-json"


class HeaderPolicy(str, enum.Enum):
    """Whether a request carries the simulated-client headers."""

    NONE = "none"
    CLIENT = "client"


@dataclass(frozen=True)
class RequestSpec:
    """Method, path, and body/header policies for one HTTP request."""

    method: str
    path: str
    body: BodyPolicy = BodyPolicy.NONE
    headers: HeaderPolicy = HeaderPolicy.NONE

    @property
    def name(self) -> str:
        """Stats name reported to Locust, e.g. ``/messages/ [GET]``."""
        return f"{self.path} [{self.method}]"


@dataclass(frozen=True)
class Action:
    """
    One labelled browse action and its slice of the unit interval.

    Attributes:
        label: Short endpoint label (``index``, ``cause-500``...).
        kind: Traffic class: ``page``, ``error`` or ``error-page``.
            Sent with the label as Locust request context
            (``{"endpoint": label, "type": kind}``).
        request: The HTTP request this action issues.
        upper_bound: Exclusive cumulative upper bound in ``(0, 1]``.
    """

    label: str
    kind: str
    request: RequestSpec
    upper_bound: float = 1.0


class WeightTable:
    """
    Ordered, validated cumulative-weight table.

    Args:
        actions: Actions in selection order.  Bounds must be strictly
            increasing, lie in ``(0, 1]``, and end at exactly ``1.0``.

    Raises:
        ConfigurationError: If the table is empty, has duplicate labels,
            or its bounds do not partition ``[0, 1)``.
    """

    def __init__(self, actions: Sequence[Action]) -> None:
        self._actions: tuple[Action, ...] = tuple(actions)
        self._bounds: tuple[float, ...] = tuple(a.upper_bound for a in self._actions)
        self._validate()

    @classmethod
    def from_weights(cls, weighted: Sequence[tuple[Action, float]]) -> WeightTable:
        """
        Build a table from per-action weights instead of cumulative bounds.

        Weights must be positive and sum to ``1.0`` within
        :data:`WEIGHT_SUM_TOLERANCE`; the final bound is then pinned to
        exactly ``1.0``.  Cumulative sums are rounded to 12 decimal places
        so that ``0.75 + 0.10`` lands on the same float as the literal
        ``0.85``.
        """
        actions: list[Action] = []
        total = 0.0
        for action, weight in weighted:
            if weight <= 0:
                raise ConfigurationError(f"Weight for {action.label!r} must be positive, got {weight}")
            total = round(total + weight, 12)
            actions.append(replace(action, upper_bound=total))

        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ConfigurationError(f"Weights must sum to 1.0, got {total}")
        if actions:
            actions[-1] = replace(actions[-1], upper_bound=1.0)
        return cls(actions)

    def _validate(self) -> None:
        if not self._actions:
            raise ConfigurationError("Weight table must contain at least one action")

        labels = [a.label for a in self._actions]
        if len(set(labels)) != len(labels):
            raise ConfigurationError(f"Duplicate action labels in weight table: {labels}")

        previous = 0.0
        for action in self._actions:
            if action.upper_bound <= previous:
                raise ConfigurationError(
                    f"Bounds must be strictly increasing: {action.label!r} has "
                    f"{action.upper_bound} after {previous}"
                )
            previous = action.upper_bound

        if self._bounds[-1] != 1.0:
            raise ConfigurationError(f"Final bound must be exactly 1.0, got {self._bounds[-1]}")

    def select(self, draw: float) -> Action:
        """
        Map a uniform draw to its action.

        A draw equal to a boundary belongs to the *next* action
        (``draw < upper_bound``), so every value in ``[0, 1)`` matches
        exactly one action.

        Args:
            draw: A value in ``[0, 1)``, typically ``rng.random()``.

        Returns:
            The selected :class:`Action`.

        Raises:
            ValueError: If ``draw`` is outside ``[0, 1)``.
        """
        if not 0.0 <= draw < 1.0:
            raise ValueError(f"Draw must be in [0, 1), got {draw}")
        return self._actions[bisect.bisect_right(self._bounds, draw)]

    def weight_of(self, label: str) -> float:
        """Return the width of the slice owned by ``label``."""
        previous = 0.0
        for action in self._actions:
            if action.label == label:
                return action.upper_bound - previous
            previous = action.upper_bound
        raise KeyError(label)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(a.label for a in self._actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)


# ---- Requests issued by the simulator ------------------------------------

LOGIN = RequestSpec("POST", "/login/submit/", BodyPolicy.CREDENTIALS_JSON, HeaderPolicy.CLIENT)
SIGN_OUT = RequestSpec("POST", "/sign-out/", headers=HeaderPolicy.CLIENT)

# Shared by authenticated and stateless users so both modes produce the
# same traffic mix.
#   [0.00, 0.60) index       60 %
#   [0.60, 0.75) messages    15 %
#   [0.75, 0.85) search      10 %
#   [0.85, 0.95) cause-500   10 %  intentional 500 from the service
#   [0.95, 1.00) whoops       5 %  known error page
BROWSE_TABLE = WeightTable(
    [
        Action("index", "page", RequestSpec("GET", "/"), 0.60),
        Action("messages", "page", RequestSpec("GET", "/messages/"), 0.75),
        Action("search", "page", RequestSpec("GET", "/search/"), 0.85),
        Action(
            "cause-500",
            "error",
            RequestSpec("POST", "/cause-500-internal-error/", headers=HeaderPolicy.CLIENT),
            0.95,
        ),
        Action("whoops", "error-page", RequestSpec("GET", "/whoops/"), 1.0),
    ]
)
