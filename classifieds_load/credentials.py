"""
Credential pool for authenticated virtual users.

The classifieds service seeds a fixed set of test accounts at startup.
Each virtual user is pinned to one of them by ``user_id mod pool_size``
so that a given user always logs in as the same account for the whole
run.  The pool can be replaced by a YAML file for environments seeded
with different accounts.

Example pool file::

    users:
      - username: testuser
        password: testuser
      - username: julianf92
        password: julian123
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from classifieds_load.errors import ConfigurationError


@dataclass(frozen=True)
class Credential:
    """An ``(identifier, secret)`` pair for the login form."""

    identifier: str
    secret: str

    def login_payload(self) -> dict[str, str]:
        """JSON body accepted by ``POST /login/submit/``."""
        return {"emailorusername": self.identifier, "password": self.secret}


# Accounts created by the service's dev test data.
DEFAULT_CREDENTIALS: tuple[Credential, ...] = (
    Credential("testuser", "testuser"),
    Credential("julianf92", "julian123"),
    Credential("fabiberg", "fabipass"),
    Credential("kaiy", "kaiypass1"),
    Credential("lorentz553", "lorentzpw"),
    Credential("gretschen", "gretschpw"),
)


def credential_for_user(pool: Sequence[Credential], user_id: int) -> Credential:
    """
    Return the credential pinned to a virtual user.

    Args:
        pool: Non-empty credential pool.
        user_id: Virtual-user id assigned at spawn time.

    Returns:
        ``pool[user_id % len(pool)]``.

    Raises:
        ConfigurationError: If the pool is empty.
    """
    if not pool:
        raise ConfigurationError("Credential pool must not be empty")
    return pool[user_id % len(pool)]


def load_credentials(path: Path) -> tuple[Credential, ...]:
    """
    Read a credential pool from a YAML file.

    Args:
        path: File with a top-level ``users`` list of
            ``{username, password}`` mappings.

    Returns:
        The pool as a tuple, in file order.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or does
            not define at least one complete entry.
    """
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read credentials file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in credentials file {path}: {exc}") from exc

    entries = data.get("users") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise ConfigurationError(f"Credentials file {path} must define a non-empty 'users' list")

    return tuple(_parse_entry(entry, index, path) for index, entry in enumerate(entries))


def _parse_entry(entry: Any, index: int, path: Path) -> Credential:
    if not isinstance(entry, dict):
        raise ConfigurationError(f"{path}: users[{index}] is not a mapping")

    username = entry.get("username")
    password = entry.get("password")
    if not isinstance(username, str) or not username:
        raise ConfigurationError(f"{path}: users[{index}] missing username")
    # YAML turns unquoted digits into ints; any scalar is a usable password.
    if password is None or isinstance(password, (dict, list)):
        raise ConfigurationError(f"{path}: users[{index}] missing password")

    return Credential(username, str(password))
