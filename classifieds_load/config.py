"""
Load Generator: Configuration.

Defines environment-specific configuration classes for the load
generator and the immutable :class:`Settings` object that every virtual
user reads from.  The ``Config`` classes capture raw values from the
environment (12-factor style); :meth:`Settings.from_config` validates
them once at process start so that bad values fail before any virtual
user spawns.

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides so CI can retarget a run without code
  changes
- A frozen dataclass handed to every user, so no behaviour code reads
  ``os.environ`` directly
"""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from locust.util.timespan import parse_timespan

from classifieds_load.credentials import DEFAULT_CREDENTIALS, Credential, load_credentials
from classifieds_load.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SessionMode(str, enum.Enum):
    """Operating mode of the session simulator."""

    # login -> 5..15 browse actions -> logout, per iteration
    AUTHENTICATED = "session"
    # one browse action per iteration, no credentials
    STATELESS = "stateless"


class Config:
    """
    Base (shared) configuration for the load generator.

    Covers the target host and port, the CSRF bypass token the service
    accepts in dev mode, and the size and duration of the run.
    """

    HOST: str = os.environ.get("HOST", "localhost")
    PORT: str = os.environ.get("PORT", "8080")

    # Empty string disables the X-CSRF-Token header entirely.
    CSRF_BYPASS_TOKEN: str = os.environ.get("CSRF_DEV_BYPASS", "")

    USERS: str = os.environ.get("LOADGEN_USERS", "10")
    SPAWN_RATE: str = os.environ.get("LOADGEN_SPAWN_RATE", "10")
    RUN_TIME: str = os.environ.get("LOADGEN_RUN_TIME", "5m")

    MODE: str = os.environ.get("LOADGEN_MODE", SessionMode.AUTHENTICATED.value)
    SEED: str | None = os.environ.get("LOADGEN_SEED")
    CREDENTIALS_FILE: str | None = os.environ.get("LOADGEN_CREDENTIALS_FILE")

    # Login/logout must succeed; error routes only need a well-formed status.
    SESSION_STATUS_LIMIT: str = os.environ.get("LOADGEN_SESSION_STATUS_LIMIT", "400")
    BROWSE_STATUS_LIMIT: str = os.environ.get("LOADGEN_BROWSE_STATUS_LIMIT", "600")


class DevelopmentConfig(Config):
    """Local runs against a service started with ``go run ./cmd/server``."""


class TestingConfig(Config):
    """
    Test-suite overrides.

    Points at a non-routable host so tests never generate real traffic
    and pins the seed so simulated sequences are reproducible.
    """

    HOST: str = os.environ.get("TEST_HOST", "classifieds.test")
    PORT: str = os.environ.get("TEST_PORT", "8080")
    CSRF_BYPASS_TOKEN: str = "test-bypass-token"
    USERS: str = "2"
    SPAWN_RATE: str = "2"
    RUN_TIME: str = "1s"
    SEED: str | None = "1234"
    CREDENTIALS_FILE: str | None = None


# Lookup table mapping environment name strings to their config classes.
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: ``"development"`` or ``"testing"``.  When *None*, the
            ``LOADGEN_ENV`` environment variable is consulted, falling
            back to ``"development"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``DevelopmentConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("LOADGEN_ENV", "development")
    return config.get(env, config["default"])


@dataclass(frozen=True)
class StatusPolicy:
    """
    Upper bounds (exclusive) a status code must stay under to pass a check.

    ``session_limit`` applies to login and sign-out, ``browse_limit`` to
    every browse action including the intentional error routes.
    """

    session_limit: int = 400
    browse_limit: int = 600

    def __post_init__(self) -> None:
        for name in ("session_limit", "browse_limit"):
            value = getattr(self, name)
            if not 100 < value <= 600:
                raise ConfigurationError(f"{name} must be in (100, 600], got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable, validated settings shared read-only by all virtual users.

    Attributes:
        host: Target hostname.
        port: Target TCP port.
        csrf_bypass_token: Value for ``X-CSRF-Token``; empty disables it.
        users: Number of concurrent virtual users.
        spawn_rate: Users started per second.
        run_time: Test duration in seconds.
        mode: Which :class:`SessionMode` the simulator runs in.
        seed: Base RNG seed, or ``None`` for OS entropy.
        credentials: The credential pool, never empty.
        status_policy: Check bounds for session and browse requests.
    """

    host: str = "localhost"
    port: int = 8080
    csrf_bypass_token: str = ""
    users: int = 10
    spawn_rate: float = 10.0
    run_time: int = 300
    mode: SessionMode = SessionMode.AUTHENTICATED
    seed: int | None = None
    credentials: tuple[Credential, ...] = DEFAULT_CREDENTIALS
    status_policy: StatusPolicy = field(default_factory=StatusPolicy)

    def __post_init__(self) -> None:
        if not self.credentials:
            raise ConfigurationError("Credential pool must not be empty")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Port out of range: {self.port}")
        if self.users < 1:
            raise ConfigurationError(f"At least one virtual user is required, got {self.users}")
        if self.spawn_rate <= 0:
            raise ConfigurationError(f"Spawn rate must be positive, got {self.spawn_rate}")
        if self.run_time <= 0:
            raise ConfigurationError(f"Run time must be positive, got {self.run_time}")

    @property
    def base_url(self) -> str:
        """Scheme + authority every request path is joined onto."""
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_config(cls, config_class: type[Config] | None = None) -> Settings:
        """
        Validate a ``Config`` class and freeze it into ``Settings``.

        Args:
            config_class: Configuration class to read.  Defaults to the
                one selected by :func:`get_config`.

        Returns:
            A fully validated :class:`Settings` instance.

        Raises:
            ConfigurationError: If any value is missing, malformed, or
                out of range.
        """
        cfg = config_class or get_config()

        try:
            mode = SessionMode(cfg.MODE.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(
                f"LOADGEN_MODE must be one of {[m.value for m in SessionMode]}, got {cfg.MODE!r}"
            ) from exc

        try:
            run_time = parse_timespan(cfg.RUN_TIME)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid run time: {cfg.RUN_TIME!r}") from exc

        if cfg.CREDENTIALS_FILE:
            credentials = load_credentials(Path(cfg.CREDENTIALS_FILE))
        else:
            credentials = DEFAULT_CREDENTIALS

        settings = cls(
            host=cfg.HOST,
            port=_parse_int(cfg.PORT, "PORT"),
            csrf_bypass_token=cfg.CSRF_BYPASS_TOKEN,
            users=_parse_int(cfg.USERS, "LOADGEN_USERS"),
            spawn_rate=_parse_float(cfg.SPAWN_RATE, "LOADGEN_SPAWN_RATE"),
            run_time=run_time,
            mode=mode,
            seed=None if cfg.SEED in (None, "") else _parse_int(cfg.SEED, "LOADGEN_SEED"),
            credentials=credentials,
            status_policy=StatusPolicy(
                session_limit=_parse_int(cfg.SESSION_STATUS_LIMIT, "LOADGEN_SESSION_STATUS_LIMIT"),
                browse_limit=_parse_int(cfg.BROWSE_STATUS_LIMIT, "LOADGEN_BROWSE_STATUS_LIMIT"),
            ),
        )
        logger.info(
            "Loaded settings from %s: target=%s mode=%s users=%d run_time=%ds",
            cfg.__name__,
            settings.base_url,
            settings.mode.value,
            settings.users,
            settings.run_time,
        )
        return settings


def _parse_int(value: str, field_name: str) -> int:
    """Coerce an environment string to ``int`` or raise ``ConfigurationError``."""
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(f"Non-integer value for {field_name}: {value!r}") from exc


def _parse_float(value: str, field_name: str) -> float:
    try:
        return float(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(f"Non-numeric value for {field_name}: {value!r}") from exc
