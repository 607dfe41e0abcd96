"""
Integration tests for the Locust user classes and entrypoint wiring.

Instantiates the real ``HttpUser`` subclasses inside a Locust
``Environment`` but swaps their HTTP session for :class:`FakeClient`
before ``on_start``, so the full Locust → user → simulator path runs
without network traffic or a runner.

Key SDET Concepts Demonstrated:
- Exercising framework integration points without starting the framework
- Monkeypatching configuration loading to simulate startup failures
- Verifying user-class selection logic used by ``--tags``
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from locust.env import Environment

from classifieds_load import locustfile
from classifieds_load.cli import build_settings, main, parse_args
from classifieds_load.config import SessionMode, Settings, get_config
from classifieds_load.errors import ConfigurationError
from classifieds_load.credentials import credential_for_user
from classifieds_load.scenarios.base import WORKER_ID_STRIDE, ClassifiedsUser
from classifieds_load.scenarios.browse_user import BrowseUser
from classifieds_load.scenarios.session_user import SessionUser
from tests.fakes import FakeClient

pytestmark = pytest.mark.integration


@pytest.fixture
def configured(settings):
    """Install test settings and restart user numbering for each test."""
    ClassifiedsUser.configure(settings)
    ClassifiedsUser.reset_ids()
    yield settings
    ClassifiedsUser.run_settings = None


def _spawn(user_class, runner=None):
    """Create a user with a fake client and run its ``on_start``."""
    environment = Environment(user_classes=[user_class], host="http://classifieds.test:8080")
    environment.runner = runner
    user = user_class(environment)
    user.client = FakeClient()
    user.on_start()
    user.simulator.sleep = lambda _: None
    return user


def test_session_user_runs_full_authenticated_iteration(configured):
    # Arrange
    user = _spawn(SessionUser)

    # Act
    user.browse_session()

    # Assert
    assert user.client.paths[0] == "/login/submit/"
    assert user.client.paths[-1] == "/sign-out/"
    assert user.simulator.mode is SessionMode.AUTHENTICATED


def test_browse_user_issues_one_anonymous_request(configured):
    user = _spawn(BrowseUser)

    user.browse_once()

    assert len(user.client.calls) == 1
    assert user.client.paths[0] != "/login/submit/"
    assert user.simulator.credential is None


def test_user_ids_assign_credentials_in_spawn_order(configured):
    # Act
    users = [_spawn(SessionUser) for _ in range(3)]

    # Assert
    assert [u.user_id for u in users] == [1, 2, 3]
    assert [u.simulator.credential for u in users] == list(configured.credentials[1:4])


def test_worker_index_offsets_user_ids(configured):
    """Test that users on different workers get distinct ids and credentials."""
    # Act
    local = _spawn(SessionUser)
    ClassifiedsUser.reset_ids()
    remote = _spawn(SessionUser, runner=SimpleNamespace(worker_index=2))

    # Assert
    assert local.user_id == 1
    assert remote.user_id == 2 * WORKER_ID_STRIDE + 1
    assert remote.simulator.credential == credential_for_user(configured.credentials, remote.user_id)
    assert remote.simulator.credential != local.simulator.credential


def test_unacknowledged_worker_numbers_from_one(configured):
    user = _spawn(SessionUser, runner=SimpleNamespace(worker_index=-1))

    assert user.user_id == 1


def test_user_class_mode_overrides_configured_mode(configured):
    user = _spawn(BrowseUser)

    assert user.simulator.mode is SessionMode.STATELESS
    assert user.simulator.settings.host == configured.host


def test_configure_sets_default_host(configured):
    assert ClassifiedsUser.host == configured.base_url


# ---- locustfile --------------------------------------------------------

@pytest.mark.parametrize(
    ("tags", "mode", "expected"),
    [
        (set(), SessionMode.AUTHENTICATED, [SessionUser]),
        (set(), SessionMode.STATELESS, [BrowseUser]),
        ({"stateless"}, SessionMode.AUTHENTICATED, [BrowseUser]),
        ({"session", "stateless"}, SessionMode.AUTHENTICATED, [SessionUser, BrowseUser]),
        ({"unrelated"}, SessionMode.STATELESS, [BrowseUser]),
    ],
)
def test_select_user_classes(tags, mode, expected):
    assert locustfile.select_user_classes(tags, mode) == expected


def test_init_listener_selects_classes_and_host(monkeypatch, settings):
    # Arrange
    monkeypatch.setattr(locustfile.Settings, "from_config", classmethod(lambda cls, *_: settings))
    environment = SimpleNamespace(host=None, parsed_options=SimpleNamespace(tags=None), user_classes=[])

    # Act
    locustfile._configure_run(environment=environment)

    # Assert
    assert environment.user_classes == [SessionUser]
    assert environment.host == settings.base_url
    ClassifiedsUser.run_settings = None


def test_init_listener_exits_on_configuration_error(monkeypatch):
    # Arrange
    def _broken(cls, *_):
        raise ConfigurationError("Credential pool must not be empty")

    monkeypatch.setattr(locustfile.Settings, "from_config", classmethod(_broken))
    environment = SimpleNamespace(host=None, parsed_options=None, user_classes=[])

    # Act / Assert
    with pytest.raises(SystemExit) as exc_info:
        locustfile._configure_run(environment=environment)
    assert exc_info.value.code == locustfile.EXIT_CONFIG_ERROR


# ---- CLI ---------------------------------------------------------------

def test_cli_overrides_environment_settings():
    args = parse_args(
        ["--env", "testing", "--host", "staging.local", "--port", "9090", "-u", "25", "-t", "2m", "--mode", "stateless"]
    )

    settings = build_settings(args)

    assert settings.base_url == "http://staging.local:9090"
    assert settings.users == 25
    assert settings.run_time == 120
    assert settings.mode is SessionMode.STATELESS
    assert settings.seed == 1234


def test_cli_without_overrides_uses_config_profile():
    settings = build_settings(parse_args(["--env", "testing"]))

    assert settings == Settings.from_config(get_config("testing"))


def test_cli_rejects_invalid_values_before_starting(monkeypatch):
    started = []
    monkeypatch.setattr("classifieds_load.cli.run", lambda settings: started.append(settings))

    assert main(["--env", "testing", "--run-time", "soon"]) == 2
    assert main(["--env", "testing", "--users", "0"]) == 2
    assert started == []
