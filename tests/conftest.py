"""Shared fixtures for the extension tests."""
import pytest

from python_sentry_container_extension import SentryExtension, reset_configuration
from python_sentry_container_extension.capabilities import HostCapabilities


@pytest.fixture
def capabilities() -> HostCapabilities:
    return HostCapabilities()


@pytest.fixture
def extension(capabilities: HostCapabilities) -> SentryExtension:
    return SentryExtension(capabilities=capabilities)


@pytest.fixture
def load(extension: SentryExtension):
    """Load a single configuration mapping into a fresh container."""

    def _load(config=None):
        return extension.load([config or {}])

    return _load


@pytest.fixture(autouse=True)
def _no_sentry_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SENTRY_DSN", raising=False)


@pytest.fixture
def reset_logging():
    yield
    reset_configuration()
