"""
Shared test fixtures and configuration.

Every test runs against a MockExecutor: nothing touches the real
machine, the package managers or the network.
"""

from pathlib import Path

import pytest

from laptop_setup.adapters.mock import MockExecutor
from laptop_setup.core.context import RunContext
from laptop_setup.core.models.settings import Settings
from laptop_setup.core.models.tool import Profile
from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.platforms import MacOSPlatform

HOME = "/Users/tester"
BREW = "/opt/homebrew/bin/brew"


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def mock() -> MockExecutor:
    """A bare macOS host."""
    return MockExecutor(home=HOME, host_os="darwin")


@pytest.fixture
def brew_mock(mock: MockExecutor) -> MockExecutor:
    """A macOS host with a working Homebrew."""
    mock.add_command("brew", BREW)
    mock.set_response([BREW, "--version"], stdout="Homebrew 4.3.0\n")
    return mock


@pytest.fixture
def host(mock: MockExecutor) -> Host:
    return Host(executor=mock, platform=MacOSPlatform(mock))


@pytest.fixture
def settings() -> Settings:
    return Settings(agent_grace_seconds=0, temp_dir="/tmp/laptop-setup-test")


@pytest.fixture
def ctx(settings: Settings) -> RunContext:
    return RunContext(install=True, profile=Profile.ENGINEERING, settings=settings)
