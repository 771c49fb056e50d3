"""Shared fixtures for the action_args test suite."""

import pytest

from action_args import registry as registry_module
from action_args.config_manager import EngineSettings, set_config_manager
from action_args.registry import SchemaRegistry


@pytest.fixture
def settings():
    """Default engine settings, independent of files and environment."""
    return EngineSettings()


@pytest.fixture
def schema_registry(settings):
    """A fresh, writable schema registry."""
    return SchemaRegistry(settings=settings)


@pytest.fixture(autouse=True)
def reset_globals():
    """Drop process-wide state between tests."""
    registry_module.reset_registry()
    set_config_manager(None)
    yield
    registry_module.reset_registry()
    set_config_manager(None)
