"""Shared fixtures for the xml_binder test suite."""

import pytest

from xml_binder.config.config_manager import reset_config_manager
from xml_binder.database.exist_client import reset_exist_client
from xml_binder.mapping.registry import SerializableRegistry


ENV_VARS = [
    'XML_BINDER_EXIST_URL',
    'XML_BINDER_EXIST_USER',
    'XML_BINDER_EXIST_PASSWORD',
    'XML_BINDER_ALLOW_EMPTY_PASSWORD',
    'XML_BINDER_REQUEST_TIMEOUT',
    'XML_BINDER_MAX_RESULTS',
    'XML_BINDER_PRETTY_PRINT',
    'XML_BINDER_ENCODING',
    'XML_BINDER_LOG_LEVEL',
]


@pytest.fixture
def registry():
    """Fresh registry so tests never see each other's registrations."""
    return SerializableRegistry()


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config_manager()
    yield monkeypatch
    reset_config_manager()
    reset_exist_client()
