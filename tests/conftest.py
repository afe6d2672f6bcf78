"""
Shared fixtures: the process-wide registry is configured with regex mock
sanitizers before each test and reset afterwards.
"""
import re

import pytest

from sanitags.core.config import get_settings
from sanitags.schemas.policy import SanitizeConfig
from sanitags.services.registry import get_policy_registry, setup
from sanitags.services.sanitizers.field_plan import clear_plan_cache

_ALL_TAGS_REGEX = re.compile(r"<[^>]*>")
_SCRIPT_REGEX = re.compile(r"<script[^>]*>.*</script>")


def mock_strip_all(value: str) -> str:
    """Remove every markup tag."""
    return _ALL_TAGS_REGEX.sub("", value)


def mock_safe_ugc(value: str) -> str:
    """Remove script blocks, keep other markup."""
    return _SCRIPT_REGEX.sub("", value)


@pytest.fixture
def mock_config():
    return SanitizeConfig(strip_all=mock_strip_all, safe_ugc=mock_safe_ugc)


@pytest.fixture(autouse=True)
def configured_registry(mock_config):
    get_settings.cache_clear()
    clear_plan_cache()
    registry = get_policy_registry()
    setup(mock_config)
    yield registry
    registry.reset()
    clear_plan_cache()
    get_settings.cache_clear()


@pytest.fixture
def unconfigured_registry(configured_registry):
    configured_registry.reset()
    return configured_registry
