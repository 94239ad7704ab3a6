from pathlib import Path

import pytest

from entwire.config import EntwireSettings
from entwire.entity import EntityRegistry

TESTS_DIR = Path(__file__).parent


@pytest.fixture
def settings() -> EntwireSettings:
    return EntwireSettings(project_paths=[TESTS_DIR])


@pytest.fixture
def permissive_settings() -> EntwireSettings:
    return EntwireSettings(project_paths=[TESTS_DIR], strict_scan=False)


@pytest.fixture
def registry() -> EntityRegistry:
    return EntityRegistry()
