"""
Unit test fixtures: process-wide singletons are reset around every test.
"""

import pytest
import yaml

from testsuites.ui_testing.framework.config_loader import ConfigLoader
from testsuites.ui_testing.framework.user_pool import TestUserPool


@pytest.fixture(autouse=True)
def _reset_singletons():
    yield
    ConfigLoader.reset()
    TestUserPool.reset()


@pytest.fixture
def write_yaml(tmp_path):
    """Write a YAML document into tmp_path and return its path."""
    def _write(name, data):
        path = tmp_path / name
        path.write_text(yaml.dump(data), encoding="utf-8")
        return path

    return _write
