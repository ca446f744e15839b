"""Shared fixtures for the zonecell test suite.

Tests build configuration through the same param < user < CLI resolution
the CLI uses, never from raw dicts.
"""

import pytest

from zonecell.schemas import ParamConfig, UserConfig, resolve_config
from zonecell.setup_directories import setup_output_directories


@pytest.fixture
def param_config():
    """Expert defaults (all ten sources, batch size 500, backbone res 7)."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """InternalConfig with no user or CLI overrides.

    >>> def test_defaults(internal_config):
    ...     assert internal_config.version_tag == "2026.01"
    """
    return resolve_config(param_config)


@pytest.fixture
def make_config(param_config):
    """Build an InternalConfig from UserConfig keyword overrides.

    >>> def test_small_batches(make_config):
    ...     assert make_config(batch_size=10).batcher.batch_size == 10
    """
    def _make(**user_overrides):
        user = UserConfig(**user_overrides) if user_overrides else None
        return resolve_config(param_config, user)

    return _make


@pytest.fixture
def temp_dir(tmp_path):
    """Per-test scratch directory."""
    return tmp_path


@pytest.fixture
def output_dirs(temp_dir):
    """Created output tree: keys base, inputs, backbone, cells, logs."""
    return setup_output_directories(temp_dir)
