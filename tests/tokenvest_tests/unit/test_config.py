"""
Environment-driven configuration.
"""

import importlib
from pathlib import Path

import pytest

from tokenvest.core import config
from tokenvest.core.exceptions import ConfigurationError

ENV_VARS = (
    "TOKENVEST_ENVIRONMENT",
    "TOKENVEST_LOG_LEVEL",
    "TOKENVEST_LOG_FILE",
    "TOKENVEST_DB_PATH",
    "TOKENVEST_ENGINE_ADDRESS",
    "TOKENVEST_TOKEN_NAME",
    "TOKENVEST_TOKEN_SYMBOL",
    "TOKENVEST_TOKEN_DECIMALS",
)


@pytest.fixture
def env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield monkeypatch
    monkeypatch.undo()
    importlib.reload(config)


def test_development_defaults(env):
    importlib.reload(config)
    assert config.ENVIRONMENT is config.Environment.DEVELOPMENT
    assert config.ENGINE_ADDRESS == config.DEFAULT_ENGINE_ADDRESS
    assert config.LOG_LEVEL == "WARNING"
    assert config.LOG_FILE is None
    assert config.TOKEN_SYMBOL == "VEST"
    assert config.TOKEN_DECIMALS == 18
    assert config.DB_PATH.name == "state.db"


def test_overrides_are_read(env, tmp_path):
    env.setenv("TOKENVEST_ENGINE_ADDRESS", "0xABCDEF")
    env.setenv("TOKENVEST_DB_PATH", str(tmp_path / "v.db"))
    env.setenv("TOKENVEST_LOG_LEVEL", "debug")
    env.setenv("TOKENVEST_TOKEN_DECIMALS", "6")
    importlib.reload(config)
    assert config.ENGINE_ADDRESS == "0xabcdef"
    assert config.DB_PATH == Path(tmp_path / "v.db")
    assert config.LOG_LEVEL == "DEBUG"
    assert config.TOKEN_DECIMALS == 6


def test_production_requires_engine_address(env):
    env.setenv("TOKENVEST_ENVIRONMENT", "production")
    with pytest.raises(ConfigurationError, match="TOKENVEST_ENGINE_ADDRESS"):
        importlib.reload(config)


@pytest.mark.parametrize(
    "var,value",
    [
        ("TOKENVEST_ENVIRONMENT", "staging"),
        ("TOKENVEST_TOKEN_DECIMALS", "eighteen"),
        ("TOKENVEST_TOKEN_DECIMALS", "19"),
    ],
)
def test_malformed_values_rejected(env, var, value):
    env.setenv(var, value)
    with pytest.raises(ConfigurationError):
        importlib.reload(config)
