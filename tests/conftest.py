"""Shared fixtures"""
import logging
import pytest

from promtextfile.config import Config


ENVIRONMENT_SETTINGS = [
    "TEXTFILE_DIRECTORY",
    "DRY_RUN",
    "VERBOSE",
    "MEASUREMENT_BACKEND",
    "GNU_TIME_COMMAND",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the caller's environment out of Config"""
    for name in ENVIRONMENT_SETTINGS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("USER", "alice")


@pytest.fixture
def config(tmp_path):
    return Config(textfile_directory=tmp_path, user="alice")


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams captured by a previous test"""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
