# tests/unit/test_config_settings.py
import pytest

from blamelens.config import Settings, load_settings
from blamelens.domain.errors import ConfigurationError


def test_defaults():
    assert load_settings({}) == Settings()


def test_environment_values():
    s = load_settings(
        {"BLAMELENS_GIT": "/opt/git", "BLAMELENS_BLAME_TIMEOUT": "2.5", "BLAMELENS_HISTORY": "yes"}
    )
    assert s.git_executable == "/opt/git"
    assert s.blame_timeout == 2.5
    assert s.include_history is True


@pytest.mark.parametrize(
    "env",
    [
        {"BLAMELENS_GIT": "  "},
        {"BLAMELENS_BLAME_TIMEOUT": "soon"},
        {"BLAMELENS_BLAME_TIMEOUT": "0"},
        {"BLAMELENS_BLAME_TIMEOUT": "nan"},
        {"BLAMELENS_BLAME_TIMEOUT": "inf"},
        {"BLAMELENS_BLAME_TIMEOUT": "-infinity"},
        {"BLAMELENS_HISTORY": "maybe"},
    ],
)
def test_invalid_environment(env):
    with pytest.raises(ConfigurationError):
        load_settings(env)


def test_override_ignores_none():
    s = Settings(include_history=True).override(include_history=None, blame_timeout=5.0)
    assert s.include_history is True
    assert s.blame_timeout == 5.0
