# tests/unit/test_logging_config.py
import logging

import pytest

from blamelens import logging_config


@pytest.fixture
def captured(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    monkeypatch.delenv("BLAMELENS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("BLAMELENS_LOG_FORMAT", raising=False)
    return calls


def test_defaults(captured):
    logging_config.setup_logging()
    assert captured == {"level": logging.INFO, "format": logging_config.DEFAULT_FORMAT}


def test_level_and_format_from_environment(captured, monkeypatch):
    monkeypatch.setenv("BLAMELENS_LOG_LEVEL", " debug ")
    monkeypatch.setenv("BLAMELENS_LOG_FORMAT", "%(levelname)s %(message)s")
    logging_config.setup_logging()
    assert captured == {"level": logging.DEBUG, "format": "%(levelname)s %(message)s"}


@pytest.mark.parametrize("name", ["chatty", "getLogger", "BASIC_FORMAT"])
def test_unknown_level_falls_back_to_info(captured, monkeypatch, name):
    monkeypatch.setenv("BLAMELENS_LOG_LEVEL", name)
    logging_config.setup_logging()
    assert captured["level"] == logging.INFO
