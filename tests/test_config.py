"""Tests for the config layer and logger setup."""

import importlib
import logging

from stockrec import config
from stockrec.analysis import fundamental
from stockrec.utils.logger import setup_logger


class TestLogLevel:

    def test_env_var_sets_log_level(self, monkeypatch):
        with monkeypatch.context() as m:
            m.setenv("STOCKREC_LOG_LEVEL", "DEBUG")
            importlib.reload(config)
            assert config.LOG_LEVEL == "DEBUG"
        importlib.reload(config)

    def test_module_loggers_follow_configured_level(self, monkeypatch):
        with monkeypatch.context() as m:
            m.setattr(config, "LOG_LEVEL", "DEBUG")
            logger = setup_logger("fundamental")
            assert logger is fundamental.logger
            assert fundamental.logger.getEffectiveLevel() == logging.DEBUG
            assert fundamental.logger.isEnabledFor(logging.DEBUG)
        setup_logger("fundamental")
        assert fundamental.logger.level == logging.getLevelName(config.LOG_LEVEL.upper())

    def test_explicit_level_wins(self):
        logger = setup_logger("stockrec.test", "WARNING")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        setup_logger("stockrec.test", "ERROR")
        assert len(logger.handlers) == 1


class TestSettings:

    def test_settings_sections(self):
        assert config.SETTINGS["engine"]["research_mode"] == "renormalize"
        assert config.SETTINGS["storage"]["dedup_window_days"] == 7
        assert config.Paths.SIGNAL_DB.is_absolute()
