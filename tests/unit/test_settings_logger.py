"""Tests for settings validation and logging setup."""

import logging
import logging.handlers

import pytest

from scheduler.config.settings import Settings, _parse_bool, _parse_int_list
from scheduler.utils.logger import configure_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults_are_valid(self, monkeypatch):
        """Shipped defaults pass validation."""
        monkeypatch.setattr(Settings, 'CPM_MAX_ITERATIONS', 50)
        monkeypatch.setattr(Settings, 'DEFAULT_WORKING_DAYS', [1, 2, 3, 4, 5])
        monkeypatch.setattr(Settings, 'HEALTH_VARIANCE_THRESHOLD_DAYS', 3)
        assert Settings.validate_required_settings() == []

    def test_problems_reported(self, monkeypatch):
        """Each unusable value is reported."""
        monkeypatch.setattr(Settings, 'CPM_MAX_ITERATIONS', 0)
        monkeypatch.setattr(Settings, 'DEFAULT_WORKING_DAYS', [1, 9])
        monkeypatch.setattr(Settings, 'HEALTH_VARIANCE_THRESHOLD_DAYS', 0)
        problems = Settings.validate_required_settings()
        assert len(problems) == 3
        assert any('CPM_WORKING_DAYS' in p for p in problems)

    def test_empty_working_days(self, monkeypatch):
        """At least one weekday is required."""
        monkeypatch.setattr(Settings, 'CPM_MAX_ITERATIONS', 50)
        monkeypatch.setattr(Settings, 'DEFAULT_WORKING_DAYS', [])
        monkeypatch.setattr(Settings, 'HEALTH_VARIANCE_THRESHOLD_DAYS', 3)
        assert Settings.validate_required_settings() == ['CPM_WORKING_DAYS must name at least one weekday']

    @pytest.mark.parametrize("value,expected", [
        ('1,2,3', [1, 2, 3]),
        ('0, 6', [0, 6]),
        ('', []),
    ])
    def test_parse_int_list(self, value, expected):
        assert _parse_int_list(value) == expected

    @pytest.mark.parametrize("value,expected", [('true', True), ('1', True), ('Yes', True), ('false', False), ('', False)])
    def test_parse_bool(self, value, expected):
        assert _parse_bool(value) == expected


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture
    def logger_name(self, request):
        name = f'scheduler.test.{request.node.name}'
        yield name
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    def test_console_handler(self, logger_name, monkeypatch):
        """A console handler is attached once."""
        monkeypatch.setattr(Settings, 'LOG_TO_FILE', False)
        logger = configure_logging(logger_name, level='DEBUG')
        configure_logging(logger_name, level='DEBUG')
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_file_handler(self, logger_name, monkeypatch, tmp_path):
        """LOG_TO_FILE adds a rotating file handler under LOG_DIR."""
        monkeypatch.setattr(Settings, 'LOG_TO_FILE', True)
        monkeypatch.setattr(Settings, 'LOG_DIR', tmp_path / 'logs')
        logger = configure_logging(logger_name, console=False)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.handlers.RotatingFileHandler)
        logger.warning('written')
        logger.handlers[0].flush()
        assert 'written' in (tmp_path / 'logs' / f'{logger_name}.log').read_text()
