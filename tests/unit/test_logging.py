"""Tests for logging helpers."""
import logging

import pytest

import mwupload
from mwupload.core.logging import get_logger, truncate


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_get_logger_with_name(self):
        """Test getting logger with name."""
        logger = get_logger('mwupload.test_module')

        assert logger.name == 'mwupload.test_module'

    def test_propagates(self):
        """Test loggers propagate to the root logger."""
        assert get_logger('mwupload.test_module').propagate is True

    def test_returns_logger_instance(self):
        """Test returns logging.Logger instance."""
        assert isinstance(get_logger('mwupload.test'), logging.Logger)


class TestSetupLogging:
    """Test suite for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_levels(self):
        names = ['mwupload', 'mwupload.api', 'mwupload.upload.iframe']
        levels = {name: logging.getLogger(name).level for name in names}
        yield
        for name, level in levels.items():
            logging.getLogger(name).setLevel(level)

    def test_sets_level(self):
        """Test all package loggers get the level."""
        mwupload.setup_logging(logging.DEBUG)

        assert logging.getLogger('mwupload').level == logging.DEBUG
        assert logging.getLogger('mwupload.api').level == logging.DEBUG
        assert logging.getLogger('mwupload.upload.iframe').level == logging.DEBUG


class TestTruncate:
    """Test suite for truncate."""

    def test_short_text(self):
        assert truncate('abc') == 'abc'

    def test_long_text(self):
        result = truncate('x' * 500, limit=10)

        assert result == 'xxxxxxxxxx... (500 chars)'
