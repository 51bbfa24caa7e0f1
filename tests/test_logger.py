"""
Tests for logger module.
"""
import logging

from logger import PageKeeperLogger, get_logger, resolve_level


class TestLogger:
    """Test logging setup."""

    def test_singleton(self):
        assert PageKeeperLogger() is PageKeeperLogger()

    def test_log_file_in_configured_dir(self):
        log_file = PageKeeperLogger().log_file
        assert log_file.name.startswith("pagekeeper_")
        assert log_file.parent.exists()

    def test_named_logger(self):
        assert get_logger("database") is logging.getLogger("database")

    def test_resolve_level(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("nonsense") == logging.INFO
        assert resolve_level(None) == logging.INFO

    def test_set_level(self):
        root = logging.getLogger()
        original = root.level
        try:
            PageKeeperLogger().set_level("WARNING")
            assert root.level == logging.WARNING
        finally:
            root.setLevel(original)
