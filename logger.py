"""
Logging setup for PageKeeper.

All modules log through get_logger(__name__). The first call configures the
root logger once: a daily file under config.LOG_DIR plus stdout.
"""
import logging
import sys
from pathlib import Path
from datetime import datetime

import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Chatty libraries that should only surface problems
QUIET_LIBRARIES = ('urllib3', 'requests', 'watchdog')


class PageKeeperLogger:
    """Owns the process-wide handler configuration."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance.log_file = instance._configure()
            cls._instance = instance
        return cls._instance

    @staticmethod
    def _configure() -> Path:
        log_dir = Path(config.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"pagekeeper_{datetime.now():%Y%m%d}.log"

        logging.basicConfig(
            level=resolve_level(config.LOG_LEVEL),
            format=LOG_FORMAT,
            handlers=[
                logging.FileHandler(log_file, encoding='utf-8'),
                logging.StreamHandler(sys.stdout)
            ]
        )
        for name in QUIET_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)
        return log_file

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def set_level(self, level: str):
        """Change the level of the root logger (and so every module logger)."""
        logging.getLogger().setLevel(resolve_level(level))


def resolve_level(level: str) -> int:
    """Map a level name to its logging constant; unknown names mean INFO."""
    return LEVELS.get((level or '').upper(), logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get a logger."""
    return PageKeeperLogger().get_logger(name)
