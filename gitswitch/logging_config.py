"""Logging for the identity menu and the onboarding wizard.

Records go to a rotating file under the config dir. The console stays quiet
unless logging.log_to_console is set, since the prompts own the terminal.
GIT_IDENTITY_LOG_LEVEL overrides logging.level for a single run.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Any

from gitswitch.settings import get_setting, resolve_path

LOG_LEVEL_ENV = "GIT_IDENTITY_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Event loop and terminal internals, only interesting from WARNING up
_QUIET_LOGGERS = ("asyncio", "prompt_toolkit")


def log_level(settings: dict[str, Any]) -> int:
    """Numeric level from the environment or settings; INFO if unrecognised."""
    name = os.environ.get(LOG_LEVEL_ENV) or str(get_setting(settings, "logging.level", "INFO"))
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(config_dir: Path, settings: dict[str, Any]) -> Path:
    """Replace the root logger's handlers. Returns the log file path."""
    level = log_level(settings)
    log_path = resolve_path(get_setting(settings, "logging.file", "logs/app.log"), config_dir)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=int(get_setting(settings, "logging.max_bytes", 10 * 1024 * 1024)),
            backupCount=int(get_setting(settings, "logging.backup_count", 3)),
            encoding="utf-8",
        )
    ]
    if get_setting(settings, "logging.log_to_console", False):
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)
    for h in handlers:
        h.setLevel(level)
        h.setFormatter(formatter)
        root.addHandler(h)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return log_path
