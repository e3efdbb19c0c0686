import logging
import os
import sys
from typing import Dict, Optional

from app.config import settings

DEFAULT_FORMAT = (
    '%(asctime)s │ %(name)-32s │ %(levelname)-8s │ '
    '[%(filename)s:%(lineno)d] │ %(message)s'
)

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "uvicorn.access")


class ColoredFormatter(logging.Formatter):
    """Colors the level and logger name when writing to a terminal"""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[1;91m',
        'CRITICAL': '\033[1;95m',
    }
    NAME_COLOR = '\033[94m'
    RESET = '\033[0m'

    def __init__(self, format_string: str = DEFAULT_FORMAT, use_colors: bool = True):
        super().__init__(format_string)
        self.use_colors = use_colors and colors_supported()
        self._formatters: Dict[str, logging.Formatter] = {}
        if self.use_colors:
            named = format_string.replace('%(name)s', f'{self.NAME_COLOR}%(name)s{self.RESET}')
            for level, color in self.LEVEL_COLORS.items():
                self._formatters[level] = logging.Formatter(
                    named.replace('%(levelname)s', f'{color}%(levelname)s{self.RESET}')
                )

    def format(self, record: logging.LogRecord) -> str:
        formatter = self._formatters.get(record.levelname)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def colors_supported() -> bool:
    """NO_COLOR and TERM=dumb switch colors off, FORCE_COLOR switches them on"""
    if os.environ.get('NO_COLOR', '').lower() in ('1', 'true', 'yes'):
        return False
    if os.environ.get('FORCE_COLOR', '').lower() in ('1', 'true', 'yes'):
        return True
    if os.environ.get('TERM') == 'dumb':
        return False
    return sys.stdout.isatty()


def setup_logging(
    log_level: Optional[str] = None,
    format_string: Optional[str] = None,
    force_configure: bool = False,
    use_colors: bool = True
) -> None:
    """
    Configure the root logger once for the API process, scripts and tests.
    Existing handlers are kept unless force_configure is set.
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    if root_logger.handlers and not force_configure:
        return

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ColoredFormatter(format_string or DEFAULT_FORMAT, use_colors=use_colors))
    root_logger.addHandler(console_handler)
    root_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    root_logger.debug("Logging configured with level %s", level_name)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    # Inherit the root handler instead of carrying our own
    logger.handlers = []
    logger.propagate = True
    return logger
