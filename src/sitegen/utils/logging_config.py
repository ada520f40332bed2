"""
Centralized Logging Configuration
=================================

Unified logging setup: colorized console output, a rotating log file, and
quieter third-party loggers so generation progress stays readable.
"""

import logging
import os
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from colorama import Fore, Style, init

from sitegen.paths import LOGS_DIR

init(autoreset=True)

APP_LOGGER_NAME = "SiteGen"


class ColoredSmartFormatter(logging.Formatter):
    """Formatter with per-level colors and shortened logger names."""

    level_colors = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    service_colors = {
        'factory': Fore.BLUE,
        'orchestrator': Fore.MAGENTA,
        'extractor': Fore.CYAN,
        'template': Fore.YELLOW,
        'api_client': Fore.GREEN,
        'route': Fore.BLUE,
    }

    name_replacements = {
        f'{APP_LOGGER_NAME}.': '',
        'sitegen.services.generation.': 'gen.',
        'sitegen.services.': 'svc.',
        'sitegen.routes.': 'route.',
        'sitegen.utils.': 'util.',
    }

    def __init__(self, include_function: bool = False, use_colors: bool = True):
        super().__init__()
        self.include_function = include_function
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, '%H:%M:%S')
        level = record.levelname
        name = self._clean_logger_name(record.name)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            level_text = f"{self.level_colors.get(record.levelno, '')}{level:8}{Style.RESET_ALL}"
            name_text = f"{self._get_service_color(name)}{name:20}{Style.RESET_ALL}"
        else:
            level_text = f"{level:8}"
            name_text = f"{name:20}"

        if self.include_function and record.levelno >= logging.WARNING:
            location = f"[{record.funcName}:{record.lineno}]"
            if self.use_colors:
                location = f"{Fore.WHITE}{Style.DIM}{location}{Style.RESET_ALL}"
            return f"[{timestamp}] {level_text} {name_text} {location} {message}"
        return f"[{timestamp}] {level_text} {name_text} {message}"

    def _clean_logger_name(self, name: str) -> str:
        for old, new in self.name_replacements.items():
            if name.startswith(old):
                name = new + name[len(old):]
                break
        if len(name) > 20:
            name = name[:17] + "..."
        return name

    def _get_service_color(self, service_name: str) -> str:
        name_lower = service_name.lower()
        for service, color in self.service_colors.items():
            if service in name_lower:
                return color
        return Fore.WHITE


class LoggingConfig:
    """Centralized logging configuration for the application."""

    def __init__(self, app_name: str = APP_LOGGER_NAME, log_dir: Optional[Path] = None):
        self.app_name = app_name
        self.log_dir = log_dir or LOGS_DIR
        self.log_level = self._get_log_level()
        self.is_development = os.environ.get('FLASK_ENV', 'development') == 'development'
        self._configure_warnings()

    def setup_logging(self) -> logging.Logger:
        """Attach console and file handlers to the root logger.

        Only handlers previously installed by this class (marked with
        ``_sitegen``) are replaced, so pytest's caplog handler survives.
        """
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if getattr(handler, "_sitegen", False):
                root_logger.removeHandler(handler)
                handler.close()
        root_logger.setLevel(self.log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(ColoredSmartFormatter(include_function=self.is_development))
        console_handler._sitegen = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_dir / "sitegen.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8',
            )
        except OSError as e:
            root_logger.warning(f"File logging disabled: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(ColoredSmartFormatter(include_function=True, use_colors=False))
            file_handler._sitegen = True  # type: ignore[attr-defined]
            root_logger.addHandler(file_handler)

        self._configure_specific_loggers()

        app_logger = logging.getLogger(self.app_name)
        app_logger.info(f"Logging configured - Level: {logging.getLevelName(self.log_level)}")
        return app_logger

    def _get_log_level(self) -> int:
        level_str = os.environ.get('LOG_LEVEL', 'INFO').upper()
        return getattr(logging, level_str, logging.INFO)

    def _configure_warnings(self):
        logging.captureWarnings(True)
        warnings_logger = logging.getLogger('py.warnings')
        warnings_logger.setLevel(logging.ERROR)
        warnings.filterwarnings('ignore', category=DeprecationWarning, module='aiohttp')

    def _configure_specific_loggers(self):
        if not self.is_development:
            logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('aiohttp.access').setLevel(logging.WARNING)


_logging_config: Optional[LoggingConfig] = None


def get_logging_config() -> LoggingConfig:
    """Get the global logging configuration instance."""
    global _logging_config
    if _logging_config is None:
        _logging_config = LoggingConfig()
    return _logging_config


def setup_application_logging() -> logging.Logger:
    """Setup application logging - call this once at startup."""
    return get_logging_config().setup_logging()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the application namespace."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
