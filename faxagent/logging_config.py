import logging
import logging.handlers
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import Settings
from .core.audit import AUDIT_LOGGER_NAME

AUDIT_FORMAT = (
    "%(asctime)s - %(levelname)s - "
    "[%(audit_category_name)s/%(audit_category)d] - "
    "%(message)s"
)


def _rotating_file_handler(path: str, settings: Settings) -> logging.Handler:
    return logging.handlers.TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        interval=1,
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )


def setup_logging(settings: Settings) -> None:
    settings.log_directory.mkdir(parents=True, exist_ok=True)
    Path(settings.audit_log_file_path).parent.mkdir(parents=True, exist_ok=True)

    # Rich console handler til terminalen
    console = Console(width=120)
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setLevel(settings.log_level)

    # File handler with detailed format for debugging
    file_format = (
        "%(asctime)s - %(levelname)s - "
        "%(filename)s:%(lineno)d in %(funcName)s() - "
        "%(message)s"
    )
    file_handler = _rotating_file_handler(settings.log_file_path, settings)
    file_handler.setLevel(settings.log_level)
    file_handler.setFormatter(logging.Formatter(file_format))

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(rich_handler)
    root_logger.addHandler(file_handler)

    # Audit events: egen fil, altid fra INFO, og videre til root for konsollen
    audit_handler = _rotating_file_handler(settings.audit_log_file_path, settings)
    audit_handler.setLevel(logging.INFO)
    audit_handler.setFormatter(logging.Formatter(AUDIT_FORMAT))

    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    audit_logger.setLevel(logging.INFO)
    audit_logger.handlers.clear()
    audit_logger.addHandler(audit_handler)
    audit_logger.propagate = True

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(
        f"Logging initialized - File: {settings.log_file_path}, "
        f"Audit: {settings.audit_log_file_path}, "
        f"Level: {settings.log_level}, "
        f"Retention: {settings.log_retention_days} days"
    )
