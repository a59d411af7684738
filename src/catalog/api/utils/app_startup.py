"""Loguru setup shared by the API and the CLI."""

import logging
import sys
from pathlib import Path

from loguru import logger

from src.catalog.runtime.config.config_data import ConfigData, LoggingConfig
from src.catalog.runtime.context import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# stdlib loggers and the level they are clamped to once routed into loguru
_THIRD_PARTY_LEVELS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.CRITICAL,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # access lines and server tracebacks are already logged by the request middleware
        if record.name == "uvicorn.access":
            return
        if record.name == "uvicorn.error" and record.levelno >= logging.ERROR:
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def _add_file_sink(cfg: LoggingConfig, verbose_errors: bool) -> None:
    path = Path(cfg.file)
    path.parent.mkdir(parents=True, exist_ok=True)
    as_json = cfg.format == "json"
    logger.add(
        str(path),
        level=cfg.level,
        # serialize=True writes one JSON document per record and ignores the format
        format="{message}" if as_json else CONSOLE_FORMAT,
        serialize=as_json,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
        compression="zip",
        enqueue=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )


def _route_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True
    for name, level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(level)


def configure_logging(config: ConfigData | None = None) -> None:
    """Install the console sink, the optional file sink and the stdlib bridge."""
    config = config or get_config()
    cfg = config.logging
    verbose_errors = config.app.environment != "production"

    logger.remove()
    logger.configure(
        extra={"request_id": "-"},
        patcher=lambda record: record["extra"].setdefault("request_id", "-"),
    )
    logger.add(
        sys.stderr,
        level=cfg.level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=verbose_errors,
        diagnose=verbose_errors,
    )
    if cfg.file:
        _add_file_sink(cfg, verbose_errors)

    _route_stdlib_logging()

    logger.bind(
        level=cfg.level, format=cfg.format, file=cfg.file, environment=config.app.environment
    ).debug("Logging configured")
