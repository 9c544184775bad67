from __future__ import annotations
import logging, sys
import structlog
import structlog.stdlib

# Third-party loggers that log every request at INFO.
_CHATTY = ("httpx", "httpcore", "urllib3", "sqlalchemy.engine")


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    return logging.getLevelNamesMapping().get(value.strip().upper(), logging.INFO)


def configure_logging(level: int | str = logging.INFO, service: str | None = None):
    """JSON lines on stdout for structlog and stdlib loggers alike."""
    lvl = _level(level)
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.EventRenamer("message"),
    ]
    if service:
        processors.insert(0, lambda _logger, _name, event: {"service": service, **event})
    structlog.configure(
        processors=[*processors, structlog.processors.JSONRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        cache_logger_on_first_use=True,
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer()))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(lvl)
    for name in _CHATTY:
        logging.getLogger(name).setLevel(max(lvl, logging.WARNING))
