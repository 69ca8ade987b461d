"""Structured logging setup using structlog.

Everything is written to stderr. stdout belongs to the check report so that a
cron job can mail or grep it without log noise mixed in.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import FilteringBoundLogger, Processor

# Third-party loggers that log every request at INFO
QUIET_LIBRARIES = ("httpx", "httpcore")


def build_processors(
    json_logs: bool = False, include_caller_info: bool = False
) -> list[Processor]:
    """Return the processor chain used for every log record."""
    processors: list[Processor] = [
        # Run-scoped values such as target_url
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _safe_add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    return processors


def setup_logging(
    log_level: str = "WARNING",
    json_logs: bool = False,
    include_caller_info: bool = False,
) -> None:
    """Configure structlog (and stdlib logging) for one CLI invocation."""
    level = getattr(logging, log_level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=build_processors(json_logs, include_caller_info),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # Resolve sys.stderr now; it is swapped out under test runners
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _safe_add_logger_name(logger, method_name: str, event_dict):
    """Add the logger name; WriteLogger has none, so keep the one we passed."""
    name = getattr(logger, "name", None)
    if name:
        event_dict["logger"] = name
    else:
        event_dict.setdefault("logger", "sitewatch")
    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


class LoggingContextManager:
    """Binds values to every record logged inside the ``with`` block.

    Only the keys bound here are reset on exit, so nesting is safe.
    """

    def __init__(self, **context: Any):
        self.context = context
        self._tokens: dict[str, Any] = {}

    def __enter__(self):
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.reset_contextvars(**self._tokens)


class StructuredLogger:
    """Module logger that tags each record with the module name."""

    def __init__(self, name: str, logger: Any = None):
        self.name = name
        self.logger = logger if logger is not None else get_logger(name)

    def _log(self, method: str, event: str, **kwargs: Any) -> None:
        kwargs.setdefault("logger", self.name)
        getattr(self.logger, method)(event, **kwargs)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._log("debug", event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._log("info", event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._log("warning", event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._log("error", event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._log("exception", event, **kwargs)

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        """Return a logger that adds ``kwargs`` to every record."""
        return StructuredLogger(self.name, self.logger.bind(**kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)
