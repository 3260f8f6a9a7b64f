"""Structured Logging for fieldcheck

structlog everywhere, rendered through the stdlib logging tree so that a
host application's handlers see fieldcheck events too.

- Console renderer in development, JSON in production
- contextvars-bound fields (operation, entity, ...) merged into every event
- Payload hygiene: validated data routinely holds passwords and tokens,
  and offending values can be arbitrarily large. Sensitive keys are
  redacted and long values truncated before rendering.

Configure once at startup:
    configure_logging(level="DEBUG", json_logs=False)
or from FIELDCHECK_LOG_LEVEL / FIELDCHECK_LOG_JSON:
    configure_from_settings()
"""
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor

SENSITIVE_KEYS = frozenset({"password", "confirmpassword", "token", "secret", "authorization", "cookie"})
MAX_VALUE_LENGTH = 200
MAX_REDACT_DEPTH = 5


# ============================================================================
# Processors
# ============================================================================

def _scrub(obj: Any, depth: int = 0) -> Any:
    if depth > MAX_REDACT_DEPTH: return obj
    if isinstance(obj, dict):
        return {k: "[REDACTED]" if str(k).lower() in SENSITIVE_KEYS else _scrub(v, depth + 1) for k, v in obj.items()}
    if isinstance(obj, list): return [_scrub(item, depth + 1) for item in obj]
    if isinstance(obj, str) and len(obj) > MAX_VALUE_LENGTH:
        return f"{obj[:MAX_VALUE_LENGTH]}... ({len(obj)} chars)"
    return obj


def _censor_sensitive_keys(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact sensitive keys at any depth and truncate oversized strings; the event name is kept as is."""
    censored = _scrub(dict(event_dict))
    if "event" in event_dict: censored["event"] = event_dict["event"]
    return censored


def _add_service_info(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", "fieldcheck")
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors applied to structlog and foreign (stdlib) records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_service_info,
        _censor_sensitive_keys,
    ]


# ============================================================================
# Configuration
# ============================================================================

def _renderer(json_logs: bool) -> Processor:
    if json_logs: return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Route structlog through a single stdout handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names fall back to INFO)
        json_logs: JSON lines for production instead of colored console output
    """
    shared = get_shared_processors()

    structlog.configure(
        processors=[*shared, structlog.processors.format_exc_info,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_logs)],
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def configure_from_settings() -> None:
    from fieldcheck.config import get_settings

    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)


# ============================================================================
# Loggers & Context
# ============================================================================

def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def validation_scope(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every event logged inside the block (contextvars, so async-safe)."""
    with structlog.contextvars.bound_contextvars(**fields):
        yield


class LoggerRegistry:
    """One logger per engine domain, named ``fieldcheck.<domain>``."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, domain: str) -> structlog.stdlib.BoundLogger:
        if domain not in cls._loggers:
            cls._loggers[domain] = get_logger(f"fieldcheck.{domain}")
        return cls._loggers[domain]


def validation_logger() -> structlog.stdlib.BoundLogger:
    """Rule evaluation, schema traversal, conditions, entity validation."""
    return LoggerRegistry.get("validation")


def compiler_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("compiler")


def registry_logger() -> structlog.stdlib.BoundLogger:
    return LoggerRegistry.get("registry")


def http_logger() -> structlog.stdlib.BoundLogger:
    """HTTP request validation, the FastAPI dependency and error responses."""
    return LoggerRegistry.get("http")
