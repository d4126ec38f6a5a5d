"""
structlog setup shared by the HTTP service and the CLI.

Every record, whether emitted through structlog or a plain stdlib logger,
passes the same processor chain, including the secret scrubber: the
deployment flow handles a raw private key and it must never reach a log sink.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog

from .config import settings


REDACTED = "[redacted]"
SECRET_KEYS = frozenset({"private_key", "privateKey", "PRIVATE_KEY"})


def _scrub(text: str) -> str:
    key = settings.private_key
    if key:
        text = text.replace(key, REDACTED)
        bare = key[2:] if key.startswith("0x") else key
        if bare:
            text = text.replace(bare, REDACTED)
    return text


def redact_secrets(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Mask secret-named fields and the configured private key anywhere in string values."""
    for name in list(event_dict):
        value = event_dict[name]
        if name in SECRET_KEYS:
            event_dict[name] = REDACTED
        elif isinstance(value, str):
            event_dict[name] = _scrub(value)
    return event_dict


def setup_logging(log_level: Optional[str] = None, *, json_logs: Optional[bool] = None) -> None:
    """Route stdlib and structlog output through one structlog formatter on stderr.

    Args:
        log_level: Override log level (default: settings.log_level)
        json_logs: Force JSON (True) or console (False) rendering; by default
            JSON unless the level is DEBUG.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_logs is None:
        json_logs = level != logging.DEBUG

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Plain logging.getLogger(__name__) records get the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # stdout belongs to CLI output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request URL at INFO, which is too chatty for RPC polling
    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
