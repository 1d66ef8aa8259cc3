"""structlog setup for llm-helm.

Library modules only call get_logger. The embedding application, or the
CLI, calls configure_logging once with its HelmSettings. Every event logged
inside one ChatBuilder.send() carries the same correlation_id, bound through
structlog's contextvars so merge_contextvars picks it up.
"""

import contextlib
import logging
import sys
import uuid
from collections.abc import Iterator

import structlog

from llm_helm.settings import HelmSettings

CORRELATION_ID_KEY = "correlation_id"
HANDLER_NAME = "llm_helm"

# Vendor SDKs log every HTTP request at INFO
VENDOR_LOGGERS = ("httpx", "httpcore", "openai", "LiteLLM")


def current_correlation_id() -> str | None:
    """The correlation ID bound to the current flow, if any."""
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


@contextlib.contextmanager
def correlation_scope() -> Iterator[str]:
    """Bind a correlation ID for one orchestration flow.

    An ID already bound by the caller (an application request ID, or an
    outer send()) is kept and left bound on exit.
    """
    existing = current_correlation_id()
    if existing:
        yield existing
        return

    correlation_id = str(uuid.uuid4())
    with structlog.contextvars.bound_contextvars(**{CORRELATION_ID_KEY: correlation_id}):
        yield correlation_id


def _renderer(settings: HelmSettings, console: bool) -> structlog.types.Processor:
    if settings.log_json and not console:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(settings: HelmSettings, *, console: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Calling it again replaces the handler it installed earlier; handlers
    owned by the host application are left alone.

    Args:
        settings: Resolved settings; log_level and log_json are used
        console: Force human-readable output regardless of log_json
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings, console),
            ],
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Request-level SDK chatter only shows when debugging
    vendor_level = logging.DEBUG if settings.log_level == "DEBUG" else logging.WARNING
    for name in VENDOR_LOGGERS:
        logging.getLogger(name).setLevel(vendor_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
