"""Structured logging configuration."""

import logging
import logging.config
import sys
import uuid

import structlog

REQUEST_ID_HEADER = b"x-request-id"

# Library loggers routed through the same handler, with their floor level
_QUIET_LOGGERS = {
    "botocore": "WARNING",
    "aiobotocore": "WARNING",
    "uvicorn.error": "INFO",
}


def _renderer(json_logs: bool):
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    enable_access_logs: bool = True,
) -> None:
    """Configure structlog and route stdlib loggers through one stdout handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render one JSON object per line instead of console output
        enable_access_logs: Keep uvicorn's per-request access lines
    """
    level = level.upper()
    renderer = _renderer(json_logs)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if json_logs:
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level, logging.INFO)
        ),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    library_levels = dict(_QUIET_LOGGERS)
    library_levels["uvicorn.access"] = "INFO" if enable_access_logs else "WARNING"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": processors,
                    "processor": renderer,
                },
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": sys.stdout,
                },
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": {
                name: {"handlers": ["stdout"], "level": floor, "propagate": False}
                for name, floor in library_levels.items()
            },
        }
    )

    structlog.get_logger(__name__).info(
        "Logging configured", level=level, json_logs=json_logs
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


class RequestIDMiddleware:
    """Tag every log line of a request with its id and echo it in the response.

    A caller-supplied ``X-Request-ID`` is reused so ids can be traced across
    services; otherwise a fresh UUID is generated.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = dict(scope.get("headers", [])).get(REQUEST_ID_HEADER)
        request_id = incoming.decode("latin-1") if incoming else str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=scope.get("method"),
            path=scope.get("path"),
        )

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_request_id)
