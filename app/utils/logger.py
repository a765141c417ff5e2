# app/utils/logger.py

"""
Structured logging for the actas service.

structlog renders through the stdlib `logging` module so that uvicorn,
SQLAlchemy and boto3 records share the same handlers and format. The
request id set by `LoggingMiddleware` is carried in structlog's context
variables and attached to every record emitted while serving the request.
"""

import logging
import sys
import time
import uuid
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_APP_NAME = "Actas Management Service"

# Static fields stamped on every record
_service_context: Dict[str, str] = {"app": DEFAULT_APP_NAME, "environment": "development"}


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add application name and environment to the record."""
    for key, value in _service_context.items():
        event_dict.setdefault(key, value)
    return event_dict


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, level: int, renderer: Any) -> logging.Handler:
    processors = _shared_processors()
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=processors + [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=processors,
    ))
    return handler


def setup_logging(
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: str = DEFAULT_APP_NAME,
    environment: str = "development",
) -> None:
    """
    Configure structlog and the root logger

    Args:
        log_level: Logging level name
        use_json: JSON console output (True) or human readable lines (False)
        log_file: Optional path of a file that always receives JSON records
        app_name: Application name stamped on every record
        environment: Environment name stamped on every record
    """
    _service_context.update({"app": app_name, "environment": environment})
    level = getattr(logging, log_level.upper(), logging.INFO)

    console_renderer = (
        structlog.processors.JSONRenderer() if use_json
        else structlog.dev.ConsoleRenderer(colors=False, exception_formatter=structlog.dev.plain_traceback)
    )
    handlers = [_handler(logging.StreamHandler(sys.stdout), level, console_renderer)]
    if log_file:
        handlers.append(_handler(logging.FileHandler(log_file), level, structlog.processors.JSONRenderer()))

    logging.root.handlers = handlers
    logging.root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to `name`."""
    return structlog.get_logger(name)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its duration and tags all records emitted while
    serving it with a request id, echoed back in `X-Request-ID`.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger = get_logger("api.access")
        started = time.perf_counter()
        logger.info("request_started", method=request.method, path=request.url.path,
                    client_host=request.client.host if request.client else None)
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "request_id": request_id},
                headers={REQUEST_ID_HEADER: request_id},
            )
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            request_id=request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_app_logging(
    app: FastAPI,
    log_level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[str] = None,
    app_name: Optional[str] = None,
    environment: str = "development",
) -> None:
    """
    Configure logging and install the request logging middleware on `app`.
    """
    setup_logging(
        log_level=log_level,
        use_json=use_json,
        log_file=log_file,
        app_name=app_name or DEFAULT_APP_NAME,
        environment=environment,
    )
    app.add_middleware(LoggingMiddleware)
