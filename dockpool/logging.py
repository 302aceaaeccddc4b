"""
Structured Logging for Dockpool

Placement decisions are logged as structured events. Every placement request
runs under a short correlation ID so the status probes, provisioning attempts
and the final outcome of one job can be grouped together.
"""

import json
import logging
import sys
import threading
import time
import uuid
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

import structlog

from .config import LoggingConfig

# Thread-local storage for correlation context
_correlation_context = threading.local()


class CorrelationContext:
    """Manages correlation IDs and the operation stack of the current thread."""

    @staticmethod
    def get_correlation_id() -> str:
        """Get the current correlation ID, creating one if needed."""
        if not hasattr(_correlation_context, "correlation_id"):
            _correlation_context.correlation_id = str(uuid.uuid4())[:8]
        return _correlation_context.correlation_id

    @staticmethod
    def set_correlation_id(correlation_id: str):
        _correlation_context.correlation_id = correlation_id

    @staticmethod
    def clear_correlation_id():
        if hasattr(_correlation_context, "correlation_id"):
            delattr(_correlation_context, "correlation_id")

    @staticmethod
    def get_trace_context() -> Dict[str, Any]:
        """Get full tracing context."""
        operation_stack = getattr(_correlation_context, "operation_stack", [])

        return {
            "correlation_id": CorrelationContext.get_correlation_id(),
            "operation_stack": list(operation_stack),
            "depth": len(operation_stack),
        }

    @staticmethod
    def push_operation(operation_name: str):
        if not hasattr(_correlation_context, "operation_stack"):
            _correlation_context.operation_stack = []
        _correlation_context.operation_stack.append(operation_name)

    @staticmethod
    def pop_operation():
        stack = getattr(_correlation_context, "operation_stack", None)
        if stack:
            return stack.pop()
        return None


def with_correlation_id(correlation_id: str = None):
    """Decorator to run function with a specific (or fresh) correlation ID."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            old_correlation_id = getattr(_correlation_context, "correlation_id", None)

            try:
                CorrelationContext.set_correlation_id(correlation_id or str(uuid.uuid4())[:8])
                return func(*args, **kwargs)
            finally:
                if old_correlation_id:
                    CorrelationContext.set_correlation_id(old_correlation_id)
                else:
                    CorrelationContext.clear_correlation_id()

        return wrapper

    return decorator


def trace_operation(operation_name: str):
    """Decorator to log start, completion and failure of an operation."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(f"dockpool.trace.{func.__module__}")
            CorrelationContext.push_operation(operation_name)
            trace_context = CorrelationContext.get_trace_context()

            start_time = time.time()

            try:
                logger.debug(f"Starting operation: {operation_name}", **trace_context)

                result = func(*args, **kwargs)

                logger.debug(
                    f"Completed operation: {operation_name}",
                    duration_seconds=time.time() - start_time,
                    success=True,
                    **trace_context,
                )

                return result

            except Exception as e:
                logger.error(
                    f"Failed operation: {operation_name}",
                    duration_seconds=time.time() - start_time,
                    success=False,
                    error=str(e),
                    **trace_context,
                )
                raise
            finally:
                CorrelationContext.pop_operation()

        return wrapper

    return decorator


class CorrelationFormatter(logging.Formatter):
    """Formatter that stamps records with the current correlation context."""

    def format(self, record: logging.LogRecord) -> str:
        trace_context = CorrelationContext.get_trace_context()
        record.correlation_id = trace_context["correlation_id"]
        record.operation_depth = trace_context["depth"]

        operation_stack = trace_context["operation_stack"]
        record.current_operation = operation_stack[-1] if operation_stack else None

        return super().format(record)


class JSONFormatter(CorrelationFormatter):
    """JSON formatter for structured logging with correlation IDs."""

    def format(self, record: logging.LogRecord) -> str:
        super().format(record)

        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "correlation": {
                "correlation_id": getattr(record, "correlation_id", "unknown"),
                "operation_depth": getattr(record, "operation_depth", 0),
                "current_operation": getattr(record, "current_operation", None),
            },
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(CorrelationFormatter):
    """Console formatter with colored levels and correlation IDs."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
        "GRAY": "\033[90m",
    }

    def format(self, record: logging.LogRecord) -> str:
        super().format(record)

        level_color = self.COLORS.get(record.levelname, "")
        reset_color = self.COLORS["RESET"]
        gray_color = self.COLORS["GRAY"]

        timestamp = datetime.utcnow().strftime("%H:%M:%S.%f")[:-3]
        correlation_id = getattr(record, "correlation_id", "unknown")
        current_op = getattr(record, "current_operation", None)
        operation_info = f"[{current_op}] " if current_op else ""

        message = record.getMessage()
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return (
            f"{gray_color}{timestamp}{reset_color} "
            f"{gray_color}[{correlation_id}]{reset_color} "
            f"{level_color}{record.levelname:8}{reset_color} "
            f"{record.name:28} "
            f"{gray_color}{operation_info}{reset_color}"
            f"{message}"
        )


def setup_logging(config: Optional[LoggingConfig] = None):
    """Setup structured logging for Dockpool."""
    config = config or LoggingConfig.from_env()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if config.log_format == "json"
                else structlog.dev.ConsoleRenderer(colors=False)
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    dockpool_logger = logging.getLogger("dockpool")
    dockpool_logger.setLevel(getattr(logging, config.log_level))

    for handler in dockpool_logger.handlers[:]:
        dockpool_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if config.log_format == "json" else ConsoleFormatter())
    dockpool_logger.addHandler(handler)

    dockpool_logger.debug(
        f"Logging initialized - log_level={config.log_level}, log_format={config.log_format}"
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# Initialize logging on module import
setup_logging()
