"""Shared error types for the language model clients."""
import time
from dataclasses import dataclass
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


def client_error(
    code: str,
    message: str,
    model: str,
    start_time: float,
    exc_info: bool = False,
    **details: Any
) -> LLMClientError:
    """
    Build and log a structured client error.

    Args:
        code: Machine-readable error code (e.g. "API_ERROR")
        message: Human-readable message surfaced to callers
        model: Model the request was addressed to
        start_time: time.time() taken when the request started
        exc_info: Attach the active traceback to the log record
        **details: Extra context for the error details

    Returns:
        LLMClientError ready to raise
    """
    latency_ms = int((time.time() - start_time) * 1000)
    error = LLMError(
        code=code,
        message=message,
        details={"model": model, "latency_ms": latency_ms, **details}
    )
    logger.error(
        f"{code}: model={model}, latency={latency_ms}ms, message={message}",
        exc_info=exc_info,
        extra={"error_code": error.code, "error_details": error.details}
    )
    return LLMClientError(error)


def invalid_response(model: str, start_time: float, reason: str, **details: Any) -> LLMClientError:
    """Error for an upstream payload whose shape is not what was expected."""
    return client_error(
        "INVALID_RESPONSE",
        "Received an invalid response from the language model.",
        model,
        start_time,
        reason=reason,
        **details
    )
