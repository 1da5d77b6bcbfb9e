"""
Error types for the Mentor Gateway.

Every failure a route can produce is a ``GatewayError`` carrying the HTTP
status and the message that ends up in the JSON error envelope.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

logger = logging.getLogger(__name__)

LLM_NOT_CONFIGURED_MESSAGE = "OPENAI_API_KEY is not configured on the API gateway"
DEFAULT_UPSTREAM_STATUS = 502


class GatewayError(Exception):
    """Base class for errors rendered as a JSON envelope."""

    status_code = 500
    # Whether the envelope carries ``ok: false`` next to the error string
    include_ok = False

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def envelope(self) -> dict[str, Any]:
        if self.include_ok:
            return {"ok": False, "error": self.message}
        return {"error": self.message}


class LLMNotConfiguredError(GatewayError):
    """The LLM credential was never supplied to the gateway."""

    status_code = 503
    include_ok = True

    def __init__(self, message: str = LLM_NOT_CONFIGURED_MESSAGE) -> None:
        super().__init__(message)


class MissingInputError(GatewayError):
    """A required request field is missing or empty."""

    status_code = 400


class UpstreamError(GatewayError):
    """The LLM or entries service call failed."""

    status_code = DEFAULT_UPSTREAM_STATUS

    @classmethod
    def from_exception(cls, exc: BaseException, fallback: str) -> "UpstreamError":
        message = str(exc).strip() or fallback
        return cls(message, status_code=upstream_status(exc))


class EntriesServiceError(GatewayError):
    """The entries service rejected a call or could not be reached."""

    status_code = DEFAULT_UPSTREAM_STATUS


class EntriesFacadeError(GatewayError):
    """Entries service failure as reported by the create route."""

    status_code = 400
    include_ok = True


def _valid_status(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if 400 <= value <= 599:
        return value
    return None


def upstream_status(exc: BaseException) -> int:
    """
    Resolve the HTTP status to report for an upstream failure.

    The exception's own ``status`` wins over ``status_code``; an httpx status
    error contributes its response's status. Anything else maps to 502.
    """
    for attr in ("status", "status_code"):
        status = _valid_status(getattr(exc, attr, None))
        if status is not None:
            return status

    if isinstance(exc, httpx.HTTPStatusError):
        status = _valid_status(exc.response.status_code)
        if status is not None:
            return status

    return DEFAULT_UPSTREAM_STATUS


@contextmanager
def translate_upstream_errors(operation: str, fallback: str) -> Iterator[None]:
    """Turn any non-gateway exception raised inside the block into an UpstreamError."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as exc:
        error = UpstreamError.from_exception(exc, fallback)
        logger.warning(
            "%s failed with status %s: %s", operation, error.status_code, type(exc).__name__
        )
        raise error from exc
