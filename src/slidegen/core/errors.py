from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorKind(str, Enum):
    NO_CONTENT = "NoContent"
    INVALID_JSON = "InvalidJSON"
    RATE_LIMITED = "RateLimited"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    VALIDATION_FAILURE = "ValidationFailure"
    NETWORK_FAILURE = "NetworkFailure"
    INTERNAL_ERROR = "InternalError"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NO_CONTENT: 400,
    ErrorKind.INVALID_JSON: 500,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILURE: 400,
    ErrorKind.NETWORK_FAILURE: 502,
    ErrorKind.INTERNAL_ERROR: 500,
}

RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."
INTERNAL_MESSAGE = "Internal Server Error"
INVALID_JSON_MESSAGE = "Invalid JSON format received from AI"

# User-facing text for kinds whose detail is diagnostic only.
_PUBLIC_MESSAGES = {
    ErrorKind.RATE_LIMITED: RATE_LIMIT_MESSAGE,
    ErrorKind.INTERNAL_ERROR: INTERNAL_MESSAGE,
    ErrorKind.INVALID_JSON: INVALID_JSON_MESSAGE,
}

# Substrings upstream providers use when signalling quota exhaustion.
_RATE_LIMIT_MARKERS = ("429", "rate limit", "resource exhausted", "resource_exhausted")


@dataclass
class PipelineError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    detail: str = ""
    status: Optional[int] = None
    raw: Optional[str] = None

    def __post_init__(self) -> None:
        if self.status is None:
            self.status = STATUS_BY_KIND[self.kind]

    def __str__(self) -> str:
        return f"{self.kind.value} ({self.status}): {self.detail}"


def is_rate_limit(exc: BaseException) -> bool:
    if isinstance(exc, PipelineError):
        return exc.kind is ErrorKind.RATE_LIMITED
    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return True
    msg = str(exc).lower()
    return any(m in msg for m in _RATE_LIMIT_MARKERS)


def classify_exception(exc: BaseException) -> PipelineError:
    """Map any exception onto the pipeline taxonomy."""
    if isinstance(exc, PipelineError):
        return exc
    if is_rate_limit(exc):
        return PipelineError(ErrorKind.RATE_LIMITED, RATE_LIMIT_MESSAGE)
    return PipelineError(ErrorKind.INTERNAL_ERROR, str(exc) or exc.__class__.__name__)


@dataclass
class OpResult:
    """Tagged result returned by every public operation."""
    status: int
    data: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 200

    @classmethod
    def success(cls, data: Any) -> "OpResult":
        return cls(status=200, data=data)

    @classmethod
    def failure(cls, err: PipelineError) -> "OpResult":
        message = _PUBLIC_MESSAGES.get(err.kind) or err.detail
        meta: Dict[str, Any] = {"detail": err.detail}
        if err.raw is not None:
            meta["raw"] = err.raw
        return cls(status=err.status or 500, error=message, kind=err.kind, meta=meta)
