from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"
    TOPIC_NOT_FOUND = "TOPIC_NOT_FOUND"
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    PAGE_FETCH_FAILED = "PAGE_FETCH_FAILED"
    CACHE_IO_FAILED = "CACHE_IO_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class SpartanError(Exception):
    """Raised by tool handlers and collaborators for expected failure conditions.

    Caught by server.py and serialised into the MCP error response, so the
    agent receives a structured error with a suggestion instead of a traceback.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class FetchError(SpartanError):
    """Network failure or non-2xx response while fetching a documentation page.

    ``status_code`` is ``None`` when the request never produced a response.
    """

    def __init__(self, url: str, status_code: int | None, message: str) -> None:
        if status_code == 404:
            super().__init__(
                code=ErrorCode.PAGE_NOT_FOUND,
                message=message,
                suggestion="The requested documentation page does not exist at this URL.",
                recoverable=False,
            )
        else:
            super().__init__(
                code=ErrorCode.PAGE_FETCH_FAILED,
                message=message,
                suggestion="spartan.ng may be temporarily unavailable. Try again later.",
                recoverable=True,
            )
        self.url = url
        self.status_code = status_code


class CacheIOError(SpartanError):
    """A disk cache write (entry or metadata) failed."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(
            code=ErrorCode.CACHE_IO_FAILED,
            message=message,
            suggestion="Check that the cache directory is writable and has free space.",
            recoverable=True,
        )
        self.key = key
