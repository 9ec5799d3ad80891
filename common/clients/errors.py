from __future__ import annotations

from typing import Optional


class SourceError(Exception):
    """Base class for failures talking to an upstream order source."""


class AuthError(SourceError):
    pass


class APIError(SourceError):
    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __str__(self) -> str:
        if self.status_code:
            return f"API error {self.status_code}: {self.message}"
        return f"API error: {self.message}"


class DecodeError(SourceError):
    pass
