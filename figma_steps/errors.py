"""Error types and message classification for the steps pipeline.

Collaborator failures are classified by substring match against their message
text. This ties the user-facing wording to the exact text of the Figma API
client, so keep the patterns here and nowhere else.
"""

from __future__ import annotations

import enum
from typing import Optional


class PipelineError(Exception):
    """Base class for pipeline errors."""


class ValidationError(PipelineError):
    """Required input is missing or malformed; raised before any collaborator call."""

    def __init__(self, message: str, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step


class CollaboratorError(PipelineError):
    """An external collaborator call failed."""

    def __init__(self, message: str, kind: "ErrorKind") -> None:
        super().__init__(message)
        self.kind = kind


class StageBusyError(PipelineError):
    """A stage was invoked while a previous invocation is still loading."""

    def __init__(self, step: str) -> None:
        super().__init__(f"{step} is already running.")
        self.step = step


class MarkupPatternError(PipelineError):
    """Generated source has no ``return ( ... );`` expression to splice into."""


class ErrorKind(str, enum.Enum):
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


# Checked in order; first match wins.
_CONNECTION_PATTERNS: list[tuple[tuple[str, ...], ErrorKind]] = [
    (("Access denied", "403"), ErrorKind.ACCESS_DENIED),
    (("404",), ErrorKind.NOT_FOUND),
    (("401",), ErrorKind.INVALID_CREDENTIALS),
    (("429",), ErrorKind.RATE_LIMITED),
]

CONNECTION_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.ACCESS_DENIED: (
        "Access denied. This Figma file requires authentication. Please provide a valid "
        "Figma Personal Access Token. You can generate one from your Figma account settings "
        'under "Personal access tokens".'
    ),
    ErrorKind.NOT_FOUND: (
        "Figma file not found. Please check if the file exists and the URL is correct."
    ),
    ErrorKind.INVALID_CREDENTIALS: (
        "Invalid or expired access token. Please check your Figma Personal Access Token "
        "and try again."
    ),
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment and try again.",
}


def classify_connection_error(message: str) -> ErrorKind:
    """Map a document-source error message to an ErrorKind."""
    for needles, kind in _CONNECTION_PATTERNS:
        if any(needle in message for needle in needles):
            return kind
    return ErrorKind.GENERIC


def connection_error_message(message: str, default: str = "Connection failed") -> str:
    """User-facing text for a step 1 failure. Generic errors keep their own message."""
    kind = classify_connection_error(message)
    if kind is ErrorKind.GENERIC:
        return message or default
    return CONNECTION_MESSAGES[kind]


def conversion_error_message(message: str, default: str = "SVG conversion failed") -> str:
    """User-facing text for a step 2 conversion failure."""
    if "Invalid SVG" in message:
        return (
            f"{message}. Please ensure your input contains valid SVG elements like "
            "<svg>, <path>, <rect>, etc."
        )
    if "parsing" in message:
        return "SVG parsing failed. Please check your SVG syntax and try again."
    return message or default


def wrap_connection_error(exc: BaseException) -> CollaboratorError:
    """Wrap a document-source failure with its user-facing message and kind."""
    message = str(exc)
    return CollaboratorError(connection_error_message(message), classify_connection_error(message))
