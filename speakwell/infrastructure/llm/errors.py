"""
Failures surfaced by the chat service client.
"""
import json
from typing import Optional


class ChatServiceError(Exception):
    """The chat service could not produce a reply."""

    default_user_message = "Failed to get response"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return self.default_user_message


class RateLimitError(ChatServiceError):
    """HTTP 429 from the chat service."""

    default_user_message = "Rate limit exceeded. Please try again in a moment."


class ServiceUnavailableError(ChatServiceError):
    """HTTP 402 from the chat service: the account cannot be served right now."""

    default_user_message = "Service temporarily unavailable."


class StreamCancelledError(Exception):
    """The read loop observed a cancelled token. Not a failure."""


def _error_detail(body: str) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()
    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        if isinstance(error, dict):
            return str(error.get("message", error))
        return str(error)
    return body.strip()


def error_for_status(status_code: int, body: str = "") -> ChatServiceError:
    """Map a non-2xx response to the matching ChatServiceError subclass."""
    detail = _error_detail(body) or f"HTTP {status_code}"
    message = f"Chat service error {status_code}: {detail}"
    if status_code == 429:
        return RateLimitError(message, status_code)
    if status_code == 402:
        return ServiceUnavailableError(message, status_code)
    return ChatServiceError(message, status_code)
