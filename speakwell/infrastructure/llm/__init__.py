"""Chat service client, stream decoding and transport errors."""

from .client import ChatServiceClient
from .errors import (
    ChatServiceError, RateLimitError, ServiceUnavailableError,
    StreamCancelledError, error_for_status
)
from .stream import CancellationToken, EventStreamDecoder, extract_delta_content

__all__ = [
    "ChatServiceClient",
    "ChatServiceError", "RateLimitError", "ServiceUnavailableError",
    "StreamCancelledError", "error_for_status",
    "CancellationToken", "EventStreamDecoder", "extract_delta_content",
]
