"""Infrastructure components for the SpeakWell system.

This module contains low-level technical components that provide
foundational capabilities for the practice and interview features.
"""

# LLM infrastructure
from .llm import ChatServiceClient, CancellationToken, EventStreamDecoder

# Speech infrastructure
from .speech import TranscriptBuffer, GoogleSpeechSink, strip_markdown_for_speech

__all__ = [
    # Chat service
    "ChatServiceClient", "CancellationToken", "EventStreamDecoder",

    # Speech
    "TranscriptBuffer", "GoogleSpeechSink", "strip_markdown_for_speech",
]
