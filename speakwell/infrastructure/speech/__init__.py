"""Transcript accumulation and text-to-speech modules."""

from .transcript import TranscriptBuffer
from .tts import GoogleSpeechSink, strip_markdown_for_speech

__all__ = ["TranscriptBuffer", "GoogleSpeechSink", "strip_markdown_for_speech"]
