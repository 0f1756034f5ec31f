"""
Testing infrastructure with fake transports and sinks for the interview system.
"""
import json
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

import requests

from ..infrastructure.llm import CancellationToken, StreamCancelledError
from ..infrastructure.speech import strip_markdown_for_speech


def sse_line(content: Optional[str] = None, done: bool = False) -> str:
    """One `data:` line in the OpenAI streaming delta format."""
    if done:
        return "data: [DONE]\n"
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n"


def sse_chunks(*fragments: str, done: bool = True) -> List[bytes]:
    """Encode each fragment as its own network chunk, optionally closing with [DONE]."""
    chunks = [sse_line(fragment).encode("utf-8") for fragment in fragments]
    if done:
        chunks.append(sse_line(done=True).encode("utf-8"))
    return chunks


class FakeStreamResponse:
    """Mock streaming HTTP response for testing."""

    def __init__(self,
                 chunks: Sequence[Union[bytes, str]] = (),
                 status_code: int = 200,
                 text: str = ""):
        self.chunks = [c.encode("utf-8") if isinstance(c, str) else c for c in chunks]
        self.status_code = status_code
        self.text = text
        self.closed = False
        self.chunks_read = 0

    def iter_content(self, chunk_size: Optional[int] = None) -> Iterator[bytes]:
        for chunk in self.chunks:
            if self.closed:
                raise requests.ConnectionError("Response closed while reading")
            self.chunks_read += 1
            yield chunk

    def close(self) -> None:
        self.closed = True


class FakeHTTPSession:
    """Mock requests.Session that returns queued responses and records posts."""

    def __init__(self, responses: Iterable[Union[FakeStreamResponse, Exception]] = ()):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [r["json"] for r in self.requests]

    def post(self, url: str, headers=None, json=None, stream: bool = False, timeout=None):
        self.requests.append({
            "url": url,
            "headers": dict(headers or {}),
            "json": json,
            "stream": stream,
            "timeout": timeout,
        })
        if not self.responses:
            raise AssertionError(f"Unexpected POST to {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class ScriptedChatClient:
    """
    Mock chat client yielding scripted fragments without any HTTP.

    Each script is a list of fragments or an exception to raise once the
    stream is read.
    """

    def __init__(self, scripts: Iterable[Union[Sequence[str], Exception]] = ()):
        self.scripts = list(scripts)
        self.payloads: List[Dict[str, Any]] = []
        self.tokens: List[CancellationToken] = []
        self.url = "memory://chat"

    def stream_completion(self, payload: Dict[str, Any], token: CancellationToken) -> Iterator[str]:
        self.payloads.append(payload)
        self.tokens.append(token)
        script = self.scripts.pop(0) if self.scripts else []
        if isinstance(script, Exception):
            raise script
        for fragment in script:
            if token.cancelled:
                raise StreamCancelledError("Cancelled while streaming")
            yield fragment


class RecordingSpeechSink:
    """Mock speech sink that remembers what it was asked to say."""

    def __init__(self):
        self.spoken: List[str] = []
        self.stop_calls = 0

    @property
    def is_speaking(self) -> bool:
        return False

    def speak(self, text: str) -> Optional[str]:
        clean_text = strip_markdown_for_speech(text)
        if not clean_text:
            return None
        self.spoken.append(clean_text)
        return f"memory://utterance/{len(self.spoken)}"

    def stop(self) -> None:
        self.stop_calls += 1
