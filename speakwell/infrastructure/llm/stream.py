"""
Incremental decoding of server-sent chat completion streams.
"""
import codecs
import json
import logging
import threading
from typing import Any, Callable, List, Optional, Union

logger = logging.getLogger("llm_stream")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class CancellationToken:
    """
    Cooperative cancellation handle for one in-flight request.

    The read loop polls `cancelled` at every chunk; callbacks registered with
    `on_cancel` run once when `cancel()` is first called (used to close the
    HTTP response so a blocked read returns).
    """

    def __init__(self):
        self._event = threading.Event()
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.debug(f"Cancel callback failed: {e}")


def extract_delta_content(payload: Any) -> Optional[str]:
    """Read choices[0].delta.content from a parsed chunk, if it is there."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


class EventStreamDecoder:
    """
    Line-oriented decoder for `data:` chunks.

    Bytes may be split anywhere, including inside a multi-byte character or a
    JSON object. Lines are only consumed once complete; a data line whose JSON
    does not parse is put back at the head of the buffer and retried when the
    next chunk arrives, so nothing is dropped before the stream ends.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    @property
    def pending(self) -> str:
        """Text received but not yet consumed."""
        return self._buffer

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """
        Add one network read.

        Returns:
            Content fragments completed by this chunk, in order
        """
        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk
        return self._drain()

    def _drain(self) -> List[str]:
        fragments = []
        while not self.done:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break

            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            payload = self._data_payload(line)
            if payload is None:
                continue
            if payload == DONE_SENTINEL:
                self.done = True
                break

            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                # Incomplete; wait for more data
                self._buffer = line + "\n" + self._buffer
                break

            content = extract_delta_content(parsed)
            if content:
                fragments.append(content)
        return fragments

    @staticmethod
    def _data_payload(line: str) -> Optional[str]:
        if line.endswith("\r"):
            line = line[:-1]
        if line.startswith(":") or not line.strip():
            return None
        if not line.startswith(DATA_PREFIX):
            return None
        return line[len(DATA_PREFIX):].strip()

    def close(self) -> List[str]:
        """
        Flush at true end of stream.

        Whatever still parses is returned; malformed or truncated leftovers
        are discarded.
        """
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        leftover, self._buffer = self._buffer, ""

        fragments = []
        for line in leftover.split("\n"):
            payload = self._data_payload(line)
            if payload is None:
                continue
            if payload == DONE_SENTINEL:
                break
            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError:
                logger.debug(f"Discarding unparseable trailing line: {line!r}")
                continue
            content = extract_delta_content(parsed)
            if content:
                fragments.append(content)

        self.done = True
        return fragments
