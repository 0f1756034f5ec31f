"""
Practice recording flow: transcript capture, scoring and persistence.
"""
import time
import logging
from typing import Callable, Optional, Tuple

from .analysis import analyze_speech
from .models import SpeechAnalysis
from ..config import MIN_TRANSCRIPT_CHARS
from ..infrastructure.data.sessions import PracticeSessionRecord, SessionStore
from ..infrastructure.speech.transcript import TranscriptBuffer

logger = logging.getLogger("practice")


class TranscriptTooShortError(ValueError):
    """The finalized transcript is too short to be worth scoring."""


class PracticeRecorder:
    """
    One practice recording at a time.

    start() -> push(...)* -> stop() -> finish()
    """

    def __init__(self,
                 store: SessionStore,
                 buffer: Optional[TranscriptBuffer] = None,
                 clock: Callable[[], float] = time.monotonic,
                 min_chars: int = MIN_TRANSCRIPT_CHARS):
        self.store = store
        self.buffer = buffer or TranscriptBuffer()
        self.clock = clock
        self.min_chars = min_chars
        self._started_at: Optional[float] = None
        self._duration = 0.0

    @property
    def is_recording(self) -> bool:
        return self._started_at is not None

    @property
    def duration(self) -> float:
        """Elapsed seconds, live while recording."""
        if self._started_at is not None:
            return self.clock() - self._started_at
        return self._duration

    def start(self) -> None:
        self.buffer.reset()
        self.buffer.start()
        self._duration = 0.0
        self._started_at = self.clock()
        logger.info("Practice recording started")

    def push(self, text: str, is_final: bool = True) -> None:
        self.buffer.push(text, is_final)

    def stop(self) -> float:
        if self._started_at is not None:
            self._duration = self.clock() - self._started_at
            self._started_at = None
        self.buffer.stop()
        logger.info(f"Practice recording stopped after {self._duration:.1f}s")
        return self._duration

    def finish(self) -> Tuple[SpeechAnalysis, PracticeSessionRecord]:
        """
        Score the finalized transcript and store the session.

        Raises:
            TranscriptTooShortError: fewer than min_chars characters were captured
        """
        if self.is_recording:
            self.stop()

        transcript = self.buffer.transcript.strip()
        if len(transcript) < self.min_chars:
            raise TranscriptTooShortError(
                "Please speak a bit more. At least a few words are needed for analysis."
            )

        analysis = analyze_speech(transcript, self._duration)
        record = self.store.save(analysis, self._duration)
        logger.info(
            f"Practice scored: fluency={analysis.fluency_score} grammar={analysis.grammar_score} "
            f"overall={analysis.overall_score} wpm={analysis.words_per_minute}"
        )
        return analysis, record
