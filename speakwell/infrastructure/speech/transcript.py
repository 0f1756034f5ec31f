"""
Transcript accumulation for push-based speech recognition.

The recognizer itself runs elsewhere (typically in the browser); this buffer
only keeps the committed text apart from the interim fragment that may still
be revised.
"""
import logging

logger = logging.getLogger("speech_transcript")


class TranscriptBuffer:
    """Finalized transcript plus the current interim fragment."""

    def __init__(self):
        self._final_parts = []
        self._interim = ""
        self._listening = False

    @property
    def transcript(self) -> str:
        return "".join(self._final_parts)

    @property
    def interim_transcript(self) -> str:
        return self._interim

    @property
    def display_text(self) -> str:
        return self.transcript + self._interim

    @property
    def is_listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        self._listening = True
        logger.debug("Transcript source started")

    def stop(self) -> None:
        self._listening = False
        self._interim = ""
        logger.debug("Transcript source stopped (%d chars final)", len(self.transcript))

    def reset(self) -> None:
        self._final_parts = []
        self._interim = ""

    def push(self, text: str, is_final: bool) -> None:
        """
        Apply one recognition result.

        Final results are committed followed by a single space and clear the
        interim fragment; interim results replace the previous interim fragment.
        """
        if is_final:
            self._final_parts.append(text + " ")
            self._interim = ""
        else:
            self._interim = text
