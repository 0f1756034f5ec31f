"""
Text-to-speech for interviewer messages using Google Cloud TTS.
"""
import os
import re
import subprocess
import logging
from typing import Optional

from ...config import LANGUAGE_CODE, TTS_SPEAKING_RATE, TTS_VOICE, WORKDIR

logger = logging.getLogger("speech_tts")

_MARKDOWN_RULES = (
    (re.compile(r"```[\s\S]*?```"), "code block omitted"),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"#{1,6}\s"), ""),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"[-*+]\s"), ""),
    (re.compile(r"\n{2,}"), ". "),
    (re.compile(r"\n"), " "),
)

PLAYER_COMMANDS = (["afplay"], ["aplay", "-q"])
PLAYER_STOP_TIMEOUT = 2.0  # seconds


def strip_markdown_for_speech(text: str) -> str:
    """Reduce assistant markdown to plain sentences a voice can read."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


class GoogleSpeechSink:
    """Synthesizes assistant text to WAV and optionally plays it locally."""

    def __init__(self,
                 voice: str = TTS_VOICE,
                 language_code: str = LANGUAGE_CODE,
                 speaking_rate: float = TTS_SPEAKING_RATE,
                 output_dir: str = WORKDIR,
                 play_audio: bool = True,
                 client=None):
        self.voice = voice
        self.language_code = language_code
        self.speaking_rate = speaking_rate
        self.output_dir = output_dir
        self.play_audio = play_audio
        self._client = client
        self._player: Optional[subprocess.Popen] = None

    @property
    def is_speaking(self) -> bool:
        return self._player is not None and self._player.poll() is None

    def _get_client(self):
        if self._client is None:
            from google.cloud import texttospeech
            self._client = texttospeech.TextToSpeechClient()
        return self._client

    def synthesize(self, text: str) -> bytes:
        """Return LINEAR16 WAV bytes for already-cleaned text."""
        from google.cloud import texttospeech

        response = self._get_client().synthesize_speech(
            input=texttospeech.SynthesisInput(text=text),
            voice=texttospeech.VoiceSelectionParams(
                language_code=self.language_code,
                name=self.voice,
            ),
            audio_config=texttospeech.AudioConfig(
                audio_encoding=texttospeech.AudioEncoding.LINEAR16,
                sample_rate_hertz=16000,
                speaking_rate=self.speaking_rate,
            ),
        )
        return response.audio_content

    def speak(self, text: str) -> Optional[str]:
        """
        Speak a message, interrupting anything still playing.

        Args:
            text: Assistant text, markdown allowed

        Returns:
            Path of the written WAV file, or None when nothing was left to say
        """
        self.stop()

        clean_text = strip_markdown_for_speech(text)
        if not clean_text:
            return None

        audio = self.synthesize(clean_text)

        os.makedirs(self.output_dir, exist_ok=True)
        wav_path = os.path.join(self.output_dir, "last_utterance.wav")
        with open(wav_path, "wb") as f:
            f.write(audio)
        logger.info("Synthesized %d chars to %s", len(clean_text), wav_path)

        if self.play_audio:
            self._start_player(wav_path)
        return wav_path

    def _start_player(self, wav_path: str) -> None:
        for command in PLAYER_COMMANDS:
            try:
                self._player = subprocess.Popen(
                    command + [wav_path], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
                )
                return
            except FileNotFoundError:
                continue
        logger.warning("No audio player found; wrote %s without playing it", wav_path)

    def stop(self) -> None:
        if self.is_speaking:
            self._player.terminate()
            try:
                self._player.wait(timeout=PLAYER_STOP_TIMEOUT)
            except subprocess.TimeoutExpired:
                self._player.kill()
                self._player.wait()
            logger.debug("Stopped playback")
        self._player = None
