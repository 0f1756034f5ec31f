"""
SpeakWell: speech practice scoring and streaming mock interviews.

Scores practice transcripts for fluency and grammar, keeps a history of
practice sessions and runs multi-turn mock interviews against a streaming
chat-completion service.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.chat_session import ChatSessionController
from .fluency.analysis import analyze_speech
from .fluency.models import SpeechAnalysis
from .fluency.practice import PracticeRecorder, TranscriptTooShortError

__all__ = [
    "InterviewOrchestrator", "ChatSessionController",
    "analyze_speech", "SpeechAnalysis",
    "PracticeRecorder", "TranscriptTooShortError",
]
