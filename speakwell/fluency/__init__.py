"""Heuristic fluency and grammar scoring for practice transcripts."""

from .models import IssueKind, FillerWordInstance, GrammarIssue, SpeechAnalysis
from .analysis import (
    FILLER_WORDS, analyze_speech, analyze_filler_words, analyze_grammar,
    count_pauses, calculate_fluency_score, calculate_grammar_score,
    generate_suggestions, words_per_minute
)

__all__ = [
    "IssueKind", "FillerWordInstance", "GrammarIssue", "SpeechAnalysis",
    "FILLER_WORDS", "analyze_speech", "analyze_filler_words", "analyze_grammar",
    "count_pauses", "calculate_fluency_score", "calculate_grammar_score",
    "generate_suggestions", "words_per_minute",
]
