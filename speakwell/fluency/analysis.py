"""
Heuristic speech scoring.

Turns a finalized transcript and its recording duration into a SpeechAnalysis:
filler words, grammar issues, pause indicators, words per minute and the
fluency/grammar/overall scores. Everything here is offline and deterministic.
"""
import math
import re
from typing import List, Sequence, Tuple

from .models import FillerWordInstance, GrammarIssue, IssueKind, SpeechAnalysis

FILLER_WORDS = (
    'um', 'uh', 'er', 'ah', 'like', 'you know', 'basically',
    'actually', 'literally', 'so', 'well', 'right', 'okay',
)

# Verbs that commonly follow a lowercase "i" in recognizer output
_PRONOUN_CONTINUATIONS = (
    "am", "have", "will", "would", "could", "should", "was", "were", "do",
    "don't", "think", "know", "feel", "want", "need", "like", "love", "hate",
    "see", "hear",
)

GRAMMAR_PATTERNS: Tuple[Tuple["re.Pattern[str]", str, IssueKind], ...] = (
    (re.compile(r"\bi\b(?!" + "|".join(r"\s+" + re.escape(v) for v in _PRONOUN_CONTINUATIONS) + ")"),
     "I", IssueKind.GRAMMAR),
    (re.compile(r"\bhe don't\b", re.IGNORECASE), "he doesn't", IssueKind.GRAMMAR),
    (re.compile(r"\bshe don't\b", re.IGNORECASE), "she doesn't", IssueKind.GRAMMAR),
    (re.compile(r"\bit don't\b", re.IGNORECASE), "it doesn't", IssueKind.GRAMMAR),
    (re.compile(r"\bthey was\b", re.IGNORECASE), "they were", IssueKind.GRAMMAR),
    (re.compile(r"\bwe was\b", re.IGNORECASE), "we were", IssueKind.GRAMMAR),
    (re.compile(r"\byou was\b", re.IGNORECASE), "you were", IssueKind.GRAMMAR),
    (re.compile(r"\bi is\b", re.IGNORECASE), "I am", IssueKind.GRAMMAR),
    (re.compile(r"\bmore better\b", re.IGNORECASE), "better", IssueKind.GRAMMAR),
    (re.compile(r"\bmore worse\b", re.IGNORECASE), "worse", IssueKind.GRAMMAR),
    (re.compile(r"\bcould of\b", re.IGNORECASE), "could have", IssueKind.GRAMMAR),
    (re.compile(r"\bwould of\b", re.IGNORECASE), "would have", IssueKind.GRAMMAR),
    (re.compile(r"\bshould of\b", re.IGNORECASE), "should have", IssueKind.GRAMMAR),
    (re.compile(r"\bmust of\b", re.IGNORECASE), "must have", IssueKind.GRAMMAR),
    (re.compile(r"\baint\b", re.IGNORECASE), "isn't/aren't", IssueKind.GRAMMAR),
    (re.compile(r"\bgonna\b", re.IGNORECASE), "going to", IssueKind.GRAMMAR),
    (re.compile(r"\bwanna\b", re.IGNORECASE), "want to", IssueKind.GRAMMAR),
)

PAUSE_PATTERN = re.compile(r"[.]{2,}|,\s*,|\.{3}|\s{3,}")

SLOW_WPM = 100
FAST_WPM = 180


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def tokenize(transcript: str) -> List[str]:
    """Split on whitespace, dropping empty tokens."""
    return transcript.split()


def words_per_minute(total_words: int, duration_seconds: float) -> int:
    if duration_seconds <= 0:
        return 0
    return round_half_up(total_words / duration_seconds * 60)


def analyze_filler_words(text: str) -> List[FillerWordInstance]:
    """
    Count filler words as case-insensitive whole-word matches.

    Returns:
        Fillers that occurred at least once, most frequent first. Ties keep
        vocabulary order.
    """
    lowered = text.lower()
    found = []
    for filler in FILLER_WORDS:
        count = len(re.findall(r"\b" + re.escape(filler) + r"\b", lowered))
        if count > 0:
            found.append(FillerWordInstance(word=filler, count=count))

    # sorted() is stable
    return sorted(found, key=lambda f: f.count, reverse=True)


def analyze_grammar(text: str) -> List[GrammarIssue]:
    """
    Scan for the known surface patterns in order.

    A given matched text (compared case-insensitively) is reported once, no
    matter how often it repeats or how many patterns it satisfies.
    """
    issues: List[GrammarIssue] = []
    seen = set()
    for pattern, suggestion, kind in GRAMMAR_PATTERNS:
        for match in pattern.finditer(text):
            original = match.group(0)
            key = original.lower()
            if key in seen:
                continue
            seen.add(key)
            issues.append(GrammarIssue(original=original, suggestion=suggestion, kind=kind))
    return issues


def count_pauses(transcript: str) -> int:
    """Count textual pause indicators: dot runs, doubled commas, wide whitespace."""
    return len(PAUSE_PATTERN.findall(transcript))


def calculate_fluency_score(filler_words: Sequence[FillerWordInstance],
                            wpm: int,
                            pause_count: int,
                            total_words: int) -> int:
    if total_words == 0:
        return 0

    score = 100.0

    total_fillers = sum(f.count for f in filler_words)
    filler_ratio = total_fillers / total_words
    score -= min(30, filler_ratio * 150)

    if wpm < SLOW_WPM:
        score -= min(15, (SLOW_WPM - wpm) / 5)
    elif wpm > FAST_WPM:
        score -= min(15, (wpm - FAST_WPM) / 10)

    pause_ratio = pause_count / max(1, total_words / 50)
    score -= min(20, pause_ratio * 10)

    return max(0, round_half_up(score))


def calculate_grammar_score(grammar_issues: Sequence[GrammarIssue], total_words: int) -> int:
    if total_words == 0:
        return 0

    issue_ratio = len(grammar_issues) / total_words
    score = 100.0 - min(50, issue_ratio * 500)
    return max(0, round_half_up(score))


def generate_suggestions(filler_words: Sequence[FillerWordInstance],
                         grammar_issues: Sequence[GrammarIssue],
                         wpm: int,
                         fluency_score: int) -> List[str]:
    """Build the ordered feedback list shown under a practice result."""
    suggestions = []

    if filler_words:
        top = filler_words[0]
        plural = "s" if top.count > 1 else ""
        suggestions.append(
            f'Try to reduce using "{top.word}" - you used it {top.count} time{plural}.'
        )

    if grammar_issues:
        first = grammar_issues[0]
        suggestions.append(
            f'Watch out for grammar: "{first.original}" should be "{first.suggestion}".'
        )

    if wpm < SLOW_WPM:
        suggestions.append("Try speaking a bit faster to maintain listener engagement.")
    elif wpm > FAST_WPM:
        suggestions.append("Slow down slightly - you're speaking quite fast!")

    if fluency_score >= 80:
        suggestions.append("Great fluency! Keep practicing to maintain this level.")
    elif fluency_score >= 60:
        suggestions.append("Good progress! Focus on reducing pauses and filler words.")
    else:
        suggestions.append("Practice reading aloud daily to improve your flow.")

    return suggestions


def analyze_speech(transcript: str, duration_seconds: float) -> SpeechAnalysis:
    """
    Score a finalized transcript.

    Args:
        transcript: Recognized text of the whole recording
        duration_seconds: Length of the recording; zero or negative means unknown

    Returns:
        SpeechAnalysis; empty transcripts produce zero scores rather than errors
    """
    total_words = len(tokenize(transcript))
    wpm = words_per_minute(total_words, duration_seconds)

    filler_words = analyze_filler_words(transcript)
    grammar_issues = analyze_grammar(transcript)
    pause_count = count_pauses(transcript)

    fluency = calculate_fluency_score(filler_words, wpm, pause_count, total_words)
    grammar = calculate_grammar_score(grammar_issues, total_words)
    overall = round_half_up(fluency * 0.6 + grammar * 0.4)

    return SpeechAnalysis(
        transcript=transcript,
        fluency_score=fluency,
        grammar_score=grammar,
        overall_score=overall,
        speaking_duration=duration_seconds,
        words_per_minute=wpm,
        filler_words=tuple(filler_words),
        grammar_issues=tuple(grammar_issues),
        pause_count=pause_count,
        suggestions=tuple(generate_suggestions(filler_words, grammar_issues, wpm, fluency)),
    )
