"""
Data models for speech fluency analysis.
"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Tuple


class IssueKind(str, Enum):
    """Kinds of surface issues the grammar heuristics report."""
    GRAMMAR = "grammar"
    SPELLING = "spelling"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class FillerWordInstance:
    """A filler word and how often it occurred."""
    word: str
    count: int


@dataclass(frozen=True)
class GrammarIssue:
    """A matched surface pattern and its suggested replacement."""
    original: str
    suggestion: str
    kind: IssueKind = IssueKind.GRAMMAR


@dataclass(frozen=True)
class SpeechAnalysis:
    """Scored analysis of one finalized recording."""
    transcript: str
    fluency_score: int
    grammar_score: int
    overall_score: int
    speaking_duration: float
    words_per_minute: int
    filler_words: Tuple[FillerWordInstance, ...] = field(default_factory=tuple)
    grammar_issues: Tuple[GrammarIssue, ...] = field(default_factory=tuple)
    pause_count: int = 0
    suggestions: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_filler_count(self) -> int:
        return sum(f.count for f in self.filler_words)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-serializable representation."""
        data = asdict(self)
        data["filler_words"] = [dict(f) for f in data["filler_words"]]
        data["grammar_issues"] = [
            {**issue, "kind": IssueKind(issue["kind"]).value} for issue in data["grammar_issues"]
        ]
        data["suggestions"] = list(self.suggestions)
        return data
