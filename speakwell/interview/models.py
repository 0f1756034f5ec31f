"""
Data models for the interview system.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Role(str, Enum):
    """Who authored a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single conversation turn."""
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def user(cls, content: str) -> 'ChatMessage':
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> 'ChatMessage':
        return cls(Role.ASSISTANT, content)


class VerdictOutcome(str, Enum):
    """Hiring decision read out of a verdict."""
    SELECTED = "selected"
    NOT_SELECTED = "not_selected"
    UNDECIDED = "undecided"


@dataclass(frozen=True)
class InterviewVerdict:
    """Terminal evaluation of a whole interview."""
    text: str

    @property
    def outcome(self) -> VerdictOutcome:
        lowered = self.text.lower()
        if "not selected" in lowered or "rejected" in lowered:
            return VerdictOutcome.NOT_SELECTED
        if "selected" in lowered:
            return VerdictOutcome.SELECTED
        return VerdictOutcome.UNDECIDED
