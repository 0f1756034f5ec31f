"""
Practice session records and their JSON-file store.
"""
import os
import json
import random
import string
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import List, Optional

from ...fluency.models import SpeechAnalysis

logger = logging.getLogger("session_store")


@dataclass
class PracticeSessionRecord:
    """Summary of one finished practice recording."""
    id: str
    date: str  # ISO format timestamp
    duration: int  # seconds
    transcript: str
    fluency_score: int
    grammar_score: int
    overall_score: int
    words_per_minute: int

    @property
    def when(self) -> datetime:
        return datetime.fromisoformat(self.date)


def generate_session_id(now: datetime) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(now.timestamp() * 1000)}_{suffix}"


class SessionStore:
    """Persists practice session records to a single JSON file."""

    def __init__(self, path: str):
        self.path = path

    def _write(self, records: List[PracticeSessionRecord]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([asdict(r) for r in records], f, indent=2)

    def list_sessions(self) -> List[PracticeSessionRecord]:
        """Load every stored record; a missing or unreadable file means no sessions."""
        if not os.path.exists(self.path):
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [PracticeSessionRecord(**item) for item in data]
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load practice sessions from {self.path}: {e}")
            return []

    def save(self, analysis: SpeechAnalysis, duration: float,
             when: Optional[datetime] = None) -> PracticeSessionRecord:
        """Store the summary of an analysis and return the new record."""
        when = when or datetime.now()
        record = PracticeSessionRecord(
            id=generate_session_id(when),
            date=when.isoformat(),
            duration=int(round(duration)),
            transcript=analysis.transcript,
            fluency_score=analysis.fluency_score,
            grammar_score=analysis.grammar_score,
            overall_score=analysis.overall_score,
            words_per_minute=analysis.words_per_minute,
        )

        records = self.list_sessions()
        records.append(record)
        self._write(records)
        logger.info(f"Saved practice session {record.id} (overall {record.overall_score})")
        return record

    def get(self, session_id: str) -> Optional[PracticeSessionRecord]:
        for record in self.list_sessions():
            if record.id == session_id:
                return record
        return None

    def recent(self, count: int = 10) -> List[PracticeSessionRecord]:
        """Newest records first."""
        records = sorted(self.list_sessions(), key=lambda r: r.when, reverse=True)
        return records[:count]

    def delete(self, session_id: str) -> bool:
        records = self.list_sessions()
        remaining = [r for r in records if r.id != session_id]
        if len(remaining) == len(records):
            logger.warning(f"Cannot delete unknown session: {session_id}")
            return False
        self._write(remaining)
        logger.info(f"Deleted practice session {session_id}")
        return True
