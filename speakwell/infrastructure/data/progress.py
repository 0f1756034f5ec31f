"""
Progress statistics over stored practice sessions.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from .sessions import PracticeSessionRecord
from ...fluency.analysis import round_half_up


@dataclass
class DailyProgress:
    """Aggregates for one calendar day."""
    date: str
    sessions_count: int = 0
    average_fluency: int = 0
    average_grammar: int = 0
    total_speaking_time: int = 0  # minutes
    average_wpm: int = 0


@dataclass
class UserStats:
    """Lifetime practice statistics."""
    total_sessions: int = 0
    total_speaking_time: int = 0  # minutes
    average_fluency: int = 0
    average_grammar: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    best_score: int = 0


def _average(values: Sequence[int]) -> int:
    return round_half_up(sum(values) / len(values)) if values else 0


def daily_progress(sessions: Sequence[PracticeSessionRecord],
                   days: int = 7,
                   today: Optional[date] = None) -> List[DailyProgress]:
    """One entry per day for the last `days` days, oldest first."""
    today = today or date.today()
    progress = []

    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_sessions = [s for s in sessions if s.when.date() == day]
        if not day_sessions:
            progress.append(DailyProgress(date=day.isoformat()))
            continue

        progress.append(DailyProgress(
            date=day.isoformat(),
            sessions_count=len(day_sessions),
            average_fluency=_average([s.fluency_score for s in day_sessions]),
            average_grammar=_average([s.grammar_score for s in day_sessions]),
            total_speaking_time=round_half_up(sum(s.duration for s in day_sessions) / 60),
            average_wpm=_average([s.words_per_minute for s in day_sessions]),
        ))

    return progress


def _longest_run(practice_days: List[date]) -> int:
    """Longest run of consecutive days in a newest-first list of distinct days."""
    longest = 1
    run = 1
    for previous, current in zip(practice_days, practice_days[1:]):
        if (previous - current).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def user_stats(sessions: Sequence[PracticeSessionRecord],
               today: Optional[date] = None) -> UserStats:
    if not sessions:
        return UserStats()

    today = today or date.today()
    practice_days = sorted({s.when.date() for s in sessions}, reverse=True)

    # A streak is only alive if the latest practice was today or yesterday
    current_streak = 0
    if practice_days[0] in (today, today - timedelta(days=1)):
        current_streak = 1
        for previous, current in zip(practice_days, practice_days[1:]):
            if (previous - current).days != 1:
                break
            current_streak += 1

    return UserStats(
        total_sessions=len(sessions),
        total_speaking_time=round_half_up(sum(s.duration for s in sessions) / 60),
        average_fluency=_average([s.fluency_score for s in sessions]),
        average_grammar=_average([s.grammar_score for s in sessions]),
        current_streak=current_streak,
        longest_streak=_longest_run(practice_days),
        best_score=max(s.overall_score for s in sessions),
    )
