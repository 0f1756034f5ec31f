"""
Data management infrastructure for practice sessions and progress tracking.
"""

from .sessions import PracticeSessionRecord, SessionStore
from .progress import DailyProgress, UserStats, daily_progress, user_stats

__all__ = [
    'PracticeSessionRecord',
    'SessionStore',
    'DailyProgress',
    'UserStats',
    'daily_progress',
    'user_stats',
]
