"""Dashboard statistics and the study streak."""

from datetime import date, timedelta

from .config import (
    DIFFICULTIES, MISTAKE_TEST_MIN_MISTAKES, SPEED_CHALLENGE_MIN_LEARNED_WORDS
)
from .interfaces import (
    Storage, VOCABULARY, USER_PROGRESS, USER_ACTIVITY, TEST_SESSIONS, USER_MISTAKES
)
from .models import DifficultyCount, LearningStats
from .sessions import SessionProgressEngine
from .utils import utc_date, utc_now


def compute_streak(study_dates: set[date], today: date) -> int:
    """Consecutive days ending today that appear in study_dates.

    No study today means no streak, even if yesterday was studied.
    """
    streak = 0
    day = today
    while day in study_dates:
        streak += 1
        day -= timedelta(days=1)
    return streak


class StatsAggregator:
    """Derives stats from raw rows on every call; nothing is cached or stored."""

    def __init__(self, storage: Storage, sessions: SessionProgressEngine, clock=utc_now):
        self.storage = storage
        self.sessions = sessions
        self.clock = clock

    def study_dates(self, user_id: str) -> set[date]:
        entries = self.storage.find_many(USER_ACTIVITY, user_id=user_id, type='study')
        return {utc_date(e['created_at']) for e in entries}

    def current_streak(self, user_id: str) -> int:
        return compute_streak(self.study_dates(user_id), utc_date(self.clock()))

    def compute_stats(self, user_id: str) -> LearningStats:
        vocabulary = self.storage.find_many(VOCABULARY)
        learned_ids = {r['vocabulary_id'] for r in
                       self.storage.find_many(USER_PROGRESS, user_id=user_id, is_learned=True)}

        difficulty_counts = {}
        for level in DIFFICULTIES:
            ids = [w['id'] for w in vocabulary if w.get('difficulty') == level]
            difficulty_counts[level] = DifficultyCount(
                total=len(ids),
                learned=sum(1 for word_id in ids if word_id in learned_ids)
            )

        activity = self.storage.find_many(USER_ACTIVITY, user_id=user_id)
        return LearningStats(
            total_words=len(vocabulary),
            learned_words=len(learned_ids),
            current_streak=self.current_streak(user_id),
            total_study_time=sum(e.get('duration') or 0 for e in activity),
            difficulty_counts=difficulty_counts,
            tests_completed=self.storage.count(TEST_SESSIONS, user_id=user_id)
        )

    def record_test_completed(self, user_id: str):
        """Store a completed test and move the user on by one session."""
        self.storage.create(TEST_SESSIONS, {'user_id': user_id, 'completed_at': self.clock()})
        return self.sessions.advance(user_id)

    def gates(self, user_id: str) -> dict:
        """Which gated activities the user may start."""
        learned = self.storage.count(USER_PROGRESS, user_id=user_id, is_learned=True)
        mistakes = self.storage.count(USER_MISTAKES, user_id=user_id)
        current_session = self.sessions.get(user_id).current_session
        return {
            'test_unlocked': current_session >= 1,
            'mistake_test_unlocked': mistakes >= MISTAKE_TEST_MIN_MISTAKES,
            'speed_challenge_unlocked': learned >= SPEED_CHALLENGE_MIN_LEARNED_WORDS,
            'learned_words': learned,
            'mistake_count': mistakes
        }
