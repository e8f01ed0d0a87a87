"""Per-user, per-word learning progress."""

import logging

from .config import ACTIVITY_TYPES, SESSION_SIZE
from .errors import NotFoundError, ValidationError
from .interfaces import (
    Storage, VOCABULARY, USER_PROGRESS, SESSION_PROGRESS, USER_ACTIVITY, TEST_SESSIONS
)
from .models import VocabularyWord
from .utils import utc_now

logger = logging.getLogger(__name__)


def vocabulary_in_order(storage: Storage) -> list[dict]:
    """All vocabulary rows in seed order."""
    return storage.find_many(VOCABULARY, order_by='position')


def session_window(words: list, session_index: int) -> list:
    """The SESSION_SIZE words studied in a given session."""
    start = session_index * SESSION_SIZE
    return words[start:start + SESSION_SIZE]


class ProgressStore:
    """Tracks which words a user has learned and the activity log."""

    def __init__(self, storage: Storage, clock=utc_now):
        self.storage = storage
        self.clock = clock

    def _learned_ids(self, user_id: str) -> set[str]:
        records = self.storage.find_many(USER_PROGRESS, user_id=user_id, is_learned=True)
        return {r['vocabulary_id'] for r in records}

    def get_word(self, word_id: str) -> VocabularyWord:
        row = self.storage.find_one(VOCABULARY, id=word_id)
        if row is None:
            raise NotFoundError('Vocabulary word', word_id)
        return VocabularyWord.from_dict(row)

    def mark_learned(self, user_id: str, word_id: str) -> dict:
        """Mark a word learned. Studying an already learned word again still counts."""
        self.get_word(word_id)
        now = self.clock()
        record, created = self.storage.get_or_create(
            USER_PROGRESS,
            defaults={'is_learned': True, 'study_count': 1, 'last_studied': now, 'created_at': now},
            user_id=user_id, vocabulary_id=word_id
        )
        if created:
            return record
        return self.storage.update(USER_PROGRESS, record['id'], {
            'is_learned': True,
            'study_count': (record.get('study_count') or 0) + 1,
            'last_studied': now
        })

    def all_words_with_learned_flag(self, user_id: str) -> list[VocabularyWord]:
        learned = self._learned_ids(user_id)
        return [VocabularyWord.from_dict(row, is_learned=row['id'] in learned)
                for row in vocabulary_in_order(self.storage)]

    def learned_words(self, user_id: str) -> list[VocabularyWord]:
        return [w for w in self.all_words_with_learned_flag(user_id) if w.is_learned]

    def learned_count(self, user_id: str) -> int:
        return self.storage.count(USER_PROGRESS, user_id=user_id, is_learned=True)

    def recently_learned(self, user_id: str) -> list[VocabularyWord]:
        """The current_session * 10 most recently learned words.

        Assumes every completed session learned exactly SESSION_SIZE words, so
        the count overstates the recent set when a session advanced with
        unlearned words.
        """
        session = self.storage.find_one(SESSION_PROGRESS, user_id=user_id)
        if not session or not session.get('current_session'):
            return []
        limit = session['current_session'] * SESSION_SIZE

        records = self.storage.find_many(
            USER_PROGRESS, order_by='last_studied', descending=True,
            user_id=user_id, is_learned=True
        )[:limit]
        words = []
        for record in records:
            row = self.storage.find_one(VOCABULARY, id=record['vocabulary_id'])
            if row is not None:
                words.append(VocabularyWord.from_dict(row, is_learned=True))
        return words

    def session_words(self, user_id: str, session_index: int) -> list[VocabularyWord]:
        if session_index < 0:
            raise ValidationError("Session index must be non-negative")
        return session_window(self.all_words_with_learned_flag(user_id), session_index)

    def log_activity(self, user_id: str, activity_type: str, duration: int) -> dict:
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(f"Invalid activity type: {activity_type}")
        if duration is None or duration < 0:
            raise ValidationError("Duration must be a non-negative number of seconds")
        return self.storage.create(USER_ACTIVITY, {
            'user_id': user_id,
            'type': activity_type,
            'duration': int(duration),
            'created_at': self.clock()
        })

    def reset_all(self, user_id: str) -> None:
        """Wipe progress, completed tests and the activity log for a user."""
        progress = self.storage.delete(USER_PROGRESS, user_id=user_id)
        tests = self.storage.delete(TEST_SESSIONS, user_id=user_id)
        activity = self.storage.delete(USER_ACTIVITY, user_id=user_id)
        logger.info(f"Reset progress for {user_id}: {progress} words, {tests} tests, {activity} activity entries")
