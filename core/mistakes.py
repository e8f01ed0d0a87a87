"""Wrong-answer tracking for the mistake review test."""

import logging
from datetime import timedelta

from .config import MISTAKE_DEDUP_WINDOW_SECONDS, MISTAKE_TEST_MIN_MISTAKES, TEST_TYPES
from .errors import ValidationError
from .interfaces import Storage, USER_MISTAKES, VOCABULARY
from .models import VocabularyWord
from .utils import as_utc, utc_now

logger = logging.getLogger(__name__)


class MistakeTracker:
    """Records wrong answers per (user, word, test type)."""

    def __init__(self, storage: Storage, clock=utc_now):
        self.storage = storage
        self.clock = clock

    def record_mistake(self, user_id: str, word_id: str, test_type: str) -> bool:
        """Record a mistake unless the same one was recorded in the last 5 minutes.
        Returns True if a row was inserted."""
        if test_type not in TEST_TYPES:
            raise ValidationError(f"Invalid test type: {test_type}")

        now = self.clock()
        recent = self.storage.find_many(
            USER_MISTAKES, order_by='created_at', descending=True, limit=1,
            user_id=user_id, word_id=word_id, test_type=test_type
        )
        if recent:
            window = timedelta(seconds=MISTAKE_DEDUP_WINDOW_SECONDS)
            if as_utc(now) - as_utc(recent[0]['created_at']) < window:
                logger.debug(f"Mistake already recorded recently for {user_id}/{word_id}/{test_type}, skipping")
                return False

        self.storage.create(USER_MISTAKES, {
            'user_id': user_id,
            'word_id': word_id,
            'test_type': test_type,
            'created_at': now
        })
        return True

    def list_mistakes(self, user_id: str) -> list[dict]:
        """Mistakes newest first, each with its vocabulary word attached."""
        rows = self.storage.find_many(USER_MISTAKES, order_by='created_at', descending=True,
                                      user_id=user_id)
        mistakes = []
        for row in rows:
            word = self.storage.find_one(VOCABULARY, id=row['word_id'])
            mistakes.append({
                'id': row['id'],
                'word_id': row['word_id'],
                'test_type': row['test_type'],
                'created_at': row['created_at'],
                'word': VocabularyWord.from_dict(word).to_dict() if word else None
            })
        return mistakes

    def count(self, user_id: str) -> int:
        return self.storage.count(USER_MISTAKES, user_id=user_id)

    def unique_word_ids(self, user_id: str) -> set[str]:
        return {row['word_id'] for row in self.storage.find_many(USER_MISTAKES, user_id=user_id)}

    def clear(self, user_id: str) -> None:
        self.storage.delete(USER_MISTAKES, user_id=user_id)

    def mistake_test_unlocked(self, user_id: str) -> bool:
        return self.count(user_id) >= MISTAKE_TEST_MIN_MISTAKES
