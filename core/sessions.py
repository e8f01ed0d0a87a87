"""Session progress: which 10-word session each user is on."""

import logging

from .errors import ValidationError
from .interfaces import Storage, SESSION_PROGRESS, VOCABULARY, USER_PROGRESS
from .models import SessionProgress
from .progress import session_window, vocabulary_in_order
from .utils import total_sessions_for, utc_now

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('current_session', 'total_study_time')


class SessionProgressEngine:
    """Persists the per-user session counter.

    total_sessions is derived from the vocabulary size and refreshed on every
    read and write. Concurrent updates for the same user are last-write-wins.
    """

    def __init__(self, storage: Storage, clock=utc_now):
        self.storage = storage
        self.clock = clock

    def _total_sessions(self) -> int:
        return total_sessions_for(self.storage.count(VOCABULARY))

    def get(self, user_id: str) -> SessionProgress:
        total = self._total_sessions()
        record, created = self.storage.get_or_create(
            SESSION_PROGRESS,
            defaults={
                'current_session': 0,
                'total_sessions': total,
                'total_study_time': 0,
                'last_studied': self.clock()
            },
            user_id=user_id
        )
        if not created and record.get('total_sessions') != total:
            record = self.storage.update(SESSION_PROGRESS, record['id'], {'total_sessions': total})
        return SessionProgress.from_dict(record)

    def update(self, user_id: str, **fields) -> SessionProgress:
        """Merge current_session / total_study_time into the user's row."""
        changes = {}
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS:
                raise ValidationError(f"Field {name} cannot be updated")
            if value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer")
            changes[name] = value

        changes['total_sessions'] = self._total_sessions()
        changes['last_studied'] = self.clock()

        record = self.storage.find_one(SESSION_PROGRESS, user_id=user_id)
        if record is None:
            record = self.storage.create(SESSION_PROGRESS, {
                'user_id': user_id,
                'current_session': 0,
                'total_study_time': 0,
                **changes
            })
        else:
            record = self.storage.update(SESSION_PROGRESS, record['id'], changes)
        return SessionProgress.from_dict(record)

    def reset(self, user_id: str) -> None:
        self.storage.delete(SESSION_PROGRESS, user_id=user_id)

    def advance(self, user_id: str) -> SessionProgress:
        current = self.get(user_id).current_session
        logger.info(f"Advancing {user_id} from session {current} to {current + 1}")
        return self.update(user_id, current_session=current + 1)

    def current_window_learned(self, user_id: str) -> bool:
        """Whether every word in the user's current session window is learned."""
        current = self.get(user_id).current_session
        window = session_window(vocabulary_in_order(self.storage), current)
        if not window:
            return False
        learned = {r['vocabulary_id'] for r in
                   self.storage.find_many(USER_PROGRESS, user_id=user_id, is_learned=True)}
        return all(row['id'] in learned for row in window)

    def complete_session(self, user_id: str) -> tuple[SessionProgress, bool]:
        """Advance only if the current window is fully learned.
        Returns (progress, advanced)."""
        if not self.current_window_learned(user_id):
            return self.get(user_id), False
        return self.advance(user_id), True
