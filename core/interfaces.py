"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

# Entity names understood by every Storage implementation
USERS = 'users'
VOCABULARY = 'vocabulary'
USER_PROGRESS = 'user_progress'
SESSION_PROGRESS = 'session_progress'
USER_ACTIVITY = 'user_activity'
USER_MISTAKES = 'user_mistakes'
SPEED_CHALLENGE_SCORES = 'speed_challenge_scores'
TEST_SESSIONS = 'test_sessions'
EMAIL_REMINDERS = 'email_reminders'
QUIZ_SESSIONS = 'quiz_sessions'
DAILY_CHALLENGES = 'daily_challenges'

ENTITIES = (
    USERS, VOCABULARY, USER_PROGRESS, SESSION_PROGRESS, USER_ACTIVITY,
    USER_MISTAKES, SPEED_CHALLENGE_SCORES, TEST_SESSIONS, EMAIL_REMINDERS,
    QUIZ_SESSIONS, DAILY_CHALLENGES
)


class Storage(ABC):
    """Generic per-entity record storage.

    Records are plain dicts with a string 'id'. Filters are equality matches
    on field names.
    """

    @abstractmethod
    def find_one(self, entity: str, **filters) -> dict | None:
        """Return the first record matching filters, or None."""
        pass

    @abstractmethod
    def find_many(self, entity: str, order_by: str = None, descending: bool = False,
                  limit: int = None, **filters) -> list[dict]:
        """Return all records matching filters, optionally ordered and limited."""
        pass

    @abstractmethod
    def create(self, entity: str, fields: dict) -> dict:
        """Insert a record. Assigns an id when missing. Returns the stored record."""
        pass

    @abstractmethod
    def update(self, entity: str, record_id: str, fields: dict) -> dict | None:
        """Merge fields into a record. Returns the updated record or None if absent."""
        pass

    @abstractmethod
    def delete(self, entity: str, **filters) -> int:
        """Delete matching records. Returns the number deleted."""
        pass

    @abstractmethod
    def count(self, entity: str, **filters) -> int:
        """Count matching records."""
        pass

    def get_or_create(self, entity: str, defaults: dict = None, **filters) -> tuple[dict, bool]:
        """Find a record by filters or create it from filters + defaults.
        Returns (record, created)."""
        record = self.find_one(entity, **filters)
        if record is not None:
            return record, False
        return self.create(entity, {**(defaults or {}), **filters}), True


class EmailSender(ABC):
    """Outbound email delivery."""

    @abstractmethod
    def send_email(self, to: str, subject: str, html: str) -> None:
        """Send an HTML email. Raises DeliveryError on failure."""
        pass


class SpeechSynthesizer(ABC):
    """Text-to-speech provider."""

    @abstractmethod
    def synthesize(self, text: str) -> bytes:
        """Return MP3 audio for text. Raises ExternalServiceError on failure."""
        pass
