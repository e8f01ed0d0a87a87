"""Daily challenges: four learning steps per day, unlocked in order.

Each UTC day gets four consecutive entries from the 14-step LEARNING_STEPS
cycle, starting at (day_number * 4) mod 14. Completion is tracked per day and
starts empty when the date rolls over.
"""

from datetime import date

from .config import CHALLENGE_EPOCH, CHALLENGES_PER_DAY, LEARNING_STEPS
from .errors import ValidationError
from .interfaces import Storage, DAILY_CHALLENGES
from .utils import utc_date, utc_now


def day_number(today: date) -> int:
    """Days since the challenge epoch. Negative before 2024-01-01."""
    return (today - CHALLENGE_EPOCH).days


def start_index(day: int) -> int:
    return (day * CHALLENGES_PER_DAY) % len(LEARNING_STEPS)


def todays_step_indices(today: date) -> list[int]:
    start = start_index(day_number(today))
    return [(start + offset) % len(LEARNING_STEPS) for offset in range(CHALLENGES_PER_DAY)]


def todays_challenges(today: date) -> list[dict]:
    return [
        {'position': position, 'step_index': step_index, 'step': LEARNING_STEPS[step_index]}
        for position, step_index in enumerate(todays_step_indices(today))
    ]


class DailyChallenge:
    """Challenges and completion state for a single day."""

    def __init__(self, day: date, completed: dict[int, bool] = None):
        self.day = day
        self.step_indices = todays_step_indices(day)
        self.completed = dict(completed or {})

    def is_complete(self, position: int) -> bool:
        return bool(self.completed.get(self.step_indices[position]))

    def is_unlocked(self, position: int) -> bool:
        """Position 0 is always open; later ones need every earlier one done."""
        if not 0 <= position < len(self.step_indices):
            raise ValidationError(f"No daily challenge at position {position}")
        return all(self.is_complete(p) for p in range(position))

    def mark_complete(self, step_index: int) -> None:
        if step_index not in self.step_indices:
            raise ValidationError(f"Step {step_index} is not one of today's challenges")
        position = self.step_indices.index(step_index)
        if not self.is_unlocked(position):
            raise ValidationError(f"Step {step_index} is still locked")
        self.completed[step_index] = True

    @property
    def all_complete(self) -> bool:
        return all(self.is_complete(p) for p in range(len(self.step_indices)))

    def to_dict(self) -> dict:
        return {
            'day': self.day.isoformat(),
            'day_number': day_number(self.day),
            'start_index': start_index(day_number(self.day)),
            'challenges': [
                {
                    **challenge,
                    'completed': self.is_complete(challenge['position']),
                    'unlocked': self.is_unlocked(challenge['position'])
                }
                for challenge in todays_challenges(self.day)
            ],
            'all_complete': self.all_complete
        }


class DailyChallengeService:
    """Loads and saves today's completion map per user."""

    def __init__(self, storage: Storage, clock=utc_now):
        self.storage = storage
        self.clock = clock

    def _today(self) -> date:
        return utc_date(self.clock())

    def _record(self, user_id: str) -> dict | None:
        return self.storage.find_one(DAILY_CHALLENGES, user_id=user_id)

    def today(self, user_id: str) -> DailyChallenge:
        today = self._today()
        record = self._record(user_id)
        if record is None or record.get('day') != today.isoformat():
            return DailyChallenge(today)
        completed = {int(k): bool(v) for k, v in (record.get('completed') or {}).items()}
        return DailyChallenge(today, completed)

    def mark_complete(self, user_id: str, step_index: int) -> DailyChallenge:
        challenge = self.today(user_id)
        challenge.mark_complete(step_index)
        fields = {
            'day': challenge.day.isoformat(),
            'completed': {str(k): v for k, v in challenge.completed.items()}
        }
        record = self._record(user_id)
        if record is None:
            self.storage.create(DAILY_CHALLENGES, {'user_id': user_id, **fields})
        else:
            self.storage.update(DAILY_CHALLENGES, record['id'], fields)
        return challenge
