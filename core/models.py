"""Domain models for hanyu application."""

from dataclasses import dataclass
from datetime import datetime

from .config import DEFAULT_DIFFICULTY, DIFFICULTIES
from .grading import grade_question


class VocabularyWord:
    """A seeded vocabulary entry, optionally carrying a user's learned flag."""

    def __init__(self, id: str, chinese: str, pinyin: str, english: str,
                 difficulty: str = DEFAULT_DIFFICULTY, image_url: str = '',
                 position: int = 0, is_learned: bool = False):
        self.id = id
        self.chinese = chinese
        self.pinyin = pinyin
        self.english = english
        self.difficulty = difficulty
        self.image_url = image_url
        self.position = position
        self.is_learned = is_learned

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'chinese': self.chinese,
            'pinyin': self.pinyin,
            'english': self.english,
            'difficulty': self.difficulty,
            'image_url': self.image_url,
            'position': self.position,
            'is_learned': self.is_learned
        }

    @classmethod
    def from_dict(cls, data: dict, is_learned: bool = None) -> 'VocabularyWord':
        return cls(
            id=data['id'],
            chinese=data['chinese'],
            pinyin=data['pinyin'],
            english=data['english'],
            difficulty=data.get('difficulty') or DEFAULT_DIFFICULTY,
            image_url=data.get('image_url') or '',
            position=data.get('position') or 0,
            is_learned=data.get('is_learned', False) if is_learned is None else is_learned
        )


class SessionProgress:
    """Which 10-word session a user is on."""

    def __init__(self, user_id: str, current_session: int = 0, total_sessions: int = 0,
                 total_study_time: int = 0, last_studied: datetime = None):
        self.user_id = user_id
        self.current_session = current_session
        self.total_sessions = total_sessions
        self.total_study_time = total_study_time
        self.last_studied = last_studied

    @property
    def has_progress(self) -> bool:
        return self.current_session > 0

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'current_session': self.current_session,
            'total_sessions': self.total_sessions,
            'total_study_time': self.total_study_time,
            'last_studied': self.last_studied,
            'has_progress': self.has_progress
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SessionProgress':
        return cls(
            user_id=data['user_id'],
            current_session=data.get('current_session') or 0,
            total_sessions=data.get('total_sessions') or 0,
            total_study_time=data.get('total_study_time') or 0,
            last_studied=data.get('last_studied')
        )


@dataclass(frozen=True)
class DifficultyCount:
    total: int
    learned: int


@dataclass(frozen=True)
class LearningStats:
    """Read-only stats snapshot for the dashboard."""
    total_words: int
    learned_words: int
    current_streak: int
    total_study_time: int
    difficulty_counts: dict
    tests_completed: int

    def to_dict(self) -> dict:
        return {
            'total_words': self.total_words,
            'learned_words': self.learned_words,
            'current_streak': self.current_streak,
            'total_study_time': self.total_study_time,
            'difficulty_counts': {
                level: {'total': self.difficulty_counts[level].total,
                        'learned': self.difficulty_counts[level].learned}
                for level in DIFFICULTIES
            },
            'tests_completed': self.tests_completed
        }


@dataclass(frozen=True)
class HighScore:
    high_score: int = 0
    best_time: int | None = None

    def beats(self, score: int, time_used: int) -> bool:
        """Whether (score, time_used) would replace this high score."""
        if score > self.high_score:
            return True
        return (score == self.high_score and score > 0
                and self.best_time is not None and time_used < self.best_time)


class Question:
    """A single quiz question. The answer never leaves the server before grading."""

    def __init__(self, id: str, type: str, word_id: str, prompt: str, answer: str,
                 attempts: int = 0, correct: bool = False, answered: bool = False):
        self.id = id
        self.type = type
        self.word_id = word_id
        self.prompt = prompt
        self.answer = answer
        self.attempts = attempts
        self.correct = correct
        self.answered = answered

    def check(self, raw_input: str) -> bool:
        """Grade an attempt. The question is done once answered correctly."""
        self.attempts += 1
        is_correct = grade_question(self.type, raw_input, self.answer)
        if is_correct:
            self.correct = True
            self.answered = True
        return is_correct

    def skip(self) -> None:
        self.answered = True

    def public_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type,
            'word_id': self.word_id,
            'prompt': self.prompt,
            'answered': self.answered,
            'correct': self.correct
        }

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type,
            'word_id': self.word_id,
            'prompt': self.prompt,
            'answer': self.answer,
            'attempts': self.attempts,
            'correct': self.correct,
            'answered': self.answered
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Question':
        return cls(
            id=data['id'],
            type=data['type'],
            word_id=data['word_id'],
            prompt=data['prompt'],
            answer=data['answer'],
            attempts=data.get('attempts', 0),
            correct=data.get('correct', False),
            answered=data.get('answered', False)
        )


class QuizSession:
    """A server-side test or speed challenge run."""

    def __init__(self, id: str, user_id: str, kind: str, questions: list[Question],
                 started_at: datetime, finished_at: datetime = None, score: int = 0):
        self.id = id
        self.user_id = user_id
        self.kind = kind
        self.questions = questions
        self.started_at = started_at
        self.finished_at = finished_at
        self.score = score

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def correct_count(self) -> int:
        return sum(1 for q in self.questions if q.correct)

    @property
    def all_correct(self) -> bool:
        return bool(self.questions) and all(q.correct for q in self.questions)

    @property
    def exhausted(self) -> bool:
        return all(q.answered for q in self.questions)

    def get_question(self, question_id: str) -> Question | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    def public_dict(self) -> dict:
        return {
            'id': self.id,
            'kind': self.kind,
            'questions': [q.public_dict() for q in self.questions],
            'started_at': self.started_at,
            'finished': self.finished,
            'score': self.score
        }

    def to_record(self) -> dict:
        return {
            'user_id': self.user_id,
            'kind': self.kind,
            'questions': [q.to_dict() for q in self.questions],
            'started_at': self.started_at,
            'finished_at': self.finished_at,
            'score': self.score
        }

    @classmethod
    def from_record(cls, data: dict) -> 'QuizSession':
        return cls(
            id=data['id'],
            user_id=data['user_id'],
            kind=data['kind'],
            questions=[Question.from_dict(q) for q in data.get('questions') or []],
            started_at=data['started_at'],
            finished_at=data.get('finished_at'),
            score=data.get('score') or 0
        )


@dataclass
class ReminderSweepResult:
    checked: int = 0
    sent: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {'checked': self.checked, 'sent': self.sent, 'failed': self.failed}
