"""Server-side recall tests.

The client only ever sees prompts; canonical answers stay in storage and
every submission is graded here.
"""

import logging
import random

from .config import (
    HINT_AFTER_ATTEMPTS, MISTAKE_QUESTION_WEIGHTS, MISTAKE_TEST_MIN_MISTAKES,
    TEST_MIN_LEARNED_WORDS, TEST_QUESTION_COUNT
)
from .errors import NotFoundError, ValidationError
from .grading import QUESTION_TEST_TYPES, answer_hint, has_real_answer
from .interfaces import Storage, QUIZ_SESSIONS, VOCABULARY
from .mistakes import MistakeTracker
from .models import Question, QuizSession, VocabularyWord
from .progress import ProgressStore
from .stats import StatsAggregator
from .utils import as_utc, utc_now

logger = logging.getLogger(__name__)

# Quiz kinds and the question type each asks
KIND_QUESTION_TYPES = {
    'test': 'english',
    'pinyin-test': 'pinyin',
    'listen-test': 'listen',
}
QUIZ_KINDS = tuple(KIND_QUESTION_TYPES) + ('mistakes',)

LISTEN_PROMPT = 'Listen to the audio and write the pinyin'


def build_question(index: int, word: VocabularyWord, question_type: str) -> Question:
    if question_type == 'english':
        prompt, answer = word.chinese, word.english
    elif question_type == 'pinyin':
        prompt, answer = word.chinese, word.pinyin
    elif question_type == 'listen':
        prompt, answer = LISTEN_PROMPT, word.pinyin
    else:
        raise ValidationError(f"Unknown question type: {question_type}")
    return Question(str(index), question_type, word.id, prompt, answer)


class QuizStore:
    """Loads and saves quiz sessions, scoped to their owner."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def load(self, user_id: str, session_id: str) -> QuizSession:
        record = self.storage.find_one(QUIZ_SESSIONS, id=session_id)
        # Another user's session is reported as missing
        if record is None or record['user_id'] != user_id:
            raise NotFoundError('Quiz session', session_id)
        return QuizSession.from_record(record)

    def create(self, session: QuizSession) -> QuizSession:
        record = self.storage.create(QUIZ_SESSIONS, session.to_record())
        session.id = record['id']
        return session

    def save(self, session: QuizSession) -> None:
        self.storage.update(QUIZ_SESSIONS, session.id, session.to_record())

    def word_for(self, user_id: str, session_id: str, question_id: str) -> VocabularyWord:
        session = self.load(user_id, session_id)
        question = session.get_question(question_id)
        if question is None:
            raise NotFoundError('Question', question_id)
        row = self.storage.find_one(VOCABULARY, id=question.word_id)
        if row is None:
            raise NotFoundError('Vocabulary word', question.word_id)
        return VocabularyWord.from_dict(row)


class QuizService:
    """Starts, grades and finishes translation, pinyin, listening and mistake tests."""

    def __init__(self, storage: Storage, progress: ProgressStore, mistakes: MistakeTracker,
                 stats: StatsAggregator, clock=utc_now, rng: random.Random = None):
        self.storage = storage
        self.quizzes = QuizStore(storage)
        self.progress = progress
        self.mistakes = mistakes
        self.stats = stats
        self.clock = clock
        self.rng = rng or random.Random()

    def _word_pool(self, user_id: str, kind: str, recent: bool) -> list[VocabularyWord]:
        if kind == 'mistakes':
            mistake_ids = self.mistakes.unique_word_ids(user_id)
            return [w for w in self.progress.all_words_with_learned_flag(user_id) if w.id in mistake_ids]
        words = self.progress.recently_learned(user_id) if recent else self.progress.learned_words(user_id)
        if kind == 'test':
            words = [w for w in words if has_real_answer(w.english)]
        return words

    def locked_reason(self, user_id: str, kind: str, recent: bool = False) -> str | None:
        """Why the quiz cannot start yet, or None when it can."""
        if kind not in QUIZ_KINDS:
            raise ValidationError(f"Invalid quiz kind: {kind}")
        if kind == 'mistakes':
            if self.mistakes.count(user_id) < MISTAKE_TEST_MIN_MISTAKES:
                return f"You need at least {MISTAKE_TEST_MIN_MISTAKES} mistakes to take the mistake test."
            return None
        if self.stats.sessions.get(user_id).current_session < 1:
            return "Complete at least 1 session before taking the test."
        if len(self._word_pool(user_id, kind, recent)) < TEST_MIN_LEARNED_WORDS:
            return f"You need at least {TEST_MIN_LEARNED_WORDS} learned words to take the test."
        return None

    def _mistake_question_type(self, word: VocabularyWord) -> str:
        roll = self.rng.random()
        cumulative = 0.0
        question_type = MISTAKE_QUESTION_WEIGHTS[-1][0]
        for name, weight in MISTAKE_QUESTION_WEIGHTS:
            cumulative += weight
            if roll < cumulative:
                question_type = name
                break
        if question_type == 'english' and not has_real_answer(word.english):
            return 'pinyin'
        return question_type

    def start(self, user_id: str, kind: str, recent: bool = False) -> QuizSession | None:
        """Start a quiz. Returns None when the quiz is still locked."""
        reason = self.locked_reason(user_id, kind, recent)
        if reason:
            logger.info(f"Quiz {kind} locked for {user_id}: {reason}")
            return None

        pool = self._word_pool(user_id, kind, recent)
        words = self.rng.sample(pool, min(TEST_QUESTION_COUNT, len(pool)))
        questions = []
        for index, word in enumerate(words):
            if kind == 'mistakes':
                question_type = self._mistake_question_type(word)
            else:
                question_type = KIND_QUESTION_TYPES[kind]
            questions.append(build_question(index, word, question_type))

        session = QuizSession(None, user_id, kind, questions, started_at=self.clock())
        return self.quizzes.create(session)

    def submit_answer(self, user_id: str, session_id: str, question_id: str, raw_input: str) -> dict:
        session = self.quizzes.load(user_id, session_id)
        if session.finished:
            raise ValidationError("Quiz is already finished")
        question = session.get_question(question_id)
        if question is None:
            raise NotFoundError('Question', question_id)
        if question.correct:
            raise ValidationError("Question was already answered correctly")

        correct = question.check(raw_input)
        if not correct and session.kind != 'mistakes':
            self.mistakes.record_mistake(user_id, question.word_id, QUESTION_TEST_TYPES[question.type])
        session.score = session.correct_count
        self.quizzes.save(session)

        result = {
            'question_id': question.id,
            'correct': correct,
            'attempts': question.attempts,
            'score': session.score,
            'completed': session.all_correct
        }
        if not correct and question.attempts >= HINT_AFTER_ATTEMPTS:
            result['hint'] = answer_hint(question.type, question.answer)
        return result

    def finish(self, user_id: str, session_id: str, duration: int = None) -> dict:
        """Close a quiz, log the time spent and count it if every question was solved."""
        session = self.quizzes.load(user_id, session_id)
        if session.finished:
            raise ValidationError("Quiz is already finished")

        now = self.clock()
        if duration is None:
            duration = int((as_utc(now) - as_utc(session.started_at)).total_seconds())
        session.finished_at = now
        session.score = session.correct_count
        self.quizzes.save(session)

        completed = session.all_correct
        if completed:
            self.stats.record_test_completed(user_id)
        try:
            self.progress.log_activity(user_id, 'test', max(0, duration))
        except Exception as e:
            logger.error(f"Failed to log test time for {user_id}: {e}")

        return {
            'id': session.id,
            'score': session.score,
            'total': len(session.questions),
            'completed': completed
        }
