"""Speed challenge: answer as many questions as possible in 60 seconds."""

import logging
import random

from .config import (
    SPEED_CHALLENGE_MAX_QUESTIONS, SPEED_CHALLENGE_MIN_LEARNED_WORDS,
    SPEED_CHALLENGE_SAMPLE_WORDS, SPEED_CHALLENGE_SECONDS
)
from .errors import NotFoundError, ValidationError
from .grading import accepted_answers
from .interfaces import Storage, SPEED_CHALLENGE_SCORES
from .models import HighScore, Question, QuizSession, VocabularyWord
from .progress import ProgressStore
from .quiz import QuizStore
from .utils import as_utc, split_answers, utc_now

logger = logging.getLogger(__name__)

SPEED_KIND = 'speed'


def build_speed_questions(words: list[VocabularyWord], rng: random.Random) -> list[Question]:
    """Up to 30 shuffled questions from up to 50 sampled words."""
    selected = rng.sample(words, min(SPEED_CHALLENGE_SAMPLE_WORDS, len(words)))
    questions = []
    for word in selected:
        answers = split_answers(word.english)
        questions.append(Question(
            str(len(questions)), 'english-to-pinyin', word.id,
            prompt=answers[0] if answers else word.english.strip(),
            answer=word.pinyin
        ))
        # Graded against every translation; only offered when one has content outside brackets
        if accepted_answers(word.english):
            questions.append(Question(
                str(len(questions)), 'pinyin-to-english', word.id,
                prompt=word.pinyin,
                answer=word.english
            ))
    rng.shuffle(questions)
    return questions[:SPEED_CHALLENGE_MAX_QUESTIONS]


class SpeedChallengeScorer:
    """Runs timed speed challenge sessions and keeps score history."""

    def __init__(self, storage: Storage, progress: ProgressStore, clock=utc_now,
                 rng: random.Random = None):
        self.storage = storage
        self.quizzes = QuizStore(storage)
        self.progress = progress
        self.clock = clock
        self.rng = rng or random.Random()

    def is_unlocked(self, user_id: str) -> bool:
        return self.progress.learned_count(user_id) >= SPEED_CHALLENGE_MIN_LEARNED_WORDS

    def start(self, user_id: str) -> QuizSession | None:
        """Start a challenge, or return None while fewer than 60 words are learned."""
        if not self.is_unlocked(user_id):
            return None
        questions = build_speed_questions(self.progress.learned_words(user_id), self.rng)
        session = QuizSession(None, user_id, SPEED_KIND, questions, started_at=self.clock())
        return self.quizzes.create(session)

    def _load(self, user_id: str, session_id: str) -> QuizSession:
        session = self.quizzes.load(user_id, session_id)
        if session.kind != SPEED_KIND:
            raise NotFoundError('Speed challenge', session_id)
        return session

    def elapsed_seconds(self, session: QuizSession) -> int:
        elapsed = (as_utc(self.clock()) - as_utc(session.started_at)).total_seconds()
        return max(0, min(SPEED_CHALLENGE_SECONDS, int(elapsed)))

    def remaining_seconds(self, session: QuizSession) -> int:
        return SPEED_CHALLENGE_SECONDS - self.elapsed_seconds(session)

    def submit_answer(self, user_id: str, session_id: str, question_id: str,
                      raw_input: str = None, skip: bool = False) -> dict:
        session = self._load(user_id, session_id)
        if session.finished:
            raise ValidationError("Speed challenge is already finished")
        if self.remaining_seconds(session) <= 0:
            raise ValidationError("Time is up")
        question = session.get_question(question_id)
        if question is None:
            raise NotFoundError('Question', question_id)
        if question.answered:
            raise ValidationError("Question was already answered")

        if skip:
            question.skip()
            correct = False
        else:
            correct = question.check(raw_input or '')
        session.score = session.correct_count
        self.quizzes.save(session)
        return {
            'question_id': question.id,
            'correct': correct,
            'score': session.score,
            'remaining': self.remaining_seconds(session),
            'exhausted': session.exhausted
        }

    def finish(self, user_id: str, session_id: str) -> dict:
        """Close the challenge on expiry or exhaustion and store the score."""
        session = self._load(user_id, session_id)
        if session.finished:
            raise ValidationError("Speed challenge is already finished")
        time_used = self.elapsed_seconds(session)
        session.finished_at = self.clock()
        session.score = session.correct_count
        self.quizzes.save(session)
        return self.save_score(user_id, session.score, time_used)

    def high_score(self, user_id: str) -> HighScore:
        """Best attempt: highest score, ties broken by the shorter time."""
        rows = self.storage.find_many(SPEED_CHALLENGE_SCORES, user_id=user_id)
        if not rows:
            return HighScore()
        best = min(rows, key=lambda r: (-r['score'], r['time_used']))
        return HighScore(high_score=best['score'], best_time=best['time_used'])

    def save_score(self, user_id: str, score: int, time_used: int) -> dict:
        if score < 0:
            raise ValidationError("Score must be non-negative")
        if not 0 <= time_used <= SPEED_CHALLENGE_SECONDS:
            raise ValidationError(f"Time used must be between 0 and {SPEED_CHALLENGE_SECONDS} seconds")

        try:
            previous = self.high_score(user_id)
        except Exception as e:
            logger.error(f"Failed to load high score for {user_id}: {e}")
            previous = None

        self.storage.create(SPEED_CHALLENGE_SCORES, {
            'user_id': user_id,
            'score': score,
            'time_used': time_used,
            'created_at': self.clock()
        })
        new_high_score = previous.beats(score, time_used) if previous else False
        return {
            'score': score,
            'time_used': time_used,
            'new_high_score': new_high_score,
            'previous_high_score': previous.high_score if previous else None
        }
