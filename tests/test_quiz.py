"""Unit tests for server-side recall tests."""

import random
import unittest
from unittest.mock import MagicMock

from core.errors import NotFoundError, ValidationError
from core.interfaces import USER_MISTAKES, USER_ACTIVITY, TEST_SESSIONS, VOCABULARY
from core.mistakes import MistakeTracker
from core.progress import ProgressStore
from core.quiz import LISTEN_PROMPT, QuizService
from core.sessions import SessionProgressEngine
from core.stats import StatsAggregator
from tests.mocks import MockStorage, FakeClock, add_user, add_words


class QuizTestCase(unittest.TestCase):

    def setUp(self):
        self.storage = MockStorage()
        self.clock = FakeClock()
        self.progress = ProgressStore(self.storage, self.clock)
        self.sessions = SessionProgressEngine(self.storage, self.clock)
        self.mistakes = MistakeTracker(self.storage, self.clock)
        self.stats = StatsAggregator(self.storage, self.sessions, self.clock)
        self.quizzes = QuizService(self.storage, self.progress, self.mistakes, self.stats,
                                   self.clock, random.Random(11))
        self.user_id = add_user(self.storage)['id']
        self.words = add_words(self.storage, 20)

    def learn(self, words):
        for word in words:
            self.clock.advance(seconds=1)
            self.progress.mark_learned(self.user_id, word['id'])

    def unlock_tests(self):
        self.learn(self.words[:10])
        self.sessions.update(self.user_id, current_session=1)


class TestQuizGates(QuizTestCase):

    def test_needs_a_completed_session(self):
        self.learn(self.words[:10])
        self.assertIsNone(self.quizzes.start(self.user_id, 'test'))
        self.assertIn('session', self.quizzes.locked_reason(self.user_id, 'test'))

    def test_needs_ten_learned_words(self):
        self.learn(self.words[:9])
        self.sessions.update(self.user_id, current_session=1)
        self.assertIsNone(self.quizzes.start(self.user_id, 'pinyin-test'))

    def test_translation_test_skips_parenthetical_only_words(self):
        particle = self.storage.create(VOCABULARY, {
            'chinese': '的', 'pinyin': 'de', 'english': '(possessive particle)',
            'difficulty': 'beginner', 'position': 99
        })
        self.learn(self.words[:9] + [particle])
        self.sessions.update(self.user_id, current_session=1)
        self.assertIsNone(self.quizzes.start(self.user_id, 'test'))
        self.assertIsNotNone(self.quizzes.start(self.user_id, 'pinyin-test'))

    def test_unknown_kind(self):
        with self.assertRaises(ValidationError):
            self.quizzes.start(self.user_id, 'speed')

    def test_mistake_test_needs_ten_mistakes(self):
        for word in self.words[:9]:
            self.mistakes.record_mistake(self.user_id, word['id'], 'test')
        self.assertIsNone(self.quizzes.start(self.user_id, 'mistakes'))
        self.mistakes.record_mistake(self.user_id, self.words[9]['id'], 'test')
        self.assertIsNotNone(self.quizzes.start(self.user_id, 'mistakes'))


class TestQuizFlow(QuizTestCase):

    def test_translation_questions(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        self.assertEqual(len(session.questions), 10)
        learned = {w['id']: w for w in self.words[:10]}
        for question in session.questions:
            self.assertEqual(question.type, 'english')
            self.assertEqual(question.prompt, learned[question.word_id]['chinese'])

    def test_listen_prompt_hides_characters(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'listen-test')
        self.assertTrue(all(q.prompt == LISTEN_PROMPT for q in session.questions))
        self.assertNotIn('answer', session.public_dict()['questions'][0])

    def test_recent_draws_from_recently_learned(self):
        self.learn(self.words)
        self.sessions.update(self.user_id, current_session=1)
        session = self.quizzes.start(self.user_id, 'pinyin-test', recent=True)
        recent_ids = {w['id'] for w in self.words[10:]}
        self.assertTrue(all(q.word_id in recent_ids for q in session.questions))

    def test_wrong_answer_records_mistake_and_hints(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'pinyin-test')
        question = session.questions[0]

        result = self.quizzes.submit_answer(self.user_id, session.id, question.id, 'nope')
        self.assertFalse(result['correct'])
        self.assertNotIn('hint', result)
        mistake = self.storage.find_one(USER_MISTAKES, user_id=self.user_id)
        self.assertEqual(mistake['test_type'], 'pinyin-test')
        self.assertEqual(mistake['word_id'], question.word_id)

        self.quizzes.submit_answer(self.user_id, session.id, question.id, 'nope')
        result = self.quizzes.submit_answer(self.user_id, session.id, question.id, 'nope')
        self.assertEqual(result['attempts'], 3)
        self.assertEqual(result['hint'], 'z' + '•' * (len(question.answer.replace(' ', '')) - 1))
        # Repeats inside the window are not stored again
        self.assertEqual(self.storage.count(USER_MISTAKES), 1)

    def test_correct_answer_closes_question(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        question = session.questions[0]
        answer = question.answer.split(';')[0]
        result = self.quizzes.submit_answer(self.user_id, session.id, question.id, answer.upper())
        self.assertTrue(result['correct'])
        self.assertEqual(result['score'], 1)
        with self.assertRaises(ValidationError):
            self.quizzes.submit_answer(self.user_id, session.id, question.id, answer)

    def test_unknown_question_and_foreign_session(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        with self.assertRaises(NotFoundError):
            self.quizzes.submit_answer(self.user_id, session.id, 'missing', 'x')
        other = add_user(self.storage, email='other@example.com')
        with self.assertRaises(NotFoundError):
            self.quizzes.submit_answer(other['id'], session.id, session.questions[0].id, 'x')

    def _answer_all(self, session):
        for question in session.questions:
            answer = question.answer.split(';')[0] if question.type == 'english' else question.answer
            self.quizzes.submit_answer(self.user_id, session.id, question.id, answer)

    def test_finish_all_correct_counts_test(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        self._answer_all(session)
        self.clock.advance(seconds=95)
        result = self.quizzes.finish(self.user_id, session.id)
        self.assertTrue(result['completed'])
        self.assertEqual(result['score'], 10)
        self.assertEqual(self.storage.count(TEST_SESSIONS, user_id=self.user_id), 1)
        self.assertEqual(self.sessions.get(self.user_id).current_session, 2)
        activity = self.storage.find_one(USER_ACTIVITY, user_id=self.user_id)
        self.assertEqual(activity['type'], 'test')
        self.assertGreaterEqual(activity['duration'], 95)

        with self.assertRaises(ValidationError):
            self.quizzes.finish(self.user_id, session.id)

    def test_finish_incomplete_is_not_counted(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        result = self.quizzes.finish(self.user_id, session.id, duration=30)
        self.assertFalse(result['completed'])
        self.assertEqual(self.storage.count(TEST_SESSIONS), 0)
        self.assertEqual(self.sessions.get(self.user_id).current_session, 1)
        self.assertEqual(self.storage.find_one(USER_ACTIVITY)['duration'], 30)

    def test_activity_log_failure_does_not_fail_finish(self):
        self.unlock_tests()
        session = self.quizzes.start(self.user_id, 'test')
        self.progress.log_activity = MagicMock(side_effect=RuntimeError('db down'))
        result = self.quizzes.finish(self.user_id, session.id, duration=10)
        self.assertFalse(result['completed'])
        self.progress.log_activity.assert_called_once()


class TestMistakeQuiz(QuizTestCase):

    def setUp(self):
        super().setUp()
        for word in self.words[:12]:
            self.mistakes.record_mistake(self.user_id, word['id'], 'test')

    def test_questions_from_mistake_words(self):
        session = self.quizzes.start(self.user_id, 'mistakes')
        mistake_ids = {w['id'] for w in self.words[:12]}
        self.assertEqual(len(session.questions), 10)
        self.assertEqual(len({q.word_id for q in session.questions}), 10)
        for question in session.questions:
            self.assertIn(question.word_id, mistake_ids)
            self.assertIn(question.type, ('english', 'pinyin', 'listen'))

    def test_question_type_mix(self):
        word = self.progress.get_word(self.words[0]['id'])
        counts = {'english': 0, 'pinyin': 0, 'listen': 0}
        for _ in range(1000):
            counts[self.quizzes._mistake_question_type(word)] += 1
        self.assertTrue(300 < counts['english'] < 500)
        self.assertTrue(300 < counts['pinyin'] < 500)
        self.assertTrue(120 < counts['listen'] < 280)

    def test_wrong_answers_not_recorded_again(self):
        session = self.quizzes.start(self.user_id, 'mistakes')
        self.clock.advance(minutes=10)
        before = self.mistakes.count(self.user_id)
        self.quizzes.submit_answer(self.user_id, session.id, session.questions[0].id, 'wrong')
        self.assertEqual(self.mistakes.count(self.user_id), before)


if __name__ == '__main__':
    unittest.main()
