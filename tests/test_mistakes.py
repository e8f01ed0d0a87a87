"""Unit tests for the mistake tracker."""

import unittest

from core.errors import ValidationError
from core.interfaces import USER_MISTAKES
from core.mistakes import MistakeTracker
from tests.mocks import MockStorage, FakeClock, add_user, add_words


class TestRecordMistake(unittest.TestCase):

    def setUp(self):
        self.storage = MockStorage()
        self.clock = FakeClock()
        self.tracker = MistakeTracker(self.storage, self.clock)
        self.user = add_user(self.storage)
        self.words = add_words(self.storage, 3)

    def test_duplicate_within_five_minutes_is_ignored(self):
        word_id = self.words[0]['id']
        self.assertTrue(self.tracker.record_mistake(self.user['id'], word_id, 'test'))
        self.clock.advance(minutes=4, seconds=59)
        self.assertFalse(self.tracker.record_mistake(self.user['id'], word_id, 'test'))
        self.assertEqual(self.storage.count(USER_MISTAKES), 1)

    def test_five_minutes_apart_records_twice(self):
        word_id = self.words[0]['id']
        self.tracker.record_mistake(self.user['id'], word_id, 'test')
        self.clock.advance(minutes=5)
        self.assertTrue(self.tracker.record_mistake(self.user['id'], word_id, 'test'))
        self.assertEqual(self.storage.count(USER_MISTAKES), 2)

    def test_window_is_per_test_type_and_word(self):
        word_id = self.words[0]['id']
        self.tracker.record_mistake(self.user['id'], word_id, 'test')
        self.assertTrue(self.tracker.record_mistake(self.user['id'], word_id, 'pinyin-test'))
        self.assertTrue(self.tracker.record_mistake(self.user['id'], self.words[1]['id'], 'test'))
        self.assertEqual(self.tracker.count(self.user['id']), 3)

    def test_window_compares_against_latest_row(self):
        word_id = self.words[0]['id']
        self.tracker.record_mistake(self.user['id'], word_id, 'listen-test')
        self.clock.advance(minutes=6)
        self.tracker.record_mistake(self.user['id'], word_id, 'listen-test')
        self.clock.advance(minutes=2)
        self.assertFalse(self.tracker.record_mistake(self.user['id'], word_id, 'listen-test'))

    def test_invalid_test_type(self):
        with self.assertRaises(ValidationError):
            self.tracker.record_mistake(self.user['id'], self.words[0]['id'], 'speed')

    def test_storage_failure_propagates(self):
        self.storage.fail_on.add(USER_MISTAKES)
        with self.assertRaises(RuntimeError):
            self.tracker.record_mistake(self.user['id'], self.words[0]['id'], 'test')


class TestMistakeQueries(unittest.TestCase):

    def setUp(self):
        self.storage = MockStorage()
        self.clock = FakeClock()
        self.tracker = MistakeTracker(self.storage, self.clock)
        self.user = add_user(self.storage)
        self.other = add_user(self.storage, email='other@example.com')
        self.words = add_words(self.storage, 3)

    def test_unique_word_ids(self):
        uid = self.user['id']
        self.tracker.record_mistake(uid, self.words[0]['id'], 'test')
        self.tracker.record_mistake(uid, self.words[0]['id'], 'pinyin-test')
        self.tracker.record_mistake(uid, self.words[2]['id'], 'test')
        self.tracker.record_mistake(self.other['id'], self.words[1]['id'], 'test')
        self.assertEqual(self.tracker.unique_word_ids(uid), {self.words[0]['id'], self.words[2]['id']})

    def test_list_mistakes_newest_first_with_word(self):
        uid = self.user['id']
        self.tracker.record_mistake(uid, self.words[0]['id'], 'test')
        self.clock.advance(minutes=1)
        self.tracker.record_mistake(uid, self.words[1]['id'], 'test')
        mistakes = self.tracker.list_mistakes(uid)
        self.assertEqual([m['word_id'] for m in mistakes], [self.words[1]['id'], self.words[0]['id']])
        self.assertEqual(mistakes[0]['word']['chinese'], self.words[1]['chinese'])

    def test_clear_only_affects_user(self):
        self.tracker.record_mistake(self.user['id'], self.words[0]['id'], 'test')
        self.tracker.record_mistake(self.other['id'], self.words[0]['id'], 'test')
        self.tracker.clear(self.user['id'])
        self.assertEqual(self.tracker.count(self.user['id']), 0)
        self.assertEqual(self.tracker.count(self.other['id']), 1)

    def test_mistake_test_unlocks_at_ten(self):
        uid = self.user['id']
        words = add_words(self.storage, 10, start=100)
        for word in words[:9]:
            self.tracker.record_mistake(uid, word['id'], 'test')
        self.assertFalse(self.tracker.mistake_test_unlocked(uid))
        self.tracker.record_mistake(uid, words[9]['id'], 'test')
        self.assertTrue(self.tracker.mistake_test_unlocked(uid))


if __name__ == '__main__':
    unittest.main()
