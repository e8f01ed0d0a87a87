"""Unit tests for user registration and vocabulary seeding."""

import json
import os
import tempfile
import unittest

from core.errors import ConflictError, NotFoundError, ValidationError
from core.interfaces import VOCABULARY
from core.users import UserService
from core.vocabulary import SEED_VOCABULARY, get_seed_data, load_vocabulary_file, seed_vocabulary
from core.config import DIFFICULTIES
from tests.mocks import MockStorage


class TestUserService(unittest.TestCase):

    def setUp(self):
        self.users = UserService(MockStorage())

    def test_register(self):
        user = self.users.register(' Learner@Example.com ', 'learner')
        self.assertEqual(user['email'], 'learner@example.com')
        self.assertTrue(user['email_reminders_enabled'])
        self.assertEqual(self.users.get(user['id'])['username'], 'learner')
        self.assertTrue(self.users.exists(user['id']))

    def test_duplicate_email_case_insensitive(self):
        self.users.register('learner@example.com', 'a')
        with self.assertRaises(ConflictError):
            self.users.register('LEARNER@example.com', 'b')

    def test_invalid_input(self):
        with self.assertRaises(ValidationError):
            self.users.register('not-an-email', 'x')
        with self.assertRaises(ValidationError):
            self.users.register('a@b.co', '   ')

    def test_unknown_user(self):
        self.assertFalse(self.users.exists('nope'))
        with self.assertRaises(NotFoundError):
            self.users.get('nope')


class TestSeedVocabulary(unittest.TestCase):

    def setUp(self):
        self.storage = MockStorage()

    def test_builtin_seed_is_valid(self):
        data = get_seed_data()
        self.assertEqual(len(data), len(SEED_VOCABULARY))
        self.assertEqual(len({item['chinese'] for item in data}), len(data))
        self.assertTrue(all(item['difficulty'] in DIFFICULTIES for item in data))
        # Enough words to unlock the speed challenge
        self.assertGreaterEqual(len(data), 60)

    def test_seed_assigns_positions_and_skips_duplicates(self):
        self.assertEqual(seed_vocabulary(self.storage), len(SEED_VOCABULARY))
        self.assertEqual(seed_vocabulary(self.storage), 0)
        rows = self.storage.find_many(VOCABULARY, order_by='position')
        self.assertEqual([r['position'] for r in rows], list(range(len(rows))))
        self.assertEqual(rows[0]['chinese'], SEED_VOCABULARY[0][0])

    def test_seed_appends_after_existing(self):
        seed_vocabulary(self.storage, [{'chinese': '水', 'pinyin': 'shuǐ', 'english': 'water'}])
        inserted = seed_vocabulary(self.storage, [
            {'chinese': '水', 'pinyin': 'shuǐ', 'english': 'water'},
            {'chinese': '火', 'pinyin': 'huǒ', 'english': 'fire', 'imageUrl': '/img/fire.png'},
        ])
        self.assertEqual(inserted, 1)
        fire = self.storage.find_one(VOCABULARY, chinese='火')
        self.assertEqual(fire['position'], 1)
        self.assertEqual(fire['difficulty'], 'beginner')
        self.assertEqual(fire['image_url'], '/img/fire.png')

    def test_invalid_items(self):
        with self.assertRaises(ValidationError):
            seed_vocabulary(self.storage, [{'chinese': '火', 'pinyin': '', 'english': 'fire'}])
        with self.assertRaises(ValidationError):
            seed_vocabulary(self.storage, [{'chinese': '火', 'pinyin': 'huǒ', 'english': 'fire',
                                            'difficulty': 'expert'}])

    def test_load_vocabulary_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'vocab.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump([{'chinese': '山', 'pinyin': 'shān', 'english': 'mountain'}], f)
            self.assertEqual(load_vocabulary_file(path)[0]['english'], 'mountain')

            with open(path, 'w', encoding='utf-8') as f:
                json.dump({'chinese': '山'}, f)
            with self.assertRaises(ValidationError):
                load_vocabulary_file(path)


if __name__ == '__main__':
    unittest.main()
