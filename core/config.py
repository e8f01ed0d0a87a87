"""Configuration constants for hanyu application."""

from datetime import date

# Study sessions
SESSION_SIZE = 10             # Words per study session

# Vocabulary
DIFFICULTIES = ('beginner', 'intermediate', 'advanced')
DEFAULT_DIFFICULTY = 'beginner'

# Activity log
ACTIVITY_TYPES = ('study', 'test')

# Mistake tracking
TEST_TYPES = ('test', 'pinyin-test', 'listen-test')
MISTAKE_DEDUP_WINDOW_SECONDS = 5 * 60  # Same mistake inside this window is not recorded again
MISTAKE_TEST_MIN_MISTAKES = 10         # Mistakes needed before the mistake test unlocks

# Recall tests
TEST_QUESTION_COUNT = 10
TEST_MIN_LEARNED_WORDS = 10
MISTAKE_QUESTION_WEIGHTS = (('english', 0.4), ('pinyin', 0.4), ('listen', 0.2))
HINT_AFTER_ATTEMPTS = 3       # Wrong attempts before a masked hint is returned

# Speed challenge
SPEED_CHALLENGE_SECONDS = 60
SPEED_CHALLENGE_MAX_QUESTIONS = 30
SPEED_CHALLENGE_SAMPLE_WORDS = 50
SPEED_CHALLENGE_MIN_LEARNED_WORDS = 60

# Daily challenges
CHALLENGE_EPOCH = date(2024, 1, 1)
CHALLENGES_PER_DAY = 4
LEARNING_STEPS = (
    'study', 'study', 'test', 'pinyin-test', 'listen',
    'study', 'study', 'test', 'pinyin-test',
    'study', 'study', 'test', 'pinyin-test', 'mistakes',
)

# Email reminders
DEFAULT_FRONTEND_URL = 'http://localhost:3000'
