from .models import (
    VocabularyWord, SessionProgress, LearningStats, HighScore,
    Question, QuizSession, ReminderSweepResult
)
from .interfaces import Storage, EmailSender, SpeechSynthesizer
from .errors import (
    HanyuError, NotFoundError, ValidationError, ConflictError,
    DeliveryError, ExternalServiceError
)
from .grading import Mode, normalize, grade
from .config import SESSION_SIZE, TEST_TYPES, LEARNING_STEPS

__all__ = [
    'VocabularyWord', 'SessionProgress', 'LearningStats', 'HighScore',
    'Question', 'QuizSession', 'ReminderSweepResult',
    'Storage', 'EmailSender', 'SpeechSynthesizer',
    'HanyuError', 'NotFoundError', 'ValidationError', 'ConflictError',
    'DeliveryError', 'ExternalServiceError',
    'Mode', 'normalize', 'grade',
    'SESSION_SIZE', 'TEST_TYPES', 'LEARNING_STEPS'
]
