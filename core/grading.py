"""Answer grading for recall tests.

Grading is exact matching on normalized strings. English answers are
compared against every ';'-separated translation of a word; pinyin answers
ignore tone marks and spacing.
"""

from enum import Enum

from .utils import normalize_english, normalize_pinyin, split_answers, strip_parens


class Mode(str, Enum):
    ENGLISH = 'english'
    PINYIN = 'pinyin'


# Question kinds and the mode their answers are graded in
QUESTION_MODES = {
    'english': Mode.ENGLISH,
    'pinyin': Mode.PINYIN,
    'listen': Mode.PINYIN,
    'english-to-pinyin': Mode.PINYIN,
    'pinyin-to-english': Mode.ENGLISH,
}

# Mistake test type recorded for a wrong answer to each question kind
QUESTION_TEST_TYPES = {
    'english': 'test',
    'pinyin': 'pinyin-test',
    'listen': 'listen-test',
}


def normalize(text: str, mode: Mode) -> str:
    if Mode(mode) is Mode.PINYIN:
        return normalize_pinyin(text)
    return normalize_english(text)


def accepted_answers(english: str) -> list[str]:
    """Translations that still have content once parentheticals are removed."""
    return [answer for answer in split_answers(english) if strip_parens(answer)]


def has_real_answer(english: str) -> bool:
    return bool(accepted_answers(english))


def grade(user_input: str, canonical_answer: str, mode: Mode) -> bool:
    """Decide whether user_input matches canonical_answer."""
    if Mode(mode) is Mode.PINYIN:
        return normalize_pinyin(user_input) == normalize_pinyin(canonical_answer)

    answer = normalize_english(user_input)
    candidates = {normalize_english(c) for c in canonical_answer.split(';')}
    candidates.discard('')
    return answer in candidates


def grade_question(question_type: str, user_input: str, canonical_answer: str) -> bool:
    """Grade an answer for a question kind (english, pinyin, listen, ...)."""
    return grade(user_input, canonical_answer, QUESTION_MODES[question_type])


def _mask(text: str) -> str:
    if len(text) <= 1:
        return text
    return text[0] + '•' * (len(text) - 1)


def pinyin_hint(pinyin: str) -> str:
    """First letter of the normalized pinyin, remaining letters masked."""
    return _mask(normalize_pinyin(pinyin))


def answer_hint(question_type: str, canonical_answer: str) -> str:
    if QUESTION_MODES[question_type] is Mode.PINYIN:
        return pinyin_hint(canonical_answer)
    answers = accepted_answers(canonical_answer)
    return _mask(normalize_english(answers[0])) if answers else ''
