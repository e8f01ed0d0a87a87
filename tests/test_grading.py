"""Unit tests for answer normalization and grading."""

import unittest

from core.grading import (
    Mode, normalize, grade, grade_question, accepted_answers, has_real_answer,
    pinyin_hint, answer_hint
)
from core.utils import normalize_english, normalize_pinyin, strip_parens, split_answers


class TestNormalizeEnglish(unittest.TestCase):

    def test_strips_parentheticals(self):
        self.assertEqual(strip_parens('to be (located)  here'), 'to be here')
        self.assertEqual(normalize_english('Hello (greeting)'), 'hello')

    def test_curly_quotes_then_punctuation(self):
        self.assertEqual(normalize_english('Don’t!'), 'dont')
        self.assertEqual(normalize_english("don't"), 'dont')

    def test_collapses_whitespace(self):
        self.assertEqual(normalize_english('  thank    you  '), 'thank you')

    def test_punctuation_removed(self):
        self.assertEqual(normalize_english('yes, sir.'), 'yes sir')
        self.assertEqual(normalize_english('what?!'), 'what')


class TestNormalizePinyin(unittest.TestCase):

    def test_tone_marks_folded(self):
        self.assertEqual(normalize_pinyin('nǐ hǎo'), 'nihao')
        self.assertEqual(normalize_pinyin('lǜ'), 'lu')
        self.assertEqual(normalize_pinyin('ńg'), 'ng')
        self.assertEqual(normalize_pinyin('ḿ'), 'm')

    def test_all_whitespace_removed(self):
        self.assertEqual(normalize_pinyin(' Zhōng \t guó '), 'zhongguo')


class TestNormalizeIdempotence(unittest.TestCase):

    SAMPLES = [
        '', ' ', 'Hello (greeting); Hi', 'Don’t stop!', '“quoted”', 'a  b   c',
        'nǐ hǎo', 'LǙ YÓU', '(only parens)', "it's", 'x (y) z (w)', '...', 'ǖǘǚǜ',
        '(a\nb) c', 'line one\n(two\nlines) end',
    ]

    def test_english_idempotent(self):
        for sample in self.SAMPLES:
            once = normalize(sample, Mode.ENGLISH)
            self.assertEqual(normalize(once, Mode.ENGLISH), once, sample)

    def test_pinyin_idempotent(self):
        for sample in self.SAMPLES:
            once = normalize(sample, Mode.PINYIN)
            self.assertEqual(normalize(once, Mode.PINYIN), once, sample)

    def test_mode_accepts_plain_strings(self):
        self.assertEqual(normalize('Nǐ', 'pinyin'), 'ni')


class TestGrade(unittest.TestCase):

    def test_pinyin_without_tones(self):
        self.assertTrue(grade('nihao', 'nǐhǎo', Mode.PINYIN))

    def test_pinyin_internal_spaces_ignored(self):
        self.assertTrue(grade('ni hao', 'nǐhǎo', Mode.PINYIN))
        self.assertTrue(grade('nihao', 'nǐ hǎo', Mode.PINYIN))

    def test_pinyin_wrong_syllable(self):
        self.assertFalse(grade('nihau', 'nǐ hǎo', Mode.PINYIN))

    def test_english_matches_candidate(self):
        self.assertTrue(grade('hello', 'Hello (greeting); Hi', Mode.ENGLISH))
        self.assertTrue(grade('HI', 'Hello (greeting); Hi', Mode.ENGLISH))

    def test_english_parenthetical_is_not_an_answer(self):
        self.assertFalse(grade('greeting', 'Hello (greeting); Hi', Mode.ENGLISH))

    def test_english_multiline_parenthetical_removed(self):
        self.assertTrue(grade('(x\ny) hello', 'hello', Mode.ENGLISH))
        self.assertEqual(normalize('(a\nb) c', Mode.ENGLISH), 'c')

    def test_english_no_fuzzy_matching(self):
        self.assertFalse(grade('helo', 'hello', Mode.ENGLISH))
        self.assertFalse(grade('hello there', 'hello', Mode.ENGLISH))

    def test_empty_input_never_matches_parenthetical_only_answer(self):
        self.assertFalse(grade('', '(plural marker)', Mode.ENGLISH))
        self.assertFalse(grade('', 'hello;', Mode.ENGLISH))

    def test_english_punctuation_and_quotes(self):
        self.assertTrue(grade('dont', "don't", Mode.ENGLISH))
        self.assertTrue(grade('don’t', "don't", Mode.ENGLISH))

    def test_grade_question_modes(self):
        self.assertTrue(grade_question('listen', 'xiexie', 'xiè xie'))
        self.assertTrue(grade_question('english-to-pinyin', 'xie xie', 'xiè xie'))
        self.assertTrue(grade_question('pinyin-to-english', 'thanks', 'thank you; thanks'))
        self.assertFalse(grade_question('english', 'xiexie', 'thank you; thanks'))


class TestAnswers(unittest.TestCase):

    def test_split_answers(self):
        self.assertEqual(split_answers(' a ;b;; c '), ['a', 'b', 'c'])

    def test_accepted_answers_skip_parenthetical_only(self):
        self.assertEqual(accepted_answers('(particle); of'), ['of'])
        self.assertFalse(has_real_answer('(possessive particle)'))
        self.assertTrue(has_real_answer('(cooked) rice'))


class TestHints(unittest.TestCase):

    def test_pinyin_hint_masks_all_but_first(self):
        self.assertEqual(pinyin_hint('nǐ hǎo'), 'n••••')

    def test_single_letter_hint(self):
        self.assertEqual(pinyin_hint('ē'), 'e')

    def test_english_hint_uses_first_real_answer(self):
        self.assertEqual(answer_hint('english', '(greeting); hi'), 'h•')
        self.assertEqual(answer_hint('listen', 'xiè'), 'x••')


if __name__ == '__main__':
    unittest.main()
