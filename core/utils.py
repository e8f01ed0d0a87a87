"""Utility functions for hanyu application."""

import math
import re
from datetime import date, datetime, timezone

from .config import SESSION_SIZE

_PARENS_RE = re.compile(r'\(.*?\)', re.DOTALL)
_WHITESPACE_RE = re.compile(r'\s+')
_PUNCTUATION_RE = re.compile(r"[?!.,;:']")

_QUOTE_MAP = str.maketrans({
    '‘': "'",  # left single quotation mark
    '’': "'",  # right single quotation mark
    '‚': "'",
    '‛': "'",
    '′': "'",  # prime
    '“': '"',  # left double quotation mark
    '”': '"',  # right double quotation mark
    '„': '"',
    '″': '"',  # double prime
})

_TONE_MAP = str.maketrans({
    **dict.fromkeys('āáǎà', 'a'),
    **dict.fromkeys('ēéěè', 'e'),
    **dict.fromkeys('īíǐì', 'i'),
    **dict.fromkeys('ōóǒò', 'o'),
    **dict.fromkeys('ūúǔù', 'u'),
    **dict.fromkeys('ǖǘǚǜ', 'u'),
    **dict.fromkeys('ńň', 'n'),
    'ḿ': 'm',
})


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text).strip()


def strip_parens(text: str) -> str:
    """Remove parenthetical annotations, e.g. 'to be (located)' -> 'to be'."""
    return collapse_whitespace(_PARENS_RE.sub('', text))


def normalize_quotes(text: str) -> str:
    """Map curly quotes and primes to their ASCII forms."""
    return text.translate(_QUOTE_MAP)


def strip_special_chars(text: str) -> str:
    """Remove common punctuation and normalize spaces."""
    return collapse_whitespace(_PUNCTUATION_RE.sub('', text))


def normalize_english(text: str) -> str:
    """Normalize an English answer for comparison."""
    return strip_special_chars(normalize_quotes(strip_parens(text))).lower()


def normalize_pinyin(text: str) -> str:
    """Normalize pinyin: lower-case, drop tone marks, remove all whitespace."""
    return _WHITESPACE_RE.sub('', text.lower().translate(_TONE_MAP))


def split_answers(english: str) -> list[str]:
    """Split a ';'-separated translation list into trimmed, non-empty entries."""
    return [part.strip() for part in english.split(';') if part.strip()]


def total_sessions_for(word_count: int) -> int:
    """Number of study sessions needed to cover word_count words."""
    return math.ceil(word_count / SESSION_SIZE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date(value: datetime) -> date:
    """UTC calendar date of a timestamp."""
    return as_utc(value).date()
