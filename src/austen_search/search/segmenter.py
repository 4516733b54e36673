"""Sentence and word segmentation for literary prose.

Sentences are split with an ordered rule table of protect, split and restore
steps so that honorific abbreviations ("Mrs. B.", "Dr. Grant") never end a
sentence. Words are split on a fixed punctuation class; apostrophes at the
edges of a word are typographic quotation marks and are trimmed, while
apostrophes inside a word (possessives, contractions) are kept.

The honorific sentinel is a single character, so protected text has the same
length as the source and sentence spans can be reported in source offsets.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import re
from typing import Literal

from austen_search.search.models import Token


EMPHASIS_MARK = "_"
HONORIFICS: tuple[str, ...] = ("Mrs", "Mr", "Ms", "Dr", "Rev")

_SENTINEL = "\x1f"
_HONORIFIC_GROUP = "|".join(HONORIFICS)
_EDGE_CHARS = "’'" + EMPHASIS_MARK
_WORD_PATTERN = re.compile(r"[^\s\"“”‘,;:—–()\-]+")
_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class SegmentationRule:
    """One step of the sentence segmentation rule table."""

    name: str
    action: Literal["protect", "split", "restore"]
    pattern: re.Pattern[str]
    replacement: str = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


SENTENCE_RULES: tuple[SegmentationRule, ...] = (
    # "Mrs. B." is one unit: guard both full stops before the plain rule runs
    SegmentationRule(
        name="honorific-initial",
        action="protect",
        pattern=re.compile(rf"(?<![A-Za-z])({_HONORIFIC_GROUP})\.({EMPHASIS_MARK}*\s+{EMPHASIS_MARK}*[A-Z])\."),
        replacement=rf"\1{_SENTINEL}\2{_SENTINEL}",
    ),
    SegmentationRule(
        name="honorific",
        action="protect",
        pattern=re.compile(rf"(?<![A-Za-z])({_HONORIFIC_GROUP})\."),
        replacement=rf"\1{_SENTINEL}",
    ),
    SegmentationRule(
        name="terminator",
        action="split",
        pattern=re.compile(r"[.?!][’”\"]?"),
    ),
    SegmentationRule(
        name="honorific-restore",
        action="restore",
        pattern=re.compile(_SENTINEL),
        replacement=".",
    ),
)

_PROTECT_RULES = tuple(rule for rule in SENTENCE_RULES if rule.action == "protect")
_RESTORE_RULES = tuple(rule for rule in SENTENCE_RULES if rule.action == "restore")
_SPLIT_RULE = next(rule for rule in SENTENCE_RULES if rule.action == "split")


def protect_honorifics(text: str) -> str:
    """Replace honorific full stops with a same-length sentinel."""
    for rule in _PROTECT_RULES:
        text = rule.apply(text)
    return text


def restore_honorifics(text: str) -> str:
    """Undo protect_honorifics."""
    for rule in _RESTORE_RULES:
        text = rule.apply(text)
    return text


def _trimmed_span(text: str, start: int, end: int) -> Iterator[tuple[int, int]]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start < end:
        yield start, end


def _protected_spans(protected: str) -> Iterator[tuple[int, int]]:
    start = 0
    for match in _SPLIT_RULE.pattern.finditer(protected):
        yield from _trimmed_span(protected, start, match.start())
        start = match.end()
    yield from _trimmed_span(protected, start, len(protected))


def iter_sentence_spans(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) character spans of the non-empty sentences in text."""
    yield from _protected_spans(protect_honorifics(text))


def split_sentences(text: str) -> list[str]:
    """Split prose into trimmed sentences without their terminal punctuation.

    >>> split_sentences("Mrs. B. arrived. She left.")
    ['Mrs. B. arrived', 'She left']
    """
    protected = protect_honorifics(text.replace("\r\n", "\n"))
    return [restore_honorifics(protected[start:end]) for start, end in _protected_spans(protected)]


def _trim_word(word: str) -> str:
    return word.strip("’'")


def tokenize_sentence(sentence: str) -> list[str]:
    """Split one sentence into words.

    >>> tokenize_sentence("’Tis a ‘success,’ said Mr. Elton’s sister")
    ['Tis', 'a', 'success', 'said', 'Mr.', 'Elton’s', 'sister']
    """
    cleaned = _WHITESPACE_PATTERN.sub(" ", sentence.replace(EMPHASIS_MARK, ""))
    words = (_trim_word(word) for word in _WORD_PATTERN.findall(cleaned))
    return [word for word in words if word]


def tokenize(text: str) -> list[Token]:
    """Tokenize prose into Tokens carrying offsets into the original text.

    Words are found sentence by sentence, so terminal punctuation never sticks
    to a word while protected honorifics keep their full stop. Emphasis marks
    are dropped from token text without shifting offsets.
    """
    tokens: list[Token] = []
    last_char = 0
    last_byte = 0

    def byte_offset(index: int) -> int:
        nonlocal last_char, last_byte
        last_byte += len(text[last_char:index].encode("utf-8"))
        last_char = index
        return last_byte

    for sentence_start, sentence_end in iter_sentence_spans(text):
        for match in _WORD_PATTERN.finditer(text, sentence_start, sentence_end):
            start, end = match.start(), match.end()
            while start < end and text[start] in _EDGE_CHARS:
                start += 1
            while end > start and text[end - 1] in _EDGE_CHARS:
                end -= 1
            word = text[start:end].replace(EMPHASIS_MARK, "")
            if not word:
                continue
            tokens.append(
                Token(
                    text=word,
                    position=len(tokens),
                    char_offset_from=start,
                    char_offset_to=end,
                    byte_offset_from=byte_offset(start),
                    byte_offset_to=byte_offset(end),
                )
            )
    return tokens
