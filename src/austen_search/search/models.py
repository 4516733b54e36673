"""Tokens and postings shared by the analyzers and the in-memory index."""

from __future__ import annotations

from array import array
from dataclasses import dataclass, replace
from typing import Any


@dataclass
class Token:
    """A word emitted by a tokenizer, with char and UTF-8 byte offsets into the source."""

    text: str
    position: int
    char_offset_from: int
    char_offset_to: int
    byte_offset_from: int = 0
    byte_offset_to: int = 0
    position_length: int = 1

    def copy_with(self, **updates: Any) -> Token:
        return replace(self, **updates)


@dataclass(frozen=True, slots=True)
class Posting:
    """Occurrences of one term in one document field.

    Frequency is derived from the positions array.
    """

    doc_id: int
    positions: array

    @property
    def frequency(self) -> int:
        return len(self.positions)
