"""Turn raw index hits into display items."""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

import orjson

from austen_search.domain.search import SearchItem


DEFAULT_CLIP_LENGTH = 80
CLIP_ELLIPSIS = "..."

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def first_value(stored: Mapping[str, Any], name: str) -> Any:
    """Return the first stored value of ``name``; stored fields are always lists."""
    values = stored.get(name)
    if isinstance(values, list):
        return values[0] if values else None
    return values


def clip_text(text: str, clip_length: int = DEFAULT_CLIP_LENGTH) -> str:
    """Shorten ``text`` to ``clip_length`` characters, ending in an ellipsis.

    >>> clip_text("x" * 81)[-4:]
    'xxx...'
    """
    if len(text) <= clip_length:
        return text
    return text[: max(clip_length - len(CLIP_ELLIPSIS), 0)] + CLIP_ELLIPSIS


def icon_name(title: str) -> str:
    """Cover image file name for a book title ("Pride and Prejudice" -> "pride-and-prejudice.jpg")."""
    return f"{title.replace(' ', '-').lower()}.jpg"


def volume_name(volume: int | None) -> str:
    return f"Vol. {volume}, " if volume else ""


def chapter_name(chapter: Any) -> str:
    """Render numeric chapters as ``Ch. N`` and keep any other label verbatim."""
    if chapter is None:
        return ""
    match = _LEADING_INT.match(str(chapter))
    if match is None:
        return str(chapter)
    return f"Ch. {int(match.group(1))}"


def citation(title: str | None, volume: int | None, chapter: Any) -> str | None:
    if not title:
        return None
    location = volume_name(volume) + chapter_name(chapter)
    if not location:
        return title
    return f"{title}, {location.rstrip(', ')}"


def _as_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def assemble_item(score: float, stored_json: str | bytes, *, clip_length: int = DEFAULT_CLIP_LENGTH) -> SearchItem:
    """Build a display item from a hit's score and stored fields JSON.

    Matches and fragments are left empty; the service layer fills them in.
    """
    stored = orjson.loads(stored_json)
    title = first_value(stored, "title")
    text = first_value(stored, "text")
    volume = _as_int(first_value(stored, "volume"))
    chapter = first_value(stored, "chapter")

    return SearchItem(
        icon=icon_name(title) if title else None,
        title=title,
        text=text,
        clip=clip_text(text, clip_length) if text is not None else None,
        author=first_value(stored, "author"),
        year=_as_int(first_value(stored, "year")),
        volume=volume,
        chapter=str(chapter) if chapter is not None else None,
        paragraph=_as_int(first_value(stored, "paragraph")),
        url=first_value(stored, "url"),
        score=score,
        citation=citation(title, volume, chapter),
    )
