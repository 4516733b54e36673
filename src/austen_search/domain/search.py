"""Display models returned by the search and typeahead endpoints.

Value objects are immutable (frozen=True) and serialize with camelCase keys
for the browser client.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class HighlightRangePayload(_Payload):
    """One covering range of a highlighted text."""

    char_offset_from: int
    char_offset_to: int
    is_match: bool


class FragmentPayload(_Payload):
    """Rendered piece of a highlighted text."""

    text: str
    is_match: bool
    is_emphasis: bool


class SearchItem(_Payload):
    """A paragraph hit ready for display.

    Every stored index field arrives as a list; a missing or empty list
    becomes ``None`` here.
    """

    icon: str | None = None
    title: str | None = None
    text: str | None = None
    clip: str | None = None
    author: str | None = None
    year: int | None = None
    volume: int | None = None
    chapter: str | None = None
    paragraph: int | None = None
    url: str | None = None
    score: float = 0.0
    citation: str | None = None
    matches: list[HighlightRangePayload] = Field(default_factory=list)
    fragments: list[FragmentPayload] = Field(default_factory=list)


class SearchResponse(_Payload):
    """Paragraph search response; ``time`` is milliseconds spent building and running the query."""

    time: float
    items: list[SearchItem] = Field(default_factory=list)
    query_tokens: list[str] = Field(default_factory=list)


class TypeaheadResponse(_Payload):
    """Completion response: each item is a list of words."""

    time: float
    items: list[list[str]] = Field(default_factory=list)


class ErrorResponse(_Payload):
    error: str
