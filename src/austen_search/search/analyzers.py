"""Analyzer utilities and the tokenizer registry handed to indexes.

Analyzers follow a composable tokenizer/filter design: a tokenizer turns raw
text into Tokens and filters rewrite the stream. Indexes receive a frozen
``TokenizerRegistry`` at construction time instead of registering tokenizers
on shared global state, so the analyzer used while building the corpus is the
same one used at query time.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from functools import reduce
from types import MappingProxyType
from typing import Protocol

from austen_search.search.models import Token
from austen_search.search.segmenter import tokenize


class Analyzer(Protocol):
    """Text in, numbered tokens out."""

    def __call__(self, text: str) -> list[Token]: ...


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterable[Token]: ...


class TokenFilter(Protocol):
    """Rewrites or drops tokens; positions are renumbered afterwards."""

    def __call__(self, tokens: Iterable[Token]) -> Iterable[Token]: ...


class ProseTokenizer:
    """Sentence-aware word tokenizer for literary prose."""

    def __call__(self, text: str) -> list[Token]:
        return tokenize(text)


class LowercaseFilter:
    """Lowercases token text; source tokens are left untouched."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (token if token.text.islower() else token.copy_with(text=token.text.lower()) for token in tokens)


class AnalyzerPipeline:
    """A tokenizer followed by filters applied in order."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] = ()) -> None:
        self.tokenizer = tokenizer
        self.filters = tuple(filters)

    def __call__(self, text: str) -> list[Token]:
        tokens = reduce(lambda stream, token_filter: token_filter(stream), self.filters, self.tokenizer(text))
        return [token.copy_with(position=position) for position, token in enumerate(tokens)]


def prose_analyzer(*, lowercase: bool = True) -> Analyzer:
    """Return the analyzer used for prose text fields."""
    filters: list[TokenFilter] = [LowercaseFilter()] if lowercase else []
    return AnalyzerPipeline(ProseTokenizer(), filters)


DEFAULT_TOKENIZER = "default"

_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    DEFAULT_TOKENIZER: prose_analyzer,
    "jane_austen": prose_analyzer,
    "raw": lambda: prose_analyzer(lowercase=False),
}


@dataclass(frozen=True)
class TokenizerRegistry:
    """Immutable name -> analyzer bindings passed to index construction."""

    analyzers: Mapping[str, Analyzer] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "analyzers", MappingProxyType(dict(self.analyzers)))

    def get(self, name: str | None) -> Analyzer:
        """Return the analyzer bound to ``name`` (``None`` means the default)."""
        key = (name or DEFAULT_TOKENIZER).lower()
        if key not in self.analyzers:
            msg = f"Unknown tokenizer '{name}'. Available: {sorted(self.analyzers)}"
            raise ValueError(msg)
        return self.analyzers[key]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.analyzers

    def with_tokenizer(self, name: str, analyzer: Analyzer) -> TokenizerRegistry:
        """Return a new registry with ``name`` bound to ``analyzer``."""
        merged = dict(self.analyzers)
        merged[name.lower()] = analyzer
        return TokenizerRegistry(merged)


def default_registry() -> TokenizerRegistry:
    """Build a registry holding the built-in prose analyzers."""
    return TokenizerRegistry({name: factory() for name, factory in _ANALYZER_FACTORIES.items()})
