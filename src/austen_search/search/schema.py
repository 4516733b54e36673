"""Field layout of the paragraph and phrase indexes.

A field is one of three kinds:

- ``TextField``: analyzed by a named tokenizer from the registry
- ``NumericField``: stored; when indexed, each value is one exact term
- ``StoredField``: returned with hits, never searched

Search hits return every stored value as a list, since a document may
repeat a field.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from austen_search.errors import UnknownFieldError
from austen_search.search.analyzers import DEFAULT_TOKENIZER


PARAGRAPH_TOKENIZER = "jane_austen"


class IndexRecordOption(str, Enum):
    """Per-term data a text field keeps in its postings."""

    BASIC = "basic"
    WITH_FREQS = "freqs"
    WITH_FREQS_AND_POSITIONS = "freqs_and_positions"

    @property
    def has_positions(self) -> bool:
        return self is IndexRecordOption.WITH_FREQS_AND_POSITIONS


@dataclass(frozen=True)
class SchemaField:
    name: str
    stored: bool = True
    indexed: bool = True


@dataclass(frozen=True)
class TextField(SchemaField):
    """Analyzed text; phrase queries need ``WITH_FREQS_AND_POSITIONS``."""

    tokenizer: str = DEFAULT_TOKENIZER
    record_option: IndexRecordOption = IndexRecordOption.WITH_FREQS_AND_POSITIONS


@dataclass(frozen=True)
class NumericField(SchemaField):
    indexed: bool = False


@dataclass(frozen=True)
class StoredField(SchemaField):
    indexed: bool = False


class Schema:
    """Ordered set of uniquely named fields for one index."""

    def __init__(self, fields: Iterable[SchemaField], name: str = "index") -> None:
        self.name = name
        self.fields = tuple(fields)
        self._by_name: dict[str, SchemaField] = {}
        for schema_field in self.fields:
            if self._by_name.setdefault(schema_field.name, schema_field) is not schema_field:
                raise ValueError(f"Schema '{name}' declares field '{schema_field.name}' twice")

    def __getitem__(self, name: str) -> SchemaField:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[SchemaField]:
        return iter(self.fields)

    def __repr__(self) -> str:
        return f"Schema(name={self.name!r}, fields={[schema_field.name for schema_field in self.fields]})"

    @property
    def text_fields(self) -> list[TextField]:
        return [schema_field for schema_field in self.fields if isinstance(schema_field, TextField)]

    def searchable_text_field(self, name: str, *, needs_positions: bool = False) -> TextField:
        """Return the indexed text field ``name`` or raise UnknownFieldError."""
        schema_field = self._by_name.get(name)
        if schema_field is None:
            raise UnknownFieldError(name)
        if not isinstance(schema_field, TextField) or not schema_field.indexed:
            raise UnknownFieldError(name, "not an indexed text field")
        if needs_positions and not schema_field.record_option.has_positions:
            raise UnknownFieldError(name, "indexed without positions")
        return schema_field


def create_paragraph_schema() -> Schema:
    """One document per paragraph: book metadata for display, prose ``text`` with positions."""
    return Schema(
        name="paragraphs",
        fields=[
            NumericField("_id", stored=False, indexed=True),
            TextField("title"),
            TextField("author"),
            StoredField("url"),
            NumericField("year"),
            NumericField("volume"),
            StoredField("chapter"),
            NumericField("paragraph"),
            TextField("text", tokenizer=PARAGRAPH_TOKENIZER),
        ],
    )


def create_phrase_schema() -> Schema:
    """One document per distinct phrase of the typeahead dictionary."""
    return Schema(name="phrases", fields=[TextField("phrase", tokenizer=PARAGRAPH_TOKENIZER)])
