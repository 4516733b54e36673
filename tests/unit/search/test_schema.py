"""Tests for index schemas."""

import pytest

from austen_search.errors import SearchIndexError, UnknownFieldError
from austen_search.search.schema import (
    PARAGRAPH_TOKENIZER,
    IndexRecordOption,
    NumericField,
    Schema,
    StoredField,
    TextField,
    create_paragraph_schema,
    create_phrase_schema,
)


@pytest.mark.unit
class TestSchema:
    def test_duplicate_fields_rejected(self):
        with pytest.raises(ValueError, match="declares field .text. twice"):
            Schema(fields=[TextField("text"), StoredField("text")])

    def test_lookup_and_iteration(self):
        schema = Schema(fields=[TextField("title"), NumericField("year")])

        assert "title" in schema
        assert isinstance(schema["year"], NumericField)
        assert schema["year"].indexed is False
        assert [field.name for field in schema] == ["title", "year"]
        assert [field.name for field in schema.text_fields] == ["title"]

    def test_searchable_text_field_errors(self):
        schema = Schema(
            fields=[
                TextField("body", record_option=IndexRecordOption.WITH_FREQS),
                NumericField("year"),
                TextField("hidden", indexed=False),
            ]
        )

        with pytest.raises(UnknownFieldError, match="not in schema"):
            schema.searchable_text_field("missing")
        with pytest.raises(UnknownFieldError, match="not an indexed text field"):
            schema.searchable_text_field("year")
        with pytest.raises(UnknownFieldError):
            schema.searchable_text_field("hidden")
        with pytest.raises(UnknownFieldError, match="without positions"):
            schema.searchable_text_field("body", needs_positions=True)
        assert schema.searchable_text_field("body").name == "body"

    def test_unknown_field_error_is_search_index_error(self):
        error = UnknownFieldError("chapter")

        assert isinstance(error, SearchIndexError)
        assert error.field_name == "chapter"


@pytest.mark.unit
class TestBuiltinSchemas:
    def test_paragraph_schema(self):
        schema = create_paragraph_schema()

        assert [field.name for field in schema] == [
            "_id",
            "title",
            "author",
            "url",
            "year",
            "volume",
            "chapter",
            "paragraph",
            "text",
        ]
        text = schema.searchable_text_field("text", needs_positions=True)
        assert text.tokenizer == PARAGRAPH_TOKENIZER
        assert schema["_id"].stored is False

    def test_phrase_schema(self):
        schema = create_phrase_schema()
        assert schema.searchable_text_field("phrase", needs_positions=True).tokenizer == PARAGRAPH_TOKENIZER
