"""Corpus preparation: paragraph packing, loading and index building.

Source layout for packing::

    <source>/<book>/meta.json       book metadata (title, author, url, year)
    <source>/<book>/contents.json   [{"filename": ..., "volume": ..., "chapter": ...}, ...]
    <source>/<book>/<filename>      chapter text, paragraphs separated by a blank line

Packing writes ``<dest>/<book>.json``: a list of paragraph records with a
corpus-wide sequential ``_id``, the book metadata, the chapter location and
the paragraph ``text``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ProcessPoolExecutor
from functools import partial
import logging
from pathlib import Path
from typing import Any

import orjson

from austen_search.adapters.memory_index import MemorySearchIndex, build_memory_index
from austen_search.errors import CorpusError
from austen_search.search.analyzers import TokenizerRegistry
from austen_search.search.ngrams import sentence_phrases
from austen_search.search.schema import create_paragraph_schema, create_phrase_schema


logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"
META_FILENAME = "meta.json"
CONTENTS_FILENAME = "contents.json"


def _read_json(path: Path) -> Any:
    try:
        return orjson.loads(path.read_bytes())
    except FileNotFoundError as exc:
        raise CorpusError(f"Missing corpus file: {path}") from exc
    except orjson.JSONDecodeError as exc:
        raise CorpusError(f"Invalid JSON in {path}: {exc}") from exc


def split_paragraphs(text: str) -> list[str]:
    """Split chapter text on blank lines, dropping empty paragraphs."""
    paragraphs = (paragraph.strip() for paragraph in text.replace("\r\n", "\n").split(PARAGRAPH_SEPARATOR))
    return [paragraph for paragraph in paragraphs if paragraph]


def split_book_by_paragraph(
    book_dir: Path,
    metadata: Mapping[str, Any],
    contents: Sequence[Mapping[str, Any]],
    first_id: int = 0,
) -> list[dict[str, Any]]:
    """Turn every chapter file of one book into paragraph records.

    ``_id`` continues from ``first_id``; ``paragraph`` restarts at 0 in each chapter.
    """
    records: list[dict[str, Any]] = []
    next_id = first_id
    for entry in contents:
        filename = entry.get("filename")
        if not filename:
            raise CorpusError(f"Chapter entry without filename in {book_dir / CONTENTS_FILENAME}: {dict(entry)}")
        try:
            text = (book_dir / filename).read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CorpusError(f"Missing chapter file: {book_dir / filename}") from exc

        for paragraph_number, paragraph in enumerate(split_paragraphs(text)):
            record: dict[str, Any] = {"_id": next_id, **metadata}
            next_id += 1
            if entry.get("volume"):
                record["volume"] = entry["volume"]
            record["chapter"] = entry.get("chapter")
            record["paragraph"] = paragraph_number
            record["text"] = paragraph
            records.append(record)
    return records


def pack_books(source: Path, dest: Path) -> dict[str, int]:
    """Pack every book directory under ``source`` into ``dest/<book>.json``.

    Returns the number of paragraphs written per book.
    """
    dest.mkdir(parents=True, exist_ok=True)
    written: dict[str, int] = {}
    next_id = 0
    for book_dir in sorted(path for path in source.iterdir() if path.is_dir()):
        metadata = _read_json(book_dir / META_FILENAME)
        contents = _read_json(book_dir / CONTENTS_FILENAME)
        if not isinstance(metadata, dict):
            raise CorpusError(f"{book_dir / META_FILENAME} must hold a JSON object")
        if not isinstance(contents, list):
            raise CorpusError(f"{book_dir / CONTENTS_FILENAME} must hold a JSON array")

        paragraphs = split_book_by_paragraph(book_dir, metadata, contents, next_id)
        next_id += len(paragraphs)
        target = dest / f"{book_dir.name}.json"
        target.write_bytes(orjson.dumps(paragraphs, option=orjson.OPT_INDENT_2))
        written[book_dir.name] = len(paragraphs)
        logger.info("Wrote %s", target, extra={"book": book_dir.name, "paragraphs": len(paragraphs)})
    return written


def load_paragraphs(corpus_dir: Path, books: Iterable[str]) -> list[dict[str, Any]]:
    """Load packed paragraph records for ``books`` in order."""
    paragraphs: list[dict[str, Any]] = []
    for book in books:
        records = _read_json(corpus_dir / f"{book}.json")
        if not isinstance(records, list) or not all(isinstance(record, dict) for record in records):
            raise CorpusError(f"{corpus_dir / f'{book}.json'} must hold a JSON array of paragraph objects")
        paragraphs.extend(records)
        logger.debug("Loaded %d paragraphs from %s", len(records), book)
    return paragraphs


def extract_phrases(
    texts: Iterable[str],
    min_length: int = 1,
    max_length: int = 3,
    *,
    max_workers: int = 1,
) -> set[str]:
    """Collect the distinct sentence n-gram phrases of every text.

    With ``max_workers > 1`` texts are processed in a process pool; results are
    merged into one set so completion order does not matter.
    """
    extract = partial(sentence_phrases, min_length=min_length, max_length=max_length)
    phrases: set[str] = set()
    if max_workers <= 1:
        for text in texts:
            phrases.update(extract(text))
        return phrases

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        for chunk in executor.map(extract, texts, chunksize=64):
            phrases.update(chunk)
    return phrases


def build_paragraph_index(
    paragraphs: Iterable[Mapping[str, Any]],
    registry: TokenizerRegistry | None = None,
) -> MemorySearchIndex:
    return build_memory_index(create_paragraph_schema(), paragraphs, registry)


def build_phrase_index(phrases: Iterable[str], registry: TokenizerRegistry | None = None) -> MemorySearchIndex:
    """Index each phrase as its own document; phrases keep their source casing."""
    return build_memory_index(create_phrase_schema(), ({"phrase": phrase} for phrase in sorted(phrases)), registry)
