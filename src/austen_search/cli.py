"""Command line entry point: corpus packing, phrase stats, one-shot search and the HTTP server."""

from __future__ import annotations

import argparse
import asyncio
from collections import Counter
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from austen_search.config import Settings
from austen_search.corpus import extract_phrases, load_paragraphs, pack_books
from austen_search.errors import AustenSearchError
from austen_search.observability.logging import configure_logging


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="austen-search",
        description="Search-as-you-type over the Jane Austen novels",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    pack = subparsers.add_parser("pack", help="Pack chapter files into per-book paragraph JSON")
    pack.add_argument("source", type=Path, help="Directory with one subdirectory per book")
    pack.add_argument("dest", type=Path, help="Directory receiving <book>.json files")

    corpus_args = argparse.ArgumentParser(add_help=False)
    corpus_args.add_argument("--corpus-dir", type=Path, help="Directory of packed <book>.json files")
    corpus_args.add_argument("--books", help="Comma-separated book names (default: all Austen novels)")

    phrases = subparsers.add_parser("phrases", parents=[corpus_args], help="Show phrase dictionary statistics")
    phrases.add_argument("--min-length", type=int, dest="ngram_min_length", help="Shortest phrase in words")
    phrases.add_argument("--max-length", type=int, dest="ngram_max_length", help="Longest phrase in words")
    phrases.add_argument("--workers", type=int, dest="phrase_workers", help="Extraction processes")

    search = subparsers.add_parser("search", parents=[corpus_args], help="Run one query and print the hits")
    search.add_argument("query", help="Query text")
    search.add_argument("--top", type=int, dest="search_top", help="Maximum hits")
    search.add_argument(
        "--typeahead",
        action="store_true",
        help="Print completions for the query instead of paragraph hits",
    )

    serve = subparsers.add_parser("serve", parents=[corpus_args], help="Run the HTTP server")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    names = (
        "corpus_dir",
        "books",
        "ngram_min_length",
        "ngram_max_length",
        "phrase_workers",
        "search_top",
        "host",
        "port",
    )
    overrides: dict[str, Any] = {
        name: getattr(args, name) for name in names if getattr(args, name, None) is not None
    }
    return Settings(**overrides)


def _run_pack(args: argparse.Namespace, console: Console) -> int:
    written = pack_books(args.source, args.dest)
    table = Table(title=f"Packed into {args.dest}")
    table.add_column("Book")
    table.add_column("Paragraphs", justify="right")
    for book, count in written.items():
        table.add_row(book, str(count))
    console.print(table)
    return 0


def _run_phrases(settings: Settings, console: Console) -> int:
    paragraphs = load_paragraphs(settings.corpus_dir, settings.get_books())
    phrases = extract_phrases(
        (str(paragraph["text"]) for paragraph in paragraphs if paragraph.get("text")),
        settings.ngram_min_length,
        settings.ngram_max_length,
        max_workers=settings.phrase_workers,
    )
    by_length = Counter(phrase.count(" ") + 1 for phrase in phrases)

    table = Table(title=f"{len(phrases)} distinct phrases from {len(paragraphs)} paragraphs")
    table.add_column("Words", justify="right")
    table.add_column("Phrases", justify="right")
    for length in sorted(by_length):
        table.add_row(str(length), str(by_length[length]))
    console.print(table)
    return 0


async def _run_search(settings: Settings, query: str, *, typeahead: bool, console: Console) -> int:
    from austen_search.service_layer.search_service import build_search_service

    service = await asyncio.to_thread(build_search_service, settings)
    if typeahead:
        completions = await service.typeahead(query)
        for words in completions.items:
            console.print(" ".join(words))
        console.print(f"[dim]{len(completions.items)} completions in {completions.time:.2f}ms[/dim]")
        return 0

    response = await service.search(query)
    table = Table(title=f"{query!r}: {len(response.items)} hits in {response.time:.2f}ms")
    table.add_column("Score", justify="right")
    table.add_column("Citation")
    table.add_column("Clip")
    for item in response.items:
        table.add_row(f"{item.score:.3f}", item.citation or "", item.clip or "")
    console.print(table)
    return 0


def _run_serve(settings: Settings) -> int:
    import uvicorn

    from austen_search.app import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        settings = _settings_from_args(args)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    configure_logging(settings.log_level, json_output=settings.log_json and args.command == "serve")

    try:
        if args.command == "pack":
            return _run_pack(args, console)
        if args.command == "phrases":
            return _run_phrases(settings, console)
        if args.command == "search":
            return asyncio.run(_run_search(settings, args.query, typeahead=args.typeahead, console=console))
        return _run_serve(settings)
    except AustenSearchError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
