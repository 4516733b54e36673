from __future__ import annotations

import orjson
import pytest

from austen_search import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")
    calls: list[tuple] = []
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: calls.append((args, kwargs)))
    return calls


def write_source(root):
    book = root / "emma"
    book.mkdir(parents=True)
    (book / "meta.json").write_bytes(orjson.dumps({"title": "Emma", "author": "Jane Austen"}))
    (book / "contents.json").write_bytes(orjson.dumps([{"filename": "c1.txt", "volume": 1, "chapter": "1"}]))
    (book / "c1.txt").write_text("Emma Woodhouse.\n\nMr. Knightley.", encoding="utf-8")
    return root


@pytest.mark.unit
def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_argument_parser().parse_args([])


@pytest.mark.unit
def test_pack(tmp_path, capsys) -> None:
    source = write_source(tmp_path / "by-chapter")
    dest = tmp_path / "by-paragraph"

    assert cli.main(["pack", str(source), str(dest)]) == 0
    assert len(orjson.loads((dest / "emma.json").read_bytes())) == 2
    assert "emma" in capsys.readouterr().out


@pytest.mark.unit
def test_pack_corpus_error(tmp_path) -> None:
    source = tmp_path / "by-chapter"
    (source / "emma").mkdir(parents=True)

    assert cli.main(["pack", str(source), str(tmp_path / "out")]) == 1


@pytest.mark.unit
def test_phrases(packed_corpus, capsys) -> None:
    assert cli.main(["phrases", "--corpus-dir", str(packed_corpus), "--max-length", "2"]) == 0
    assert "distinct phrases from 4 paragraphs" in " ".join(capsys.readouterr().out.split())


@pytest.mark.unit
def test_invalid_settings(packed_corpus) -> None:
    argv = ["phrases", "--corpus-dir", str(packed_corpus), "--min-length", "3", "--max-length", "2"]
    assert cli.main(argv) == 1


@pytest.mark.unit
def test_search(packed_corpus, capsys) -> None:
    assert cli.main(["search", "darcy", "--corpus-dir", str(packed_corpus)]) == 0
    assert "Pride and Prejudice, Ch. 3" in capsys.readouterr().out


@pytest.mark.unit
def test_typeahead(packed_corpus, capsys) -> None:
    assert cli.main(["search", "Mr. Dar", "--typeahead", "--corpus-dir", str(packed_corpus)]) == 0
    assert "Mr. Darcy" in capsys.readouterr().out


@pytest.mark.unit
def test_search_missing_book(packed_corpus) -> None:
    assert cli.main(["search", "emma", "--corpus-dir", str(packed_corpus), "--books", "persuasion"]) == 1


@pytest.mark.unit
def test_serve(monkeypatch, quiet_logging) -> None:
    import uvicorn

    calls: list[dict] = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    assert cli.main(["serve", "--port", "9000"]) == 0
    assert calls == [{"host": "127.0.0.1", "port": 9000, "log_config": None}]
    [(args, kwargs)] = quiet_logging
    assert kwargs == {"json_output": False}
