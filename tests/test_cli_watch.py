"""Tests for `mdpreview watch` command."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import mdpreview.cli
import mdpreview.watcher


def _raise_import_error() -> None:
    raise ImportError("watchfiles is required for watch mode.")


def _fake_iter_factory(batches: list[set[tuple[Any, str]]]):
    def make(watch_paths: list[Path], *, debounce_ms: int = 200) -> AsyncIterator:
        async def gen():
            for batch in batches:
                yield batch

        return gen()

    return make


def test_parse_watch_defaults() -> None:
    ns = mdpreview.cli.parse_args(["watch"])
    assert ns.command == "watch"
    assert ns.paths == []
    assert ns.out_dir is None
    assert ns.json_output is False


def test_parse_watch_all_flags() -> None:
    ns = mdpreview.cli.parse_args(
        ["watch", "docs", "README.md", "--out-dir", "site", "--json", "--root", "/tmp"]
    )
    assert ns.paths == ["docs", "README.md"]
    assert ns.out_dir == "site"
    assert ns.json_output is True
    assert ns.root == "/tmp"


def test_main_dispatches_watch(monkeypatch) -> None:
    monkeypatch.setattr(mdpreview.cli, "cmd_watch", lambda args: 0)
    assert mdpreview.cli.main(["watch"]) == 0


def test_cmd_watch_missing_watchfiles(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(mdpreview.watcher, "check_watchfiles_available", _raise_import_error)

    rc = mdpreview.cli.cmd_watch(mdpreview.cli.parse_args(["watch"]))

    assert rc == mdpreview.cli.EXIT_MISSING_DEPENDENCY
    assert "hint: install the watch extra" in capsys.readouterr().err


def test_cmd_watch_missing_watchfiles_json(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(mdpreview.watcher, "check_watchfiles_available", _raise_import_error)

    rc = mdpreview.cli.cmd_watch(mdpreview.cli.parse_args(["watch", "--json"]))

    assert rc == mdpreview.cli.EXIT_MISSING_DEPENDENCY
    data = json.loads(capsys.readouterr().out)
    assert data["command"] == "watch"
    assert data["ok"] is False
    assert "watchfiles" in data["error"]


def test_cmd_watch_invalid_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mdpreview.toml").write_text("version = 9\n", encoding="utf-8")

    rc = mdpreview.cli.cmd_watch(mdpreview.cli.parse_args(["watch"]))
    assert rc == mdpreview.cli.EXIT_CONFIG_ERROR


def test_cmd_watch_missing_path(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(mdpreview.watcher, "check_watchfiles_available", lambda: None)

    rc = mdpreview.cli.cmd_watch(mdpreview.cli.parse_args(["watch", "nope"]))
    assert rc == mdpreview.cli.EXIT_IO_ERROR


def test_cmd_watch_renders_changed_files(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    docs = tmp_path / "docs"
    docs.mkdir()
    page = docs / "page.md"
    page.write_text("## Page\n", encoding="utf-8")

    monkeypatch.setattr(mdpreview.watcher, "check_watchfiles_available", lambda: None)
    monkeypatch.setattr(
        mdpreview.watcher,
        "make_watchfiles_iter",
        _fake_iter_factory([{(1, str(page.resolve()))}, {(1, str(docs / "x.txt"))}]),
    )

    rc = mdpreview.cli.cmd_watch(
        mdpreview.cli.parse_args(["watch", "docs", "--out-dir", "site", "--json"])
    )

    assert rc == mdpreview.cli.EXIT_OK
    out = (tmp_path / "site" / "page.html").read_text(encoding="utf-8")
    assert out == "<h2>Page</h2><br>"

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert len(lines) == 1
    assert lines[0]["ok"] is True
    assert lines[0]["changed_paths"] == [str(page.resolve())]


def test_cmd_watch_defaults_to_root_and_config_out_dir(
    tmp_path: Path, monkeypatch, capsys
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mdpreview.toml").write_text(
        'version = 1\n[output]\ndir = "public"\n', encoding="utf-8"
    )
    note = tmp_path / "note.md"
    note.write_text("text", encoding="utf-8")

    monkeypatch.setattr(mdpreview.watcher, "check_watchfiles_available", lambda: None)
    monkeypatch.setattr(
        mdpreview.watcher,
        "make_watchfiles_iter",
        _fake_iter_factory([{(1, str(note.resolve()))}]),
    )

    rc = mdpreview.cli.cmd_watch(mdpreview.cli.parse_args(["watch"]))

    assert rc == mdpreview.cli.EXIT_OK
    assert (tmp_path / "public" / "note.html").read_text(encoding="utf-8") == "text<br>"
    err = capsys.readouterr().err
    assert "[watch] change detected" in err
    assert "note.html" in err
