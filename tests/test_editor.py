from __future__ import annotations

import pytest

from mdpreview.editor import DEFAULT_DOCUMENT, EditorBuffer, Snippet


def test_insert_appends_snippet_text() -> None:
    buf = EditorBuffer(text="Hello ")
    buf.insert(Snippet.BOLD)
    assert buf.text == "Hello **bold text**"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("bold", "**bold text**"),
        ("italic", "*italic text*"),
        ("code", "`inline code`"),
        ("link", "[link text](https://example.com)"),
        ("heading", "\n## New Heading"),
        ("list", "\n- List item"),
        ("code-block", "\n```\ncode here\n```"),
        ("blockquote", "\n> Blockquote"),
    ],
)
def test_insert_by_name(name: str, expected: str) -> None:
    buf = EditorBuffer()
    buf.insert(name)
    assert buf.text == expected


def test_insert_unknown_name_raises() -> None:
    with pytest.raises(ValueError, match="Unknown snippet"):
        EditorBuffer().insert("table")


def test_clear_empties_buffer() -> None:
    buf = EditorBuffer.with_default_document()
    buf.clear()
    assert buf.text == ""
    assert buf.char_count == 0
    assert buf.line_count == 0
    assert buf.preview() == ""


def test_counts_use_code_points_and_lines() -> None:
    buf = EditorBuffer(text="é€\nb\n")
    assert buf.char_count == 5
    assert buf.line_count == 2


def test_export_summary_truncates_to_first_hundred_chars() -> None:
    buf = EditorBuffer(text="x" * 150)
    assert buf.export_summary() == (
        "Content has 150 characters.\n\nFirst 100 chars:\n" + "x" * 100
    )


def test_export_summary_short_text() -> None:
    buf = EditorBuffer(text="# Hi")
    assert buf.export_summary() == "Content has 4 characters.\n\nFirst 100 chars:\n# Hi"


def test_inserted_code_block_previews_as_code() -> None:
    buf = EditorBuffer(text="intro")
    buf.insert(Snippet.CODE_BLOCK)
    assert buf.preview() == "intro<br><pre><code>code here<br></code></pre>"


def test_default_document_preview() -> None:
    out = EditorBuffer.with_default_document().preview()

    assert out.startswith("<h1>Welcome to Markdown Editor!</h1><br>")
    assert "<h2>Features</h2><br>" in out
    assert "• <strong>Real-time preview</strong><br>" in out
    assert "• <em>Formatting tools</em><br>" in out
    assert "• <code>Code blocks</code><br>" in out
    assert "<h3>Try it out!</h3><br>" in out
    assert '<pre><code>fn main() {<br>    println!("Hello, Markdown!");<br>}<br></code></pre>' in out
    assert "<blockquote>This is a blockquote</blockquote><br>" in out
    assert out.endswith("[Learn more about Markdown](https://www.markdownguide.org/)<br>")


def test_default_document_line_count() -> None:
    assert EditorBuffer(text=DEFAULT_DOCUMENT).line_count == DEFAULT_DOCUMENT.count("\n") + 1
