"""Headless editor buffer: toolbar snippets, counters and export summary."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from mdpreview.renderer import RenderOptions, render, split_lines

EXPORT_PREVIEW_CHARS = 100

DEFAULT_DOCUMENT = (
    "# Welcome to Markdown Editor!\n"
    "\n"
    "Type your markdown on the left and see the live preview on the right.\n"
    "\n"
    "## Features\n"
    "\n"
    "- **Real-time preview**\n"
    "- *Formatting tools*\n"
    "- `Code blocks`\n"
    "- Export options\n"
    "\n"
    "### Try it out!\n"
    "\n"
    "```rust\n"
    "fn main() {\n"
    '    println!("Hello, Markdown!");\n'
    "}\n"
    "```\n"
    "\n"
    "> This is a blockquote\n"
    "\n"
    "[Learn more about Markdown](https://www.markdownguide.org/)"
)


class Snippet(enum.Enum):
    """Boilerplate appended by the editor toolbar buttons."""

    BOLD = "**bold text**"
    ITALIC = "*italic text*"
    CODE = "`inline code`"
    LINK = "[link text](https://example.com)"
    HEADING = "\n## New Heading"
    LIST = "\n- List item"
    CODE_BLOCK = "\n```\ncode here\n```"
    BLOCKQUOTE = "\n> Blockquote"


@dataclass
class EditorBuffer:
    text: str = ""

    @classmethod
    def with_default_document(cls) -> EditorBuffer:
        return cls(text=DEFAULT_DOCUMENT)

    def insert(self, snippet: Snippet | str) -> None:
        """Append a toolbar snippet (or its name, e.g. "bold") to the buffer."""
        if isinstance(snippet, str):
            try:
                snippet = Snippet[snippet.upper().replace("-", "_")]
            except KeyError:
                raise ValueError(f"Unknown snippet: {snippet!r}") from None
        self.text += snippet.value

    def clear(self) -> None:
        self.text = ""

    @property
    def char_count(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(split_lines(self.text))

    def preview(self, options: RenderOptions | None = None) -> str:
        return render(self.text, options)

    def export_summary(self) -> str:
        head = self.text[:EXPORT_PREVIEW_CHARS]
        return f"Content has {self.char_count} characters.\n\nFirst 100 chars:\n{head}"
