"""Line-oriented markdown to HTML rendering.

The renderer is a single left fold over the input lines carrying one piece of
state (whether we are inside a fenced code block). It never raises: any text,
including half-typed documents, produces some HTML string.

Only code-block content is escaped. Headings, blockquotes and inline text are
emitted as-is, so callers that display untrusted input must sanitize the
output themselves.
"""

from __future__ import annotations

import html
from collections.abc import Iterable
from dataclasses import dataclass

FENCE = "```"

# Longest prefix first so "### x" is never read as "# " plus stray hashes.
BLOCK_MARKERS: tuple[tuple[str, str, str], ...] = (
    ("### ", "<h3>", "</h3>"),
    ("## ", "<h2>", "</h2>"),
    ("# ", "<h1>", "</h1>"),
    ("> ", "<blockquote>", "</blockquote>"),
)

# Applied in this order; later passes never see markers consumed earlier.
INLINE_MARKERS: tuple[tuple[str, str, str], ...] = (
    ("**", "<strong>", "</strong>"),
    ("*", "<em>", "</em>"),
    ("`", "<code>", "</code>"),
)

BULLET_MARKER = "- "

CODE_OPEN = "<pre><code>"
CODE_CLOSE = "</code></pre>"


@dataclass(frozen=True, slots=True)
class RenderOptions:
    line_break: str = "<br>"
    bullet: str = "• "
    close_open_fence: bool = False


DEFAULT_OPTIONS = RenderOptions()


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Fragments produced by one render pass plus the final fence state."""

    fragments: tuple[str, ...]
    in_code_block: bool

    @property
    def unterminated_fence(self) -> bool:
        return self.in_code_block

    @property
    def html(self) -> str:
        return "".join(self.fragments)


def split_lines(source: str) -> list[str]:
    """Split on newline boundaries.

    A trailing "\\r" is dropped from each line and a final newline does not
    start an extra empty line. Empty input has no lines.
    """

    if not source:
        return []
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def escape_code(text: str) -> str:
    """Escape `&`, `<` and `>` (ampersand first). Quotes are left alone."""
    return html.escape(text, quote=False)


def _replace_pairwise(text: str, marker: str, open_tag: str, close_tag: str) -> str:
    parts = text.split(marker)
    if len(parts) == 1:
        return text
    out = [parts[0]]
    for i, part in enumerate(parts[1:]):
        out.append(close_tag if i % 2 else open_tag)
        out.append(part)
    return "".join(out)


def apply_inline(text: str) -> str:
    """Replace bold, italic and inline-code markers with tags.

    This is naive pairwise substitution, not a balanced-delimiter parser:
    occurrences of each marker alternate between opening and closing tags, and
    a stray trailing marker leaves an unclosed opening tag.
    """

    for marker, open_tag, close_tag in INLINE_MARKERS:
        text = _replace_pairwise(text, marker, open_tag, close_tag)
    return text


def apply_block(line: str) -> str:
    """Wrap a line in its heading/blockquote tags, if it has a leading marker."""
    for marker, open_tag, close_tag in BLOCK_MARKERS:
        if line.startswith(marker):
            return open_tag + line[len(marker) :] + close_tag
    return line


def render_text_line(line: str, options: RenderOptions = DEFAULT_OPTIONS) -> str:
    """Render one line that sits outside a code block (no line break appended)."""
    processed = apply_inline(apply_block(line))
    if processed.startswith(BULLET_MARKER):
        processed = options.bullet + processed[len(BULLET_MARKER) :]
    return processed


def render_lines(
    lines: Iterable[str],
    options: RenderOptions | None = None,
) -> RenderResult:
    opts = options or DEFAULT_OPTIONS
    fragments: list[str] = []
    in_code_block = False

    for line in lines:
        if line.startswith(FENCE):
            fragments.append(CODE_CLOSE if in_code_block else CODE_OPEN)
            in_code_block = not in_code_block
            continue

        if in_code_block:
            fragments.append(escape_code(line) + opts.line_break)
        else:
            fragments.append(render_text_line(line, opts) + opts.line_break)

    if in_code_block and opts.close_open_fence:
        fragments.append(CODE_CLOSE)

    return RenderResult(fragments=tuple(fragments), in_code_block=in_code_block)


def render(source: str, options: RenderOptions | None = None) -> str:
    """Render markdown `source` to an HTML string. Never raises."""
    return render_lines(split_lines(source), options).html
