"""Error formatting and actionable hints for mdpreview CLI output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from mdpreview.errors import MdPreviewConfigError, MdPreviewIOError


def format_failures(failed: dict[str, str]) -> str:
    """Format per-file render failures into a human-readable stderr summary."""
    if not failed:
        return ""
    lines = [f"Render failed for {len(failed)} file(s):\n"]
    for path in sorted(failed):
        lines.append(f"  {path}:")
        lines.append(f"    - {failed[path]}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""
    msg = str(exc)

    if isinstance(exc, MdPreviewConfigError):
        if "version" in msg:
            return "add `version = 1` at the top of mdpreview.toml"
        if "Missing mdpreview.toml" in msg:
            return "check the --config path, or omit it to use defaults"
        return None

    if isinstance(exc, MdPreviewIOError):
        if "not valid UTF-8" in msg:
            return "save the document as UTF-8"
        if "No such file" in msg:
            return "pass an existing markdown file, or `-` to read stdin"
        return None

    if isinstance(exc, ImportError) and "watchfiles" in msg:
        return "install the watch extra: pip install mdpreview[watch]"

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message + optional hint for stderr output."""
    msg = (str(exc) or repr(exc)).strip()
    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result
