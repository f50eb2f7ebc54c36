from __future__ import annotations

import html
import os
import tempfile
from pathlib import Path

from mdpreview.errors import MdPreviewIOError

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{body}
</body>
</html>
"""


def wrap_document(body: str, *, title: str) -> str:
    """Wrap a rendered fragment in a minimal HTML5 page."""
    return _PAGE_TEMPLATE.format(title=html.escape(title, quote=True), body=body)


def output_path_for(source: Path, *, out_dir: Path) -> Path:
    return out_dir / f"{source.stem}.html"


def write_html(path: Path, content: str) -> Path:
    """Atomically write `content` to `path`, creating parent directories."""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write atomically: temp file in the same directory then os.replace.
        fd, tmp = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=".mdpreview-tmp-",
            suffix=".html",
            text=True,
        )
    except OSError as e:
        raise MdPreviewIOError(f"Failed preparing output file: {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError as e:
        raise MdPreviewIOError(f"Failed writing output file: {path}: {e}") from e
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
    return path


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise MdPreviewIOError(f"No such file: {path}") from e
    except UnicodeDecodeError as e:
        raise MdPreviewIOError(f"Source is not valid UTF-8: {path}") from e
    except OSError as e:
        raise MdPreviewIOError(f"Failed reading source file: {path}: {e}") from e
