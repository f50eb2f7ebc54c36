from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from mdpreview.errors import MdPreviewConfigError, MdPreviewError, MdPreviewIOError
from mdpreview.renderer import RenderOptions, RenderResult, render, render_lines


def _package_version() -> str:
    try:
        return version("mdpreview")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "MdPreviewConfigError",
    "MdPreviewError",
    "MdPreviewIOError",
    "RenderOptions",
    "RenderResult",
    "__version__",
    "render",
    "render_lines",
]
