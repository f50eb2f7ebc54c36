"""Project configuration loading for mdpreview.

Reads an optional `mdpreview.toml` and performs light validation. Without a
config file every setting falls back to its default.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mdpreview.errors import MdPreviewConfigError
from mdpreview.renderer import RenderOptions

CONFIG_FILENAME = "mdpreview.toml"


@dataclass(frozen=True)
class OutputConfig:
    dir: str = "build"
    page: bool = False
    title: str = "Markdown Preview"


@dataclass(frozen=True)
class WatchConfig:
    debounce_ms: int = 200
    extensions: list[str] = field(default_factory=lambda: [".md", ".markdown"])


@dataclass(frozen=True)
class MdPreviewConfig:
    version: int = 1
    render: RenderOptions = field(default_factory=RenderOptions)
    output: OutputConfig = field(default_factory=OutputConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)


def find_project_root(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `mdpreview.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MdPreviewConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_str_list(value: Any, *, name: str) -> list[str]:
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise MdPreviewConfigError(f"Expected {name} to be a list of strings.")
    return list(value)


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise MdPreviewConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise MdPreviewConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise MdPreviewConfigError(f"Expected {name} to be a string.")
    return value


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> MdPreviewConfig:
    """Load and validate `mdpreview.toml`.

    An explicit `config_path` must exist. Otherwise the file is looked up in
    `root` (or by walking upward from the current directory) and defaults are
    returned when none is found.
    """

    if config_path is None:
        if root is None:
            root = find_project_root(Path.cwd())
            if root is None:
                return MdPreviewConfig()
        config_path = root / CONFIG_FILENAME
        if not config_path.is_file():
            return MdPreviewConfig()

    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise MdPreviewConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise MdPreviewConfigError(f"Failed reading config file: {config_path}") from e

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise MdPreviewConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise MdPreviewConfigError(f"Invalid TOML in {config_path}: {e}") from e

    version = data.get("version", None)
    if version is None:
        raise MdPreviewConfigError(f"Missing required `version = 1` in {CONFIG_FILENAME}.")
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise MdPreviewConfigError(f"Unsupported config version: {version_i} (expected 1).")

    render_tbl = _as_table(data.get("render"), name="render")
    output_tbl = _as_table(data.get("output"), name="output")
    watch_tbl = _as_table(data.get("watch"), name="watch")

    render_defaults = RenderOptions()
    output_defaults = OutputConfig()
    watch_defaults = WatchConfig()

    if "line_break" in render_tbl:
        line_break = _as_str(render_tbl["line_break"], name="render.line_break")
    else:
        line_break = render_defaults.line_break

    if "bullet" in render_tbl:
        bullet = _as_str(render_tbl["bullet"], name="render.bullet")
    else:
        bullet = render_defaults.bullet

    if "close_open_fence" in render_tbl:
        close_open_fence = _as_bool(render_tbl["close_open_fence"], name="render.close_open_fence")
    else:
        close_open_fence = render_defaults.close_open_fence

    if "dir" in output_tbl:
        out_dir = _as_str(output_tbl["dir"], name="output.dir")
    else:
        out_dir = output_defaults.dir

    if "page" in output_tbl:
        page = _as_bool(output_tbl["page"], name="output.page")
    else:
        page = output_defaults.page

    if "title" in output_tbl:
        title = _as_str(output_tbl["title"], name="output.title")
    else:
        title = output_defaults.title

    if "debounce_ms" in watch_tbl:
        debounce_ms = _as_int(watch_tbl["debounce_ms"], name="watch.debounce_ms")
    else:
        debounce_ms = watch_defaults.debounce_ms

    if "extensions" in watch_tbl:
        extensions = _as_str_list(watch_tbl["extensions"], name="watch.extensions")
    else:
        extensions = watch_defaults.extensions

    # Validation
    if not out_dir.strip():
        raise MdPreviewConfigError("Invalid config: output.dir must not be empty.")

    if debounce_ms < 0:
        raise MdPreviewConfigError("Invalid config: watch.debounce_ms must be >= 0.")

    if not extensions:
        raise MdPreviewConfigError("Invalid config: watch.extensions must not be empty.")
    bad = [e for e in extensions if not e.startswith(".")]
    if bad:
        raise MdPreviewConfigError(
            f"Invalid config: watch.extensions entries must start with '.': {bad!r}"
        )

    return MdPreviewConfig(
        version=version_i,
        render=RenderOptions(
            line_break=line_break,
            bullet=bullet,
            close_open_fence=close_open_fence,
        ),
        output=OutputConfig(dir=out_dir, page=page, title=title),
        watch=WatchConfig(debounce_ms=debounce_ms, extensions=extensions),
    )
