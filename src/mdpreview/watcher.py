"""Watch mode: re-render markdown files as they change."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mdpreview.config import MdPreviewConfig
from mdpreview.errors import MdPreviewIOError
from mdpreview.export import output_path_for, read_source, wrap_document, write_html
from mdpreview.renderer import render_lines, split_lines

logger = logging.getLogger("mdpreview.watch")


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """A batch of relevant file changes."""

    changed_paths: frozenset[Path]
    timestamp: float


@dataclass(frozen=True, slots=True)
class WatchCycleResult:
    """Result of a single watch render cycle."""

    rendered: dict[Path, Path]
    failed: dict[Path, str]
    duration_s: float
    changed_paths: frozenset[Path]


def check_watchfiles_available() -> None:
    """Raise ImportError with a helpful message if watchfiles is not installed."""
    import importlib

    try:
        importlib.import_module("watchfiles")
    except ImportError:
        raise ImportError(
            "watchfiles is required for watch mode. Install it with: pip install mdpreview[watch]"
        ) from None


def filter_markdown_files(
    changed_paths: frozenset[Path],
    *,
    roots: list[Path],
    extensions: list[str],
    exclude: list[Path] | None = None,
) -> frozenset[Path]:
    """Keep paths with a markdown extension under `roots`, skipping `exclude` dirs."""
    suffixes = {e.lower() for e in extensions}
    skipped = exclude or []
    kept: set[Path] = set()
    for p in changed_paths:
        if p.suffix.lower() not in suffixes:
            continue
        if any(p.is_relative_to(x) for x in skipped):
            continue
        if any(p.is_relative_to(r) for r in roots):
            kept.add(p)
    return frozenset(kept)


async def run_watch_loop(
    *,
    changes_iter: AsyncIterator[set[tuple[Any, str]]],
    run_cycle: Callable[[WatchEvent], WatchCycleResult],
    on_event: Callable[[str], None],
    on_cycle_result: Callable[[WatchCycleResult], None],
    on_error: Callable[[BaseException], None],
    roots: list[Path],
    extensions: list[str],
    exclude: list[Path] | None = None,
) -> None:
    """Main watch loop. Consumes changes_iter, filters, and calls run_cycle."""
    async for raw_changes in changes_iter:
        paths = frozenset(Path(p) for _, p in raw_changes)
        relevant = filter_markdown_files(
            paths, roots=roots, extensions=extensions, exclude=exclude
        )
        if not relevant:
            continue

        event = WatchEvent(changed_paths=relevant, timestamp=time.monotonic())

        names = ", ".join(str(p) for p in sorted(relevant))
        on_event(f"[watch] change detected: {names}")
        on_event("[watch] rendering...")

        try:
            result = run_cycle(event)
        except Exception as exc:
            on_error(exc)
            continue

        on_event(f"[watch] done ({result.duration_s:.1f}s)")
        on_cycle_result(result)


def format_watch_cycle_json(result: WatchCycleResult) -> dict[str, object]:
    """Format a cycle result as a JSON-serializable dict."""
    return {
        "command": "watch",
        "ok": not result.failed,
        "rendered": {str(src): str(dst) for src, dst in sorted(result.rendered.items())},
        "failed": {str(src): msg for src, msg in sorted(result.failed.items())},
        "duration_s": round(result.duration_s, 2),
        "changed_paths": sorted(str(p) for p in result.changed_paths),
    }


def render_file(source: Path, *, out_dir: Path, cfg: MdPreviewConfig) -> Path:
    """Render one markdown file into `out_dir` and return the written path."""
    text = read_source(source)
    result = render_lines(split_lines(text), cfg.render)
    if result.unterminated_fence:
        logger.warning("%s: document ends inside an unterminated code fence", source)

    body = result.html
    if cfg.output.page:
        body = wrap_document(body, title=cfg.output.title)
    return write_html(output_path_for(source, out_dir=out_dir), body)


def build_cycle_runner(
    *,
    cfg: MdPreviewConfig,
    out_dir: Path,
) -> Callable[[WatchEvent], WatchCycleResult]:
    """Create a cycle runner that renders every changed file into `out_dir`."""

    def runner(event: WatchEvent) -> WatchCycleResult:
        t0 = time.monotonic()
        rendered: dict[Path, Path] = {}
        failed: dict[Path, str] = {}
        for src in sorted(event.changed_paths):
            if not src.exists():
                # Deleted or renamed away; nothing to preview.
                logger.debug("skipping missing file %s", src)
                continue
            try:
                rendered[src] = render_file(src, out_dir=out_dir, cfg=cfg)
            except MdPreviewIOError as e:
                logger.error("%s", e)
                failed[src] = str(e)

        return WatchCycleResult(
            rendered=rendered,
            failed=failed,
            duration_s=time.monotonic() - t0,
            changed_paths=event.changed_paths,
        )

    return runner


def make_watchfiles_iter(
    watch_paths: list[Path],
    *,
    debounce_ms: int = 200,
) -> AsyncIterator[set[tuple[Any, str]]]:
    """Create an async iterator using watchfiles.awatch()."""
    import watchfiles  # type: ignore[import-untyped]

    return watchfiles.awatch(*watch_paths, debounce=debounce_ms)
