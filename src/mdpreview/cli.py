from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from mdpreview import __version__
from mdpreview.config import MdPreviewConfig, find_project_root, load_config
from mdpreview.diagnostics import format_error_with_hint, format_failures
from mdpreview.editor import EditorBuffer
from mdpreview.errors import MdPreviewConfigError, MdPreviewIOError
from mdpreview.export import read_source, wrap_document, write_html
from mdpreview.renderer import render_lines, split_lines

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_IO_ERROR = 3
EXIT_MISSING_DEPENDENCY = 4

STDIN = "-"

logger = logging.getLogger("mdpreview.cli")

_log_handler: logging.Handler | None = None


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Project root (defaults to searching upward from cwd for mdpreview.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to mdpreview.toml (defaults to <root>/mdpreview.toml).",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Emit machine-readable JSON on stdout.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mdpreview")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_p = subparsers.add_parser("render", help="Render a markdown file to HTML.")
    _add_common_flags(render_p)
    render_p.add_argument(
        "source", nargs="?", default=STDIN, help="Markdown file (default: stdin)."
    )
    render_p.add_argument(
        "-o", "--output", type=str, default=None, help="Write HTML here instead of stdout."
    )
    render_p.add_argument(
        "--page", action="store_true", help="Wrap the output in a full HTML page."
    )
    render_p.add_argument("--title", type=str, default=None, help="Page title (with --page).")

    stats_p = subparsers.add_parser("stats", help="Show character and line counts.")
    _add_common_flags(stats_p)
    stats_p.add_argument(
        "source", nargs="?", default=STDIN, help="Markdown file (default: stdin)."
    )

    watch_p = subparsers.add_parser("watch", help="Re-render markdown files on change.")
    _add_common_flags(watch_p)
    watch_p.add_argument(
        "paths", nargs="*", default=[], help="Files or directories to watch (default: root)."
    )
    watch_p.add_argument(
        "--out-dir", type=str, default=None, help="Output directory (default: output.dir)."
    )

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _configure_logging(verbose: bool) -> None:
    global _log_handler

    pkg_logger = logging.getLogger("mdpreview")
    # Replace the handler from a previous call so it follows the current stderr.
    if _log_handler is not None:
        pkg_logger.removeHandler(_log_handler)
    _log_handler = logging.StreamHandler(sys.stderr)
    _log_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    pkg_logger.addHandler(_log_handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _resolve_root_and_config(args: argparse.Namespace) -> tuple[Path | None, Path | None]:
    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    return root, config_path


def _load_config(args: argparse.Namespace) -> tuple[Path, MdPreviewConfig]:
    root, config_path = _resolve_root_and_config(args)
    if root is None and config_path is not None:
        root = config_path.parent
    elif root is None:
        root = find_project_root(Path.cwd()) or Path.cwd().resolve()

    cfg = load_config(root=root, config_path=config_path)
    return root, cfg


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _emit_json(data: dict[str, object]) -> None:
    print(json.dumps(data, ensure_ascii=False))


def _report_error(args: argparse.Namespace, e: BaseException) -> None:
    if _is_json_mode(args):
        _emit_json({"command": args.command, "ok": False, "error": str(e) or repr(e)})
    else:
        _eprint(format_error_with_hint(e))


def _read_stdin() -> str:
    data = sys.stdin.buffer.read()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MdPreviewIOError("Source is not valid UTF-8: <stdin>") from e


def _read_input(source: str) -> str:
    if source == STDIN:
        return _read_stdin()
    return read_source(Path(source))


def cmd_render(args: argparse.Namespace) -> int:
    try:
        _, cfg = _load_config(args)
        text = _read_input(args.source)

        result = render_lines(split_lines(text), cfg.render)
        if result.unterminated_fence:
            logger.warning("%s: document ends inside an unterminated code fence", args.source)

        body = result.html
        if args.page or cfg.output.page:
            title = args.title or cfg.output.title
            body = wrap_document(body, title=title)

        out_path = None
        if args.output:
            out_path = write_html(Path(args.output), body)
            logger.debug("wrote %s", out_path)

        if _is_json_mode(args):
            _emit_json(
                {
                    "command": "render",
                    "ok": True,
                    "output": str(out_path) if out_path else None,
                    "html": None if out_path else body,
                    "unterminated_fence": result.unterminated_fence,
                }
            )
        elif out_path is None:
            sys.stdout.write(body)
            if body and not body.endswith("\n"):
                sys.stdout.write("\n")
        return EXIT_OK
    except MdPreviewConfigError as e:
        _report_error(args, e)
        return EXIT_CONFIG_ERROR
    except MdPreviewIOError as e:
        _report_error(args, e)
        return EXIT_IO_ERROR


def cmd_stats(args: argparse.Namespace) -> int:
    try:
        _load_config(args)
        buf = EditorBuffer(text=_read_input(args.source))
    except MdPreviewConfigError as e:
        _report_error(args, e)
        return EXIT_CONFIG_ERROR
    except MdPreviewIOError as e:
        _report_error(args, e)
        return EXIT_IO_ERROR

    unterminated = render_lines(split_lines(buf.text)).unterminated_fence
    if _is_json_mode(args):
        _emit_json(
            {
                "command": "stats",
                "ok": True,
                "chars": buf.char_count,
                "lines": buf.line_count,
                "unterminated_fence": unterminated,
            }
        )
    else:
        print(f"chars: {buf.char_count}")
        print(f"lines: {buf.line_count}")
        if unterminated:
            print("warning: unterminated code fence")
    return EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    from mdpreview import watcher

    try:
        root, cfg = _load_config(args)
        watcher.check_watchfiles_available()
    except MdPreviewConfigError as e:
        _report_error(args, e)
        return EXIT_CONFIG_ERROR
    except ImportError as e:
        _report_error(args, e)
        return EXIT_MISSING_DEPENDENCY

    watch_paths = [Path(p).resolve() for p in args.paths] or [root]
    missing = [p for p in watch_paths if not p.exists()]
    if missing:
        _report_error(args, MdPreviewIOError(f"No such file: {missing[0]}"))
        return EXIT_IO_ERROR

    out_dir = Path(args.out_dir).resolve() if args.out_dir else root / cfg.output.dir
    json_mode = _is_json_mode(args)

    def on_event(msg: str) -> None:
        if not json_mode:
            _eprint(msg)

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if json_mode:
            _emit_json(watcher.format_watch_cycle_json(result))
            return
        for src, dst in sorted(result.rendered.items()):
            _eprint(f"[watch] {src} -> {dst}")
        if result.failed:
            _eprint(format_failures({str(k): v for k, v in result.failed.items()}).rstrip())

    def on_error(exc: BaseException) -> None:
        logger.error("render cycle failed: %s: %s", type(exc).__name__, exc)

    runner = watcher.build_cycle_runner(cfg=cfg, out_dir=out_dir)
    on_event(f"[watch] watching {', '.join(str(p) for p in watch_paths)} -> {out_dir}")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(
                    watch_paths, debounce_ms=cfg.watch.debounce_ms
                ),
                run_cycle=runner,
                on_event=on_event,
                on_cycle_result=on_cycle_result,
                on_error=on_error,
                roots=watch_paths,
                extensions=cfg.watch.extensions,
                exclude=[out_dir],
            )
        )
    except KeyboardInterrupt:
        on_event("[watch] stopped")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_ERROR

    _configure_logging(bool(args.verbose))

    if args.command == "render":
        return cmd_render(args)
    if args.command == "stats":
        return cmd_stats(args)
    if args.command == "watch":
        return cmd_watch(args)

    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
