"""Command-line interface for wavedrom-mode.

WHY: The render-on-save workflow needs a front end outside any editor:
a manual "compile now", a "preview in browser", a watcher that renders
on every save, and access to completion and highlighting for scripts
and editor glue.

HOW: argparse with one sub-command per action. Shared options
(--format, --output-dir, --renderer, --converter, --timeout, --settings)
become keyword overrides for config.load_settings(), the last layer of
the settings load order. Render cycles run on asyncio.run() against a
TerminalHost. Status messages go to stderr; command results (completion
candidates, highlighted text) go to stdout.

RULES:
- compile / watch / preview take .wjson paths; watch also takes directories
- Configuration errors → "Error: ..." on stderr, exit status 1
- Filesystem and process-launch errors → exit status 1
- Advisories (renderer wrote to stderr) do not change the exit status;
  the captured error output is replayed on stderr
- Ctrl-C → exit status 130
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from wavedrom_mode import __version__
from wavedrom_mode.config import SUPPORTED_FORMATS, Settings, load_settings
from wavedrom_mode.core.render import (
    RenderConfigError,
    RenderTimeoutError,
    SourceDocument,
    preview,
    run_render_cycle,
)
from wavedrom_mode.core.syntax import completion_at_point, filter_candidates, highlight
from wavedrom_mode.host.terminal import TerminalHost
from wavedrom_mode.watch import DEFAULT_POLL_INTERVAL_S, SaveWatcher

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str, code: int = 1) -> None:
    print("Error: {}".format(msg), file=sys.stderr, flush=True)
    sys.exit(code)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return load_settings(
        settings_path=Path(args.settings) if args.settings else None,
        output_format=args.format,
        output_dir=args.output_dir,
        renderer_path=args.renderer,
        converter_path=args.converter,
        render_timeout=args.timeout,
    )


def _make_host(args: argparse.Namespace) -> TerminalHost:
    return TerminalHost(launch_viewers=not getattr(args, "no_view", False))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_compile(args: argparse.Namespace) -> None:
    """Render one file now (the manual equivalent of saving it)."""
    settings = _settings_from_args(args)
    host = _make_host(args)
    document = SourceDocument.from_path(args.file)
    result = asyncio.run(run_render_cycle(document, settings, host))
    if result.advisories and result.job.stderr:
        _status(result.job.stderr.text.rstrip())
    _status("Rendered {} → {}".format(document.path.name, result.job.output))


def cmd_preview(args: argparse.Namespace) -> None:
    """Open the file's rendered artifact in a browser."""
    settings = _settings_from_args(args)
    output = preview(SourceDocument.from_path(args.file), settings, _make_host(args))
    _status("Opened {}".format(output))


def cmd_watch(args: argparse.Namespace) -> None:
    """Render every watched file whenever it is saved."""
    # Validate configuration once up front; each cycle reloads it
    _settings_from_args(args)
    watcher = SaveWatcher(
        [Path(p) for p in args.paths],
        _make_host(args),
        settings_loader=lambda: _settings_from_args(args),
        poll_interval=args.interval,
    )
    _status("Watching for saves (Ctrl-C to stop)...")
    asyncio.run(watcher.run(render_on_start=args.initial))


def cmd_complete(args: argparse.Namespace) -> None:
    """Print completion candidates for a cursor offset in a file."""
    text = Path(args.file).read_text(encoding="utf-8")
    offset = len(text) if args.offset is None else args.offset
    start, _end, candidates = completion_at_point(text, offset)
    for candidate in filter_candidates(candidates, text[start:offset]):
        print(candidate)


def cmd_highlight(args: argparse.Namespace) -> None:
    """Print a file with WaveJSON tokens coloured."""
    text = Path(args.file).read_text(encoding="utf-8")
    sys.stdout.write(highlight(text))


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _render_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--format",
        default=None,
        help="Output format: {} (default: from settings, else svg).".format(", ".join(SUPPORTED_FORMATS)),
    )
    common.add_argument(
        "--output-dir",
        default=None,
        help="Directory for rendered files (default: next to the source).",
    )
    common.add_argument(
        "--renderer",
        default=None,
        help="wavedrom-cli executable (default: wavedrom-cli on PATH).",
    )
    common.add_argument(
        "--converter",
        default=None,
        help="Inkscape executable, used for pdf (default: inkscape on PATH).",
    )
    common.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each external step (default: no limit).",
    )
    common.add_argument(
        "--settings",
        default=None,
        help="JSON settings file (default: $WAVEDROM_MODE_SETTINGS or "
             "~/.config/wavedrom-mode/settings.json).",
    )
    common.add_argument(
        "--no-view",
        action="store_true",
        help="Do not open rendered files in a viewer.",
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="wavedrom-mode",
        description="Render WaveJSON timing diagrams with wavedrom-cli whenever they are saved.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    common = _render_options()

    p = sub.add_parser("compile", parents=[common], help="Render a WaveJSON file now.")
    p.add_argument("file", help="Path to the .wjson file.")
    p.set_defaults(func=cmd_compile)

    p = sub.add_parser("preview", parents=[common], help="Open the rendered file in a browser.")
    p.add_argument("file", help="Path to the .wjson file.")
    p.set_defaults(func=cmd_preview)

    p = sub.add_parser("watch", parents=[common], help="Render files whenever they are saved.")
    p.add_argument("paths", nargs="+", help=".wjson files or directories containing them.")
    p.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL_S,
        help="Seconds between save checks (default: %(default)s).",
    )
    p.add_argument(
        "--initial",
        action="store_true",
        help="Render every watched file once at startup.",
    )
    p.set_defaults(func=cmd_watch)

    p = sub.add_parser("complete", help="List completion candidates at a cursor offset.")
    p.add_argument("file", help="Path to the .wjson file.")
    p.add_argument("offset", type=int, nargs="?", default=None, help="Character offset (default: end of file).")
    p.set_defaults(func=cmd_complete)

    p = sub.add_parser("highlight", help="Print a file with WaveJSON tokens coloured.")
    p.add_argument("file", help="Path to the .wjson file.")
    p.set_defaults(func=cmd_highlight)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``wavedrom-mode`` console script.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        args.func(args)
    except KeyboardInterrupt:
        _status("\nStopped.")
        sys.exit(130)
    except RenderTimeoutError as e:
        _fail(str(e))
    except ValueError as e:
        # Configuration errors (RenderConfigError, bad settings file, bad offset)
        _fail(str(e))
    except OSError as e:
        logger.debug("Render failed", exc_info=True)
        _fail(str(e))


if __name__ == "__main__":
    main()
