"""Host implementation for running from a terminal.

WHY: Outside an editor there is no buffer list or window manager to talk
to, but the render cycle still needs somewhere to print messages, a way
to run processes without blocking the watcher's event loop, and a way to
show the artifact.

HOW: Messages go to stderr. Processes run through
asyncio.create_subprocess_exec with both streams piped into OutputSinks.
Opening a view launches the platform opener (open / explorer / xdg-open)
once per artifact and remembers it; viewers started that way watch the
file themselves, so reverting only records the reload. Preview uses the
webbrowser module.

RULES:
- Each artifact is handed to the opener at most once per host
- launch_viewers=False disables launching viewers (headless use, CI)
- A missing or failing opener only warns; the artifact still counts as shown
- Finished viewer processes are reaped on the next launch
- Process output is decoded as UTF-8 with replacement
- On timeout the process is killed and reaped before re-raising
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
import webbrowser
from pathlib import Path
from typing import Optional, Sequence, TextIO

from wavedrom_mode.host.base import Host, NotifyLevel, OutputSink, View

logger = logging.getLogger(__name__)


def platform_opener() -> list[str]:
    """Command that opens a file with its default application."""
    if sys.platform == "darwin":
        return ["open"]
    elif sys.platform == "win32":
        return ["explorer"]
    return ["xdg-open"]


class TerminalHost(Host):
    """Host backed by stderr, asyncio subprocesses, and the desktop opener."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        opener: Optional[Sequence[str]] = None,
        launch_viewers: bool = True,
    ) -> None:
        self._stream = stream
        self._opener = list(opener) if opener is not None else platform_opener()
        self._launch_viewers = launch_viewers
        self._sinks: dict[str, OutputSink] = {}
        self._views: dict[Path, View] = {}
        self._viewers: list[subprocess.Popen] = []

    # ------------------------------------------------------------------
    # Messages and sinks
    # ------------------------------------------------------------------

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        stream = self._stream or sys.stderr
        if level is NotifyLevel.INFO:
            print(message, file=stream, flush=True)
        else:
            print("{}: {}".format(level.value.capitalize(), message), file=stream, flush=True)

    def output_sink(self, name: str) -> OutputSink:
        sink = self._sinks.setdefault(name, OutputSink(name))
        sink.clear()
        return sink

    def sink(self, name: str) -> Optional[OutputSink]:
        """The sink called name without clearing it."""
        return self._sinks.get(name)

    # ------------------------------------------------------------------
    # Processes
    # ------------------------------------------------------------------

    async def run_process(
        self,
        argv: Sequence[str],
        stdout: OutputSink,
        stderr: OutputSink,
        timeout: Optional[float] = None,
    ) -> int:
        logger.debug("Launching: %s", " ".join(argv))
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Killing %s after %ss", argv[0], timeout)
            proc.kill()
            await proc.wait()
            raise
        stdout.write(out.decode("utf-8", errors="replace"))
        stderr.write(err.decode("utf-8", errors="replace"))
        logger.debug("%s exited with status %s", argv[0], proc.returncode)
        return proc.returncode if proc.returncode is not None else 0

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def find_view(self, path: Path) -> Optional[View]:
        return self._views.get(path.resolve())

    def open_view(self, path: Path, secondary: bool = True) -> View:
        view = View(path=path.resolve(), secondary=secondary)
        self._views[view.path] = view
        if self._launch_viewers:
            self._launch_viewer(view.path)
        return view

    def _launch_viewer(self, path: Path) -> None:
        # Reap viewers that have exited since the last launch
        self._viewers = [proc for proc in self._viewers if proc.poll() is None]
        try:
            self._viewers.append(subprocess.Popen(self._opener + [str(path)], start_new_session=True))
        except OSError as e:
            logger.debug("Opener %s failed", self._opener[0], exc_info=True)
            self.notify("Could not open {}: {}".format(path, e), NotifyLevel.WARNING)
            return
        logger.info("Opened %s", path)

    def revert_view(self, view: View) -> None:
        view.reloads += 1
        logger.debug("Reloaded %s (%d)", view.path, view.reloads)

    def browse(self, path: Path) -> None:
        uri = path.resolve().as_uri()
        if not webbrowser.open(uri):
            self.notify("No browser available to open {}".format(uri), NotifyLevel.WARNING)
