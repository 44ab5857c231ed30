"""Save detection: one render cycle per saved WaveJSON file.

WHY: The workflow is "save, look at the picture". Outside an editor the
only signal that a document was saved is its modification time, so the
watcher polls the watched files and treats each change as a save event.

HOW: SaveWatcher keeps a snapshot of {path: mtime} for every .wjson file
under the watched paths (directories are re-scanned on every poll, so
new files are picked up). poll() diffs against the snapshot. run()
sleeps, polls, and awaits one render cycle per changed file, loading
settings fresh for each cycle.

RULES:
- Only files with the WaveJSON suffix are watched inside directories
- An explicitly named file must carry the WaveJSON suffix
- A new file counts as saved; a deleted file is forgotten silently
- Cycles run one at a time, in path order
- A failed cycle is reported through the host and never stops the watcher
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from wavedrom_mode.config import WAVEJSON_SUFFIX, Settings
from wavedrom_mode.core.render import (
    RenderConfigError,
    RenderResult,
    RenderTimeoutError,
    SourceDocument,
    run_render_cycle,
)
from wavedrom_mode.host.base import Host, NotifyLevel

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 0.5


def is_wavejson_file(path: Path) -> bool:
    """True for paths bound to WaveJSON by their suffix."""
    return path.suffix == WAVEJSON_SUFFIX


def collect_sources(paths: Iterable[Path]) -> list[Path]:
    """Expand watched paths into the WaveJSON files they cover.

    Raises:
        ValueError: A named file is not a WaveJSON file.
        FileNotFoundError: A named path does not exist.
    """
    sources: list[Path] = []
    for path in paths:
        if path.is_dir():
            sources.extend(p.resolve() for p in sorted(path.glob("*" + WAVEJSON_SUFFIX)) if p.is_file())
        elif path.is_file():
            if not is_wavejson_file(path):
                raise ValueError("Not a WaveJSON file (expected {}): {}".format(WAVEJSON_SUFFIX, path))
            sources.append(path.resolve())
        else:
            raise FileNotFoundError("No such file or directory: {}".format(path))
    return sorted(set(sources))


class SaveWatcher:
    """Poll WaveJSON files and render each one when it is saved."""

    def __init__(
        self,
        paths: Iterable[Path],
        host: Host,
        settings_loader: Callable[[], Settings],
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        self._paths = [Path(p) for p in paths]
        self._host = host
        self._settings_loader = settings_loader
        self._poll_interval = poll_interval
        self._snapshot: dict[Path, float] = {}
        collect_sources(self._paths)  # fail fast on bad arguments

    def _scan(self) -> dict[Path, float]:
        mtimes: dict[Path, float] = {}
        for source in collect_sources(p for p in self._paths if p.exists()):
            try:
                mtimes[source] = source.stat().st_mtime
            except FileNotFoundError:
                continue
        return mtimes

    def prime(self) -> list[Path]:
        """Take the initial snapshot; returns the files being watched."""
        self._snapshot = self._scan()
        return sorted(self._snapshot)

    def poll(self) -> list[Path]:
        """Files saved since the previous poll (or prime)."""
        current = self._scan()
        changed = [
            path for path, mtime in current.items()
            if self._snapshot.get(path) != mtime
        ]
        self._snapshot = current
        return sorted(changed)

    async def render(self, path: Path) -> Optional[RenderResult]:
        """Run one cycle for path; report failures instead of raising."""
        try:
            settings = self._settings_loader()
            result = await run_render_cycle(SourceDocument.from_path(path), settings, self._host)
        except (RenderConfigError, RenderTimeoutError, OSError, ValueError) as e:
            logger.error("Render of %s failed: %s", path.name, e)
            self._host.notify("{}: {}".format(path.name, e), NotifyLevel.ERROR)
            return None
        logger.info("Rendered %s → %s", path.name, result.job.output)
        return result

    async def run(self, render_on_start: bool = False, max_polls: Optional[int] = None) -> None:
        """Watch until cancelled (or until max_polls polls have run)."""
        watched = self.prime()
        logger.info("Watching %d WaveJSON file(s)", len(watched))
        if render_on_start:
            for path in watched:
                await self.render(path)

        polls = 0
        while max_polls is None or polls < max_polls:
            await asyncio.sleep(self._poll_interval)
            polls += 1
            for path in self.poll():
                await self.render(path)
