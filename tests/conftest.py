"""Shared test fixtures for the wavedrom_mode test suite.

WHY: Render-cycle tests need a saved WaveJSON file, executables that
shutil.which will resolve, and a host that records what the cycle asked
it to do without launching anything.

HOW: FakeHost implements the Host interface in memory. Each scripted
process call pops a (exit_code, stdout, stderr) tuple; by default every
process succeeds silently and "renders" by touching its last path
argument. The fake_renderer / fake_converter fixtures are executable
shell scripts in tmp_path.

RULES:
- No test launches wavedrom-cli or inkscape
- Settings are built explicitly; no test depends on the user's
  settings file or environment
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

from wavedrom_mode.config import Settings
from wavedrom_mode.host.base import Host, NotifyLevel, OutputSink, View

HELLO_WORLD = """{ signal: [
  { name: 'clk',  wave: 'p.....|...' },
  { name: 'dat',  wave: 'x.345x|=.x', data: ['head', 'body', 'tail', 'data'] },
  { name: 'req',  wave: '0.1..0|1.0' },
  {},
  { name: 'ack',  wave: '1.....|01.' }
]}
"""


class FakeHost(Host):
    """In-memory Host that records every call."""

    def __init__(self, script: Optional[List[Tuple[int, str, str]]] = None) -> None:
        self.script = list(script or [])
        self.sinks: dict[str, OutputSink] = {}
        self.notifications: list[tuple[str, NotifyLevel]] = []
        self.processes: list[tuple[str, ...]] = []
        self.timeouts: list[Optional[float]] = []
        self.views: dict[Path, View] = {}
        self.opened: list[Path] = []
        self.reverted: list[Path] = []
        self.browsed: list[Path] = []

    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        self.notifications.append((message, level))

    def output_sink(self, name: str) -> OutputSink:
        sink = self.sinks.setdefault(name, OutputSink(name))
        sink.clear()
        return sink

    async def run_process(
        self,
        argv: Sequence[str],
        stdout: OutputSink,
        stderr: OutputSink,
        timeout: Optional[float] = None,
    ) -> int:
        self.processes.append(tuple(argv))
        self.timeouts.append(timeout)
        code, out, err = self.script.pop(0) if self.script else (0, "", "")
        stdout.write(out)
        stderr.write(err)
        if code == 0:
            target = argv[-1].split("=", 1)[-1]
            Path(target).write_text("rendered", encoding="utf-8")
        return code

    def find_view(self, path: Path) -> Optional[View]:
        return self.views.get(path)

    def open_view(self, path: Path, secondary: bool = True) -> View:
        view = View(path=path, secondary=secondary)
        self.views[path] = view
        self.opened.append(path)
        return view

    def revert_view(self, view: View) -> None:
        view.reloads += 1
        self.reverted.append(view.path)

    def browse(self, path: Path) -> None:
        self.browsed.append(path)


def _make_executable(path: Path) -> Path:
    path.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def host_class():
    """The FakeHost class, for tests that script processes or subclass it."""
    return FakeHost


@pytest.fixture
def hello_world():
    """Text of the hello_world WaveJSON document."""
    return HELLO_WORLD


@pytest.fixture
def source_file(tmp_path):
    """A saved hello_world.wjson in its own directory."""
    src_dir = tmp_path / "src"
    src_dir.mkdir()
    path = src_dir / "hello_world.wjson"
    path.write_text(HELLO_WORLD, encoding="utf-8")
    return path


@pytest.fixture
def fake_renderer(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    return _make_executable(bin_dir / "wavedrom-cli")


@pytest.fixture
def fake_converter(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    return _make_executable(bin_dir / "inkscape")


@pytest.fixture
def settings(fake_renderer, fake_converter):
    """Settings pointing at the fake executables, svg, no output dir."""
    return Settings(
        output_format="svg",
        output_dir=None,
        renderer_path=str(fake_renderer),
        converter_path=str(fake_converter),
    )


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment with no wavedrom-mode variables and no settings file."""
    for key in list(os.environ):
        if key.startswith("WAVEDROM_") or key == "INKSCAPE_PATH":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WAVEDROM_MODE_SETTINGS", str(tmp_path / "missing-settings.json"))
    return {"WAVEDROM_MODE_SETTINGS": str(tmp_path / "missing-settings.json")}
