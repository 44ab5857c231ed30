"""Capability interface between the render orchestrator and its host.

WHY: The orchestrator needs to run processes, show messages, and open or
refresh views of the rendered artifact, but it should not care whether
the host is a terminal, an editor plugin, or a test double. Everything
environment-specific goes through this interface.

HOW: Host is an ABC. OutputSink is a named, clearable text buffer that
a host fills with a process's stdout or stderr. View is the host's
handle on an open artifact.

RULES:
- run_process() awaits process exit and returns its exit status
- run_process() lets launch failures (OSError) propagate
- output_sink(name) returns the same sink for the same name, cleared
- revert_view() reloads a view's content from disk
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence


class NotifyLevel(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class OutputSink:
    """A named buffer collecting one stream of process output.

    Attributes:
        name: Identifier shown to the user ("inspect wavedrom-errors").
        chunks: Text received so far, in arrival order.
    """

    name: str
    chunks: list[str] = field(default_factory=list)

    def write(self, text: str) -> None:
        if text:
            self.chunks.append(text)

    def clear(self) -> None:
        self.chunks.clear()

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def __bool__(self) -> bool:
        return any(self.chunks)


@dataclass
class View:
    """A host view displaying a file."""

    path: Path
    secondary: bool = False
    reloads: int = 0


class Host(ABC):
    """Everything a render cycle needs from its environment."""

    @abstractmethod
    def notify(self, message: str, level: NotifyLevel = NotifyLevel.INFO) -> None:
        """Show a message to the user."""

    @abstractmethod
    def output_sink(self, name: str) -> OutputSink:
        """Return the sink called name, emptied."""

    @abstractmethod
    async def run_process(
        self,
        argv: Sequence[str],
        stdout: OutputSink,
        stderr: OutputSink,
        timeout: Optional[float] = None,
    ) -> int:
        """Run argv to completion, appending its streams to the sinks.

        Raises:
            OSError: The process could not be launched.
            asyncio.TimeoutError: timeout elapsed; the process was killed.
        """

    @abstractmethod
    def find_view(self, path: Path) -> Optional[View]:
        """The view currently showing path, if any."""

    @abstractmethod
    def open_view(self, path: Path, secondary: bool = True) -> View:
        """Open path in a new view (secondary = beside the current one)."""

    @abstractmethod
    def revert_view(self, view: View) -> None:
        """Reload the view from disk."""

    @abstractmethod
    def browse(self, path: Path) -> None:
        """Open path in the system's web-capable viewer."""
