"""Abstract command builder and the command containers it produces.

WHY: Each output format needs a different external command line, but the
orchestrator should run any of them the same way. This base class fixes
the interface so the orchestrator only sees a RenderCommand.

HOW: BaseBackend is an ABC with a ``name`` property and a ``build()``
method. RenderCommand is a frozen dataclass holding an ordered chain of
argv tuples plus any intermediate files the chain leaves behind.

RULES:
- Subclasses MUST implement ``name`` and ``build()``
- ``build()`` is pure: it never touches the filesystem or spawns anything
- Steps run in order with ``&&`` semantics (stop at the first failure)
- Paths in argv are absolute-or-as-given strings, never shell-quoted;
  nothing here goes through a shell
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class RenderCommand:
    """A chain of external process invocations.

    Attributes:
        steps: argv tuples, run in order.
        intermediates: files created by early steps for later ones;
                       removed once the chain has run.
    """

    steps: tuple[tuple[str, ...], ...]
    intermediates: tuple[Path, ...] = field(default_factory=tuple)

    @property
    def executables(self) -> tuple[str, ...]:
        return tuple(step[0] for step in self.steps)


class BaseBackend(ABC):
    """Abstract base for per-format command builders.

    To add a new output format:
    1. Create a new module in backends/
    2. Subclass BaseBackend, implement ``name`` and ``build()``
    3. Register it in BACKENDS in backends/__init__.py
    4. Add the format to config.SUPPORTED_FORMATS
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name, e.g. 'WaveDrom SVG'."""

    @abstractmethod
    def build(
        self,
        source: Path,
        output: Path,
        renderer: Path,
        converter: Optional[Path],
    ) -> RenderCommand:
        """Build the command chain rendering source into output.

        Args:
            source: The saved WaveJSON file.
            output: The resolved output artifact path.
            renderer: Resolved wavedrom-cli executable.
            converter: Resolved inkscape executable, or None when the
                       format does not need it.
        """
