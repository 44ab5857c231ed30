"""Command builder registry — one backend per output format.

WHY: The orchestrator picks a command line by output format. A central
dict keeps that choice in one place and makes adding a format a
one-line change.

HOW: BACKENDS maps format keys to backend *classes*. build_command()
looks the format up and returns None for formats nobody handles.

RULES:
- Keys match config.SUPPORTED_FORMATS
- Unknown formats yield None, never an exception
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from wavedrom_mode.backends.base import BaseBackend, RenderCommand
from wavedrom_mode.backends.inkscape import PdfBackend
from wavedrom_mode.backends.wavedrom_cli import PngBackend, SvgBackend

BACKENDS: dict[str, type[BaseBackend]] = {
    "svg": SvgBackend,
    "png": PngBackend,
    "pdf": PdfBackend,
}


def build_command(
    output_format: str,
    source: Path,
    output: Path,
    renderer: Path,
    converter: Optional[Path] = None,
) -> Optional[RenderCommand]:
    """Build the render command for a format, or None if unsupported."""
    backend_cls = BACKENDS.get(output_format)
    if backend_cls is None:
        return None
    return backend_cls().build(source, output, renderer, converter)


__all__ = ["BACKENDS", "BaseBackend", "RenderCommand", "build_command"]
