"""Direct wavedrom-cli rendering for SVG and PNG.

wavedrom-cli reads WaveJSON with ``-i`` and writes SVG with ``-s`` or
PNG with ``-p``. Neither format involves the converter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from wavedrom_mode.backends.base import BaseBackend, RenderCommand

INPUT_FLAG = "-i"
SVG_FLAG = "-s"
PNG_FLAG = "-p"


class WavedromCliBackend(BaseBackend):
    """Single-step render: ``renderer -i SOURCE <flag> OUTPUT``."""

    flag: str = SVG_FLAG
    label: str = "SVG"

    @property
    def name(self) -> str:
        return "WaveDrom {}".format(self.label)

    def build(
        self,
        source: Path,
        output: Path,
        renderer: Path,
        converter: Optional[Path],
    ) -> RenderCommand:
        step = (str(renderer), INPUT_FLAG, str(source), self.flag, str(output))
        return RenderCommand(steps=(step,))


class SvgBackend(WavedromCliBackend):
    flag = SVG_FLAG
    label = "SVG"


class PngBackend(WavedromCliBackend):
    flag = PNG_FLAG
    label = "PNG"
