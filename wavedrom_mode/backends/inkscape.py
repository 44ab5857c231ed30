"""PDF output: wavedrom-cli to an intermediate SVG, then inkscape.

WHY: wavedrom-cli has no PDF writer. Inkscape converts its SVG output
faithfully, so PDF is a two-step chain.

HOW: Step one renders SVG to a hidden file beside the output. Step two
asks inkscape to export that file as PDF to the resolved output path.
The intermediate is listed on the command so the orchestrator can
remove it after the chain runs.

RULES:
- Intermediate name: ``.<stem>.intermediate.svg`` in the output directory
- The converter is required; build() refuses to run without it
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from wavedrom_mode.backends.base import BaseBackend, RenderCommand
from wavedrom_mode.backends.wavedrom_cli import INPUT_FLAG, SVG_FLAG

EXPORT_TYPE_FLAG = "--export-type=pdf"
EXPORT_FILENAME_FLAG = "--export-filename"


def intermediate_path(output: Path) -> Path:
    return output.with_name(".{}.intermediate.svg".format(output.stem))


class PdfBackend(BaseBackend):
    """wavedrom-cli → SVG → inkscape → PDF."""

    @property
    def name(self) -> str:
        return "WaveDrom PDF (via Inkscape)"

    def build(
        self,
        source: Path,
        output: Path,
        renderer: Path,
        converter: Optional[Path],
    ) -> RenderCommand:
        if converter is None:
            raise ValueError("PDF output requires a converter executable")
        svg = intermediate_path(output)
        render_step = (str(renderer), INPUT_FLAG, str(source), SVG_FLAG, str(svg))
        export_step = (
            str(converter),
            str(svg),
            EXPORT_TYPE_FLAG,
            "{}={}".format(EXPORT_FILENAME_FLAG, output),
        )
        return RenderCommand(steps=(render_step, export_step), intermediates=(svg,))
