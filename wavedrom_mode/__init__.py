"""wavedrom-mode — render WaveJSON timing diagrams on save.

WHY: WaveDrom's command-line renderer turns WaveJSON sources into SVG or
PNG, but running it by hand after every edit is tedious and PDF output
needs a second tool. This package watches for saves of ``.wjson`` files,
derives where the rendered artifact goes, runs the external tools, and
keeps the artifact's view up to date.

HOW: Two loosely coupled parts — a pure token classifier (highlighting
and completion) and a render orchestrator that drives one render cycle
per save through a host capability interface (process execution, views,
notifications). The CLI wires both to a terminal host.

RULES:
- The renderer (wavedrom-cli) and converter (inkscape) are opaque
  external processes; only their invocation contract lives here
- Configuration is an immutable value loaded once per render cycle
- WaveJSON content is never parsed or validated by this package
"""

__version__ = "0.1.0"
