"""Syntax classification and the render cycle.

WHY: These two modules are the package's logic; everything else is
wiring (configuration, hosts, the CLI).

HOW: syntax.py classifies WaveJSON tokens for highlighting and
completion. render.py drives one render cycle through a Host.

RULES:
- syntax.py is pure and has no dependencies inside the package
- render.py never talks to the OS directly except for the output
  directory; processes and views go through the Host
"""
