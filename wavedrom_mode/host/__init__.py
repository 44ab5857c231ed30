"""Host capability interface and the terminal implementation."""

from wavedrom_mode.host.base import Host, NotifyLevel, OutputSink, View
from wavedrom_mode.host.terminal import TerminalHost

__all__ = ["Host", "NotifyLevel", "OutputSink", "TerminalHost", "View"]
