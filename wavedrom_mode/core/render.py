"""The render cycle: from a saved WaveJSON file to a visible artifact.

WHY: Saving a .wjson file should leave an up-to-date rendering on screen
without the user running anything. That takes a handful of steps, each
of which can go wrong in its own way, and the user needs to know which
failures stopped the render and which only deserve a look.

HOW: run_render_cycle() walks a RenderJob through the RenderStage states
in order:
  PRECONDITION_CHECK → ENSURE_OUTPUT_DIR → BUILD_COMMAND → EXECUTE
  → CLASSIFY → PRESENT → DONE
Configuration problems raise RenderConfigError before anything touches
the disk. Filesystem and launch errors propagate as OSError. Output on
the renderer's error stream only produces an advisory, and the cycle
still presents the artifact.

RULES:
- Output path = (output_dir or source dir) / (source stem + "." + format)
- Nothing is created or launched when a precondition fails
- Documents with unsaved edits are rejected; a cycle renders what is on disk
- Both sinks are cleared when a cycle starts (last cycle wins)
- Command chains stop at the first step with a non-zero exit status
- Intermediate files are removed after the chain, success or not
- The artifact is opened in a secondary view if no view shows it, and
  is always reverted from disk afterwards
- No retries; every cycle is independent
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from wavedrom_mode.backends import RenderCommand, build_command
from wavedrom_mode.config import SUPPORTED_FORMATS, Settings, resolve_executable
from wavedrom_mode.host.base import Host, NotifyLevel, OutputSink, View

logger = logging.getLogger(__name__)

OUTPUT_SINK = "wavedrom-output"
ERROR_SINK = "wavedrom-errors"


class RenderConfigError(ValueError):
    """A render cycle cannot start with the current configuration.

    WHY: Callers need to tell "fix your settings" apart from I/O and
    process failures, which surface as OSError.
    """


class RenderTimeoutError(TimeoutError):
    """An external step ran longer than the configured render_timeout."""

    def __init__(self, executable: str, timeout: float) -> None:
        self.executable = executable
        self.timeout = timeout
        super().__init__("{} did not finish within {}s".format(executable, timeout))


class RenderStage(str, enum.Enum):
    """States of a render cycle, in the order they are entered."""

    PRECONDITION_CHECK = "precondition_check"
    ENSURE_OUTPUT_DIR = "ensure_output_dir"
    BUILD_COMMAND = "build_command"
    EXECUTE = "execute"
    CLASSIFY = "classify"
    PRESENT = "present"
    DONE = "done"


@dataclass
class SourceDocument:
    """The document a cycle renders.

    path is None for a buffer that has never been saved. modified is True
    when the buffer holds edits that are not yet on disk.
    """

    path: Optional[Path]
    modified: bool = False

    @classmethod
    def from_path(cls, path: str | Path) -> "SourceDocument":
        return cls(path=Path(path).expanduser().resolve())


@dataclass
class RenderJob:
    """State of one render cycle.

    RULES:
    - Created by run_render_cycle() once preconditions pass
    - exit_codes holds one entry per step that actually ran
    """

    source: Path
    output: Path
    output_format: str
    stdout: OutputSink
    stderr: OutputSink
    stage: RenderStage = RenderStage.PRECONDITION_CHECK
    command: Optional[RenderCommand] = None
    exit_codes: list[int] = field(default_factory=list)

    def advance(self, stage: RenderStage) -> None:
        logger.debug("%s: %s → %s", self.source.name, self.stage.value, stage.value)
        self.stage = stage


@dataclass
class RenderResult:
    """What a finished cycle produced."""

    job: RenderJob
    advisories: list[str] = field(default_factory=list)
    view: Optional[View] = None

    @property
    def clean(self) -> bool:
        return not self.advisories


@dataclass(frozen=True)
class ResolvedTools:
    renderer: Path
    converter: Optional[Path] = None


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def resolve_output_path(source: Path, settings: Settings) -> Path:
    """Where the artifact for source goes under settings.

    Pure: the configured directory does not need to exist.
    """
    directory = settings.output_dir if settings.output_dir is not None else source.parent
    return directory / "{}.{}".format(source.stem, settings.output_format)


def check_preconditions(document: SourceDocument, settings: Settings) -> tuple[Path, ResolvedTools]:
    """Validate everything a cycle needs before it touches anything.

    Returns:
        The source path and the resolved executables.

    Raises:
        RenderConfigError: With a message saying what to fix.
    """
    if document.path is None:
        raise RenderConfigError("Buffer is not visiting a file; save it before rendering")
    source = document.path
    if document.modified:
        raise RenderConfigError("{} has unsaved changes; save it before rendering".format(source.name))
    if not source.is_file():
        raise RenderConfigError("Source file {} does not exist; save it before rendering".format(source))

    if settings.output_format not in SUPPORTED_FORMATS:
        raise RenderConfigError(
            "Unsupported output format '{}'. Supported formats: {}".format(
                settings.output_format, ", ".join(SUPPORTED_FORMATS)
            )
        )

    renderer = resolve_executable(settings.renderer_path)
    if renderer is None:
        raise RenderConfigError(
            "WaveDrom renderer not found: {!r}. Install wavedrom-cli or set "
            "WAVEDROM_CLI_PATH / --renderer.".format(settings.renderer_path)
        )

    converter: Optional[Path] = None
    if settings.output_format == "pdf":
        converter = resolve_executable(settings.converter_path)
        if converter is None:
            raise RenderConfigError(
                "PDF output needs Inkscape, which was not found: {!r}. Set "
                "INKSCAPE_PATH / --converter.".format(settings.converter_path)
            )

    output_dir = settings.output_dir
    if output_dir is not None and output_dir.exists() and not output_dir.is_dir():
        raise RenderConfigError("Output directory {} exists but is not a directory".format(output_dir))

    return source, ResolvedTools(renderer=renderer, converter=converter)


def classify_result(job: RenderJob) -> list[str]:
    """Advisory messages for a finished execution.

    RULES:
    - Any text on the error sink → "There were errors, inspect <sink>"
    - A non-zero exit with a silent error sink → exit-status advisory
    - Neither → []
    """
    if job.stderr:
        return ["There were errors, inspect {}".format(job.stderr.name)]
    failed = [code for code in job.exit_codes if code != 0]
    if failed and job.command is not None:
        step = job.command.executables[len(job.exit_codes) - 1]
        return ["{} exited with status {}".format(Path(step).name, failed[-1])]
    return []


# ---------------------------------------------------------------------------
# Effectful stages
# ---------------------------------------------------------------------------


async def execute(job: RenderJob, host: Host, timeout: Optional[float] = None) -> None:
    """Run the job's command chain, recording each exit status."""
    assert job.command is not None
    try:
        for argv in job.command.steps:
            try:
                code = await host.run_process(argv, job.stdout, job.stderr, timeout=timeout)
            except asyncio.TimeoutError as e:
                raise RenderTimeoutError(Path(argv[0]).name, timeout or 0) from e
            job.exit_codes.append(code)
            if code != 0:
                logger.debug("Stopping chain: %s exited with %s", argv[0], code)
                break
    finally:
        for intermediate in job.command.intermediates:
            intermediate.unlink(missing_ok=True)


def present_artifact(host: Host, output: Path) -> View:
    """Show output: open a secondary view if needed, then reload it."""
    view = host.find_view(output)
    if view is None:
        view = host.open_view(output, secondary=True)
    host.revert_view(view)
    return view


async def run_render_cycle(document: SourceDocument, settings: Settings, host: Host) -> RenderResult:
    """Render document once with settings, through host.

    Raises:
        RenderConfigError: A precondition failed; nothing was changed.
        RenderTimeoutError: A step exceeded settings.render_timeout.
        OSError: Creating the output directory or launching a process failed.
    """
    stdout = host.output_sink(OUTPUT_SINK)
    stderr = host.output_sink(ERROR_SINK)

    source, tools = check_preconditions(document, settings)
    job = RenderJob(
        source=source,
        output=resolve_output_path(source, settings),
        output_format=settings.output_format,
        stdout=stdout,
        stderr=stderr,
    )

    job.advance(RenderStage.ENSURE_OUTPUT_DIR)
    if settings.output_dir is not None and not settings.output_dir.exists():
        logger.info("Creating output directory %s", settings.output_dir)
        settings.output_dir.mkdir(parents=True, exist_ok=True)

    job.advance(RenderStage.BUILD_COMMAND)
    job.command = build_command(job.output_format, job.source, job.output, tools.renderer, tools.converter)
    if job.command is None:
        raise RenderConfigError("No render command for format '{}'".format(job.output_format))

    job.advance(RenderStage.EXECUTE)
    await execute(job, host, timeout=settings.render_timeout)

    job.advance(RenderStage.CLASSIFY)
    result = RenderResult(job=job, advisories=classify_result(job))
    for advisory in result.advisories:
        logger.warning("%s: %s", source.name, advisory)
        host.notify(advisory, NotifyLevel.WARNING)

    job.advance(RenderStage.PRESENT)
    result.view = present_artifact(host, job.output)

    job.advance(RenderStage.DONE)
    return result


def preview(document: SourceDocument, settings: Settings, host: Host) -> Path:
    """Open the document's current artifact in the web-capable viewer."""
    if document.path is None:
        raise RenderConfigError("Buffer is not visiting a file")
    output = resolve_output_path(document.path, settings)
    host.browse(output)
    return output
