"""Settings, defaults, and the per-cycle configuration loader.

WHY: Every render cycle needs to know which format to produce, where to
put it, and which external tools to run. Keeping these in one immutable
value that is loaded fresh for each cycle means a cycle never sees a
half-changed configuration, while edits to the settings file or the
environment still take effect on the next save.

HOW: python-dotenv loads the .env file on import. load_settings() layers
four sources, later ones winning:
  1. DEFAULT_SETTINGS
  2. the user settings file (JSON, validated with jsonschema)
  3. environment variables (WAVEDROM_*, INKSCAPE_PATH)
  4. explicit overrides (CLI flags)
The result is a frozen Settings dataclass. Executables are stored as
names or paths and resolved with shutil.which only when a cycle checks
its preconditions.

RULES:
- SUPPORTED_FORMATS is the closed set of output formats
- output_dir None means "next to the source file"
- "~" in output_dir and executable paths is expanded
- An invalid settings file raises ValueError naming the offending key
- A missing settings file is not an error (defaults apply)
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import jsonschema
from dotenv import load_dotenv

# Load .env (python-dotenv searches upward for it)
load_dotenv()

# ---------------------------------------------------------------------------
# Formats and file binding
# ---------------------------------------------------------------------------

SUPPORTED_FORMATS: tuple[str, ...] = ("svg", "png", "pdf")
"""Output formats a render cycle can produce."""

WAVEJSON_SUFFIX = ".wjson"
"""Files ending in this suffix are WaveJSON documents."""

# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------

SETTINGS_ENV_VAR = "WAVEDROM_MODE_SETTINGS"
DEFAULT_SETTINGS_PATH = Path("~/.config/wavedrom-mode/settings.json")

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "output_format": {"type": "string", "enum": list(SUPPORTED_FORMATS)},
        "output_dir": {"type": ["string", "null"]},
        "renderer_path": {"type": ["string", "null"]},
        "converter_path": {"type": ["string", "null"]},
        "render_timeout": {"type": ["number", "null"], "exclusiveMinimum": 0},
    },
}


@dataclass(frozen=True)
class Settings:
    """Configuration for one render cycle.

    Attributes:
        output_format: One of SUPPORTED_FORMATS. Anything else is rejected
                       by the render precondition check, not here.
        output_dir: Directory for rendered artifacts, or None to render
                    next to the source file.
        renderer_path: wavedrom-cli executable (name on PATH or path),
                       or None when unresolved.
        converter_path: inkscape executable, or None. Only needed for pdf.
        render_timeout: Seconds to wait for each external step, or None
                        to wait indefinitely.
    """

    output_format: str = "svg"
    output_dir: Optional[Path] = None
    renderer_path: Optional[str] = "wavedrom-cli"
    converter_path: Optional[str] = "inkscape"
    render_timeout: Optional[float] = None

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied.

        Raises:
            ValueError: If render_timeout is zero or negative.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        timeout = changes.get("render_timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("render_timeout must be positive, got {}".format(timeout))
        if "output_dir" in changes:
            changes["output_dir"] = _as_dir(changes["output_dir"])
        return replace(self, **changes)


DEFAULT_SETTINGS = Settings()


def _as_dir(value: Any) -> Optional[Path]:
    if value is None or value == "":
        return None
    return Path(value).expanduser()


def resolve_executable(value: Optional[str]) -> Optional[Path]:
    """Resolve an executable name or path to an absolute path.

    WHY: Settings hold what the user typed ("wavedrom-cli", "~/bin/inkscape").
    The precondition check needs to know whether that actually runs.

    HOW: Expands "~" and defers to shutil.which, which handles both bare
    names (PATH lookup) and paths (existence + execute bit).

    RULES:
    - None or empty string → None (unresolved)
    - Not found / not executable → None
    """
    if not value:
        return None
    found = shutil.which(os.path.expanduser(value))
    return Path(found).resolve() if found else None


def default_settings_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    configured = env.get(SETTINGS_ENV_VAR, "").strip()
    return Path(configured or DEFAULT_SETTINGS_PATH).expanduser()


def load_settings_file(path: Path) -> dict[str, Any]:
    """Read and validate a JSON settings file.

    RULES:
    - Missing file → {} (defaults apply)
    - Malformed JSON or schema violations → ValueError
    """
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError("Settings file {} is not valid JSON: {}".format(path, e)) from e
    try:
        jsonschema.validate(instance=data, schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ValueError(
            "Invalid settings file {} at {}: {}".format(path, location, e.message)
        ) from e
    return data


def _settings_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    mapping = {
        "WAVEDROM_OUTPUT_FORMAT": "output_format",
        "WAVEDROM_OUTPUT_DIR": "output_dir",
        "WAVEDROM_CLI_PATH": "renderer_path",
        "INKSCAPE_PATH": "converter_path",
    }
    for env_key, field_name in mapping.items():
        raw = environ.get(env_key, "").strip()
        if raw:
            values[field_name] = raw

    raw_timeout = environ.get("WAVEDROM_RENDER_TIMEOUT", "").strip()
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(
                "WAVEDROM_RENDER_TIMEOUT must be a number of seconds, got {!r}".format(raw_timeout)
            ) from None
        if timeout <= 0:
            raise ValueError("WAVEDROM_RENDER_TIMEOUT must be positive, got {}".format(timeout))
        values["render_timeout"] = timeout
    return values


def load_settings(
    settings_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Settings:
    """Build the Settings for one render cycle.

    WHY: Configuration may change between cycles (the user edits the
    settings file, or exports a different INKSCAPE_PATH), so the watcher
    calls this once per save rather than once per process.

    HOW: Starts from DEFAULT_SETTINGS, then applies the settings file,
    the environment, and finally the keyword overrides. None-valued
    overrides mean "not given" and leave the lower layer untouched.

    Args:
        settings_path: JSON settings file; defaults to
                       $WAVEDROM_MODE_SETTINGS or ~/.config/wavedrom-mode/settings.json.
        environ: Environment mapping (defaults to os.environ).
        **overrides: Settings field values from the command line.

    Returns:
        A frozen Settings value.
    """
    env = os.environ if environ is None else environ
    path = settings_path.expanduser() if settings_path else default_settings_path(env)

    file_values = load_settings_file(path)
    if "output_dir" in file_values:
        file_values["output_dir"] = _as_dir(file_values["output_dir"])
    # Explicit nulls in the file are kept: null renderer_path means unresolved
    settings = replace(DEFAULT_SETTINGS, **file_values)
    settings = settings.with_overrides(**_settings_from_env(env))
    return settings.with_overrides(**overrides)
