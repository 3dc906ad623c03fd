"""Configuration models and the build manifest loader.

The build tool hands its state to the action as a TOML manifest::

    [project]
    group_id = "org.example"
    artifact_id = "widget"
    version = "1.2"
    build_directory = "target"

    [release]
    dist_svn_staging_url = "https://dist.example.org/repos/dist/dev/widget"
    is_dist_module = true

    [[artifacts]]
    type = "zip"
    file = "target/widget-1.2-bin.zip"

Artifact coordinates default to the ``[project]`` values and relative paths
resolve against the manifest's directory.
"""

from __future__ import annotations

import dataclasses
import tomllib
import typing as typ
from pathlib import Path

from .artifacts import Artifact
from .errors import DetachError

__all__ = [
    "DEFAULT_BUILD_DIRECTORY",
    "WORKING_DIRECTORY_NAME",
    "BuildManifest",
    "DetachConfig",
    "apply_overrides",
    "coerce_bool",
    "default_working_directory",
    "load_artifacts",
    "load_manifest",
    "load_settings",
]


DEFAULT_BUILD_DIRECTORY = "target"
WORKING_DIRECTORY_NAME = "commons-release-plugin"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}
_COORDINATES = ("group_id", "artifact_id", "version")


@dataclasses.dataclass(slots=True)
class DetachConfig:
    """Run-time switches for :func:`~detach_common.pipeline.detach_distributions`."""

    working_directory: Path
    dist_svn_staging_url: str = ""
    is_dist_module: bool = False


@dataclasses.dataclass(slots=True)
class BuildManifest:
    """Concrete manifest produced by :func:`load_manifest`."""

    config: DetachConfig
    artifacts: list[Artifact]
    manifest_file: Path


def coerce_bool(value: object, *, default: bool) -> bool:
    """Interpret manifest and action input values as booleans.

    Action inputs arrive as strings, so ``1``/``true``/``yes``/``on`` and
    ``0``/``false``/``no``/``off`` are accepted in any case.

    Parameters
    ----------
    value
        The manifest value or action input to coerce. Accepts bool, str, or
        None.
    default
        The value to return when ``value`` is None or a blank string, so an
        unset action input defers to the manifest.

    Returns
    -------
    bool
        The coerced boolean value.

    Raises
    ------
    ValueError
        Raised when ``value`` cannot be interpreted as a boolean.

    Examples
    --------
    >>> coerce_bool("TRUE", default=False)
    True
    >>> coerce_bool("", default=False)
    False
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalised = value.strip().lower()
        if not normalised:
            return default
        if normalised in _TRUTHY:
            return True
        if normalised in _FALSY:
            return False
    msg = f"Cannot interpret {value!r} as boolean"
    raise ValueError(msg)


def default_working_directory(build_directory: Path) -> Path:
    """Return the working directory used when none is configured."""
    return build_directory / WORKING_DIRECTORY_NAME


def load_manifest(manifest_file: Path) -> BuildManifest:
    """Load the build manifest at ``manifest_file``.

    Parameters
    ----------
    manifest_file
        Path to the TOML manifest describing the build's attached artifacts
        and release settings.

    Returns
    -------
    BuildManifest
        Resolved configuration and the attached artifacts in manifest order.

    Raises
    ------
    FileNotFoundError
        Raised when ``manifest_file`` does not exist.
    DetachError
        Raised when the manifest is malformed or misses required keys.
    """
    manifest_file = Path(manifest_file)
    data = _read_manifest(manifest_file)
    return BuildManifest(
        _settings_from(data, manifest_file),
        _artifacts_from(data, manifest_file),
        manifest_file,
    )


def load_settings(manifest_file: Path) -> DetachConfig:
    """Load only the ``[project]`` and ``[release]`` settings of a manifest.

    ``[[artifacts]]`` entries are not validated, so a run that is skipped by
    its settings never fails on them.

    Raises
    ------
    FileNotFoundError
        Raised when ``manifest_file`` does not exist.
    DetachError
        Raised when the manifest or its settings are malformed.
    """
    manifest_file = Path(manifest_file)
    return _settings_from(_read_manifest(manifest_file), manifest_file)


def load_artifacts(manifest_file: Path) -> list[Artifact]:
    """Load the attached artifacts listed in a manifest, in manifest order.

    Raises
    ------
    FileNotFoundError
        Raised when ``manifest_file`` does not exist.
    DetachError
        Raised when an artifact entry is malformed.
    """
    manifest_file = Path(manifest_file)
    return _artifacts_from(_read_manifest(manifest_file), manifest_file)


def _read_manifest(manifest_file: Path) -> dict[str, typ.Any]:
    """Return the parsed manifest or raise when it is missing."""
    if not manifest_file.is_file():
        msg = f"Build manifest not found at {manifest_file}"
        raise FileNotFoundError(msg)
    return _load_toml(manifest_file)


def _settings_from(data: dict[str, typ.Any], manifest_file: Path) -> DetachConfig:
    """Build a :class:`DetachConfig` from parsed manifest ``data``."""
    base_dir = manifest_file.resolve().parent
    project = _table(data, "project", manifest_file)
    release = _table(data, "release", manifest_file)

    build_directory = _resolve_path(
        base_dir,
        _optional_str(project, "build_directory", "project", manifest_file)
        or DEFAULT_BUILD_DIRECTORY,
    )
    working_directory_text = _optional_str(
        release, "working_directory", "release", manifest_file
    )
    working_directory = (
        _resolve_path(base_dir, working_directory_text)
        if working_directory_text
        else default_working_directory(build_directory)
    )
    try:
        is_dist_module = coerce_bool(release.get("is_dist_module"), default=False)
    except ValueError as exc:
        msg = f"Invalid [release] is_dist_module in {manifest_file}: {exc}"
        raise DetachError(msg) from exc

    return DetachConfig(
        working_directory=working_directory,
        dist_svn_staging_url=_optional_str(
            release, "dist_svn_staging_url", "release", manifest_file
        ),
        is_dist_module=is_dist_module,
    )


def _artifacts_from(data: dict[str, typ.Any], manifest_file: Path) -> list[Artifact]:
    """Build the attached artifact list from parsed manifest ``data``."""
    project = _table(data, "project", manifest_file)
    return _make_artifacts(
        data, project, manifest_file.resolve().parent, manifest_file
    )


def apply_overrides(
    config: DetachConfig,
    *,
    working_directory: str = "",
    dist_svn_staging_url: str = "",
    is_dist_module: str = "",
) -> DetachConfig:
    """Return ``config`` with non-empty command-line values applied.

    Raises
    ------
    ValueError
        Raised when ``is_dist_module`` is not a boolean-like string.
    """
    return DetachConfig(
        working_directory=(
            Path(working_directory) if working_directory else config.working_directory
        ),
        dist_svn_staging_url=dist_svn_staging_url or config.dist_svn_staging_url,
        is_dist_module=coerce_bool(is_dist_module, default=config.is_dist_module),
    )


def _load_toml(path: Path) -> dict[str, typ.Any]:
    """Load and parse a TOML file."""
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Malformed build manifest {path}: {exc}"
        raise DetachError(msg) from exc


def _table(data: dict[str, typ.Any], name: str, path: Path) -> dict[str, typ.Any]:
    """Return the optional ``[name]`` table, rejecting non-table values."""
    table = data.get(name, {})
    if not isinstance(table, dict):
        msg = f"[{name}] must be a table in {path}"
        raise DetachError(msg)
    return table


def _optional_str(
    section: dict[str, typ.Any], key: str, label: str, path: Path
) -> str:
    """Return ``section[key]`` as a string, or ``""`` when absent."""
    value = section.get(key, "")
    if not isinstance(value, str):
        msg = (
            f"'{key}' must be a string, got {type(value).__name__} "
            f"in [{label}] of {path}"
        )
        raise DetachError(msg)
    return value


def _resolve_path(base_dir: Path, text: str) -> Path:
    """Resolve ``text`` against ``base_dir`` unless it is absolute."""
    candidate = Path(text)
    return candidate if candidate.is_absolute() else base_dir / candidate


def _required_str(
    entry: dict[str, typ.Any],
    key: str,
    fallback: object,
    index: int,
    path: Path,
) -> str:
    """Return a non-empty string for ``key`` or raise :class:`DetachError`."""
    value = entry.get(key, fallback)
    if not isinstance(value, str) or not value:
        msg = f"Missing required artifact key '{key}' in entry #{index} of {path}"
        raise DetachError(msg)
    return value


def _parse_artifact_entry(
    entry: object,
    project: dict[str, typ.Any],
    base_dir: Path,
    index: int,
    path: Path,
) -> Artifact:
    """Parse and validate a single ``[[artifacts]]`` entry."""
    if not isinstance(entry, dict):
        msg = f"Artifact entry #{index} must be a table in {path}"
        raise DetachError(msg)
    coordinates = {
        key: _required_str(entry, key, project.get(key), index, path)
        for key in _COORDINATES
    }
    return Artifact(
        **coordinates,
        type=_required_str(entry, "type", None, index, path),
        file=_resolve_path(base_dir, _required_str(entry, "file", None, index, path)),
    )


def _make_artifacts(
    data: dict[str, typ.Any],
    project: dict[str, typ.Any],
    base_dir: Path,
    path: Path,
) -> list[Artifact]:
    """Build the attached artifact list from ``[[artifacts]]`` entries."""
    entries = data.get("artifacts", [])
    if not isinstance(entries, list):
        msg = f"'artifacts' must be an array of tables in {path}"
        raise DetachError(msg)
    return [
        _parse_artifact_entry(entry, project, base_dir, index, path)
        for index, entry in enumerate(entries, start=1)
    ]
