"""Utilities for preparing and writing detachment workflow outputs."""

from __future__ import annotations

import json
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .pipeline import DetachResult

__all__ = ["prepare_output_data", "write_github_output"]


def prepare_output_data(result: DetachResult) -> dict[str, str | list[str]]:
    """Assemble workflow outputs describing a detachment run.

    Parameters
    ----------
    result
        Outcome returned by
        :func:`~detach_common.pipeline.detach_distributions`.

    Returns
    -------
    dict[str, str | list[str]]
        Values ready to be exported to the GitHub Actions output file. The
        ``remaining_artifacts`` entry lists the keys of the artifacts still
        attached for the repository deployment.
    """
    properties = result.properties_file
    return {
        "state": str(result.state),
        "working_directory": result.working_directory.as_posix(),
        "detached_files": [path.name for path in result.copied],
        "checksum_files": [path.name for path in result.checksum_files],
        "sha1_properties": properties.as_posix() if properties else "",
        "sha1_map": json.dumps(dict(sorted(result.sha1s.items()))),
        "remaining_artifacts": json.dumps(
            [artifact.key for artifact in result.remaining]
        ),
    }


def _format_list_output(key: str, values: list[str]) -> str:
    """Format a list value for GitHub Actions output using heredoc syntax."""
    delimiter = f"gh_{key.upper()}"
    content = "".join(f"{value}\n" for value in values)
    return f"{key}<<{delimiter}\n{content}{delimiter}\n"


def _format_scalar_output(key: str, value: str) -> str:
    """Format a scalar value for GitHub Actions output with escaping."""
    escaped = value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    return f"{key}={escaped}\n"


def write_github_output(file: Path, values: dict[str, str | list[str]]) -> None:
    """Append ``values`` to the GitHub Actions output ``file``.

    Parameters
    ----------
    file
        Target ``GITHUB_OUTPUT`` file that receives the exported values.
    values
        Mapping of output names to values ready for GitHub Actions
        consumption.
    """
    file.parent.mkdir(parents=True, exist_ok=True)
    with file.open("a", encoding="utf-8") as handle:
        for key, value in sorted(values.items()):
            if isinstance(value, list):
                handle.write(_format_list_output(key, value))
            else:
                handle.write(_format_scalar_output(key, value))
