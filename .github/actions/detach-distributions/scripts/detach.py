#!/usr/bin/env -S uv run --script
# fmt: off
# /// script
# requires-python = ">=3.12"
# dependencies = [
#   "cyclopts>=3.24,<4.0",
#   "syspath-hack>=0.4.0,<0.5.0",
# ]
# ///
# fmt: on

"""Command-line entry point for detaching distribution archives.

Examples
--------
Detach the archives listed in a build manifest::

    export GITHUB_OUTPUT="$(mktemp)"
    INPUT_MANIFEST=target/build-manifest.toml \
        INPUT_DIST_SVN_STAGING_URL=https://dist.example.org/repos/dist/dev/widget \
        INPUT_IS_DIST_MODULE=true \
        uv run detach.py
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import cyclopts
from cyclopts import App
from syspath_hack import prepend_to_syspath

# Add script directory to path for detach_common import
_SCRIPT_DIR = Path(__file__).resolve().parent
prepend_to_syspath(_SCRIPT_DIR)

from detach_common import (
    DetachConfig,
    DetachError,
    apply_overrides,
    coerce_bool,
    detach_distributions,
    load_artifacts,
    load_settings,
)
from detach_common.config import DEFAULT_BUILD_DIRECTORY, default_working_directory
from detach_common.output import prepare_output_data, write_github_output

app: App = App(
    help="Detach distribution archives from a build and stage their checksums.",
    config=cyclopts.config.Env("INPUT_", command=False),
)


def _normalize_input_env(prefix: str = "INPUT_") -> None:
    """Rewrite dashed ``INPUT_`` keys such as ``INPUT_IS-DIST-MODULE``.

    Underscore keys that are already set win over their dashed spelling.
    """
    dashed = [key for key in os.environ if key.startswith(prefix) and "-" in key]
    for key in dashed:
        value = os.environ.pop(key)
        os.environ.setdefault(key.replace("-", "_"), value)


def _github_output_path() -> Path | None:
    """Return the ``GITHUB_OUTPUT`` file when running inside a workflow."""
    value = os.environ.get("GITHUB_OUTPUT")
    return Path(value) if value else None


def _resolve_config(
    manifest: Path,
    *,
    working_directory: str,
    dist_svn_staging_url: str,
    is_dist_module: str,
) -> DetachConfig:
    """Return the effective configuration for a run.

    An explicit false ``is_dist_module`` input skips the manifest entirely,
    so non-distribution modules never fail on a missing or broken manifest.
    """
    if not coerce_bool(is_dist_module, default=True):
        return DetachConfig(
            working_directory=(
                Path(working_directory)
                if working_directory
                else default_working_directory(
                    manifest.parent / DEFAULT_BUILD_DIRECTORY
                )
            ),
            dist_svn_staging_url=dist_svn_staging_url,
            is_dist_module=False,
        )
    return apply_overrides(
        load_settings(manifest),
        working_directory=working_directory,
        dist_svn_staging_url=dist_svn_staging_url,
        is_dist_module=is_dist_module,
    )


@app.default
def main(
    manifest: str,
    *,
    working_directory: str = "",
    dist_svn_staging_url: str = "",
    is_dist_module: str = "",
) -> None:
    """Detach the distributions listed in ``manifest``.

    The ``[[artifacts]]`` entries are only read for distribution modules.
    Workflow outputs are written for every run that gets as far as the
    pipeline, including failed ones.

    Parameters
    ----------
    manifest
        Path to the TOML build manifest listing the attached artifacts.
    working_directory
        Directory receiving the copies, checksums, and ``sha1.properties``.
        Overrides the manifest value when set.
    dist_svn_staging_url
        Distribution staging location. Nothing is detached while it is empty.
    is_dist_module
        Boolean-like flag marking the module as a distribution module.
        Overrides the manifest value when set.

    Raises
    ------
    SystemExit
        Raised with exit code ``1`` when the manifest is missing or invalid,
        or when detaching, staging, or signing fails.
    """
    manifest_file = Path(manifest)
    try:
        config = _resolve_config(
            manifest_file,
            working_directory=working_directory,
            dist_svn_staging_url=dist_svn_staging_url,
            is_dist_module=is_dist_module,
        )
        attached = load_artifacts(manifest_file) if config.is_dist_module else []
    except (FileNotFoundError, DetachError, ValueError) as exc:
        print(f"::error title=Detach Failure::{exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    result = detach_distributions(config, attached)
    if (github_output := _github_output_path()) is not None:
        write_github_output(github_output, prepare_output_data(result))

    if result.error is not None:
        print(f"::error title=Detach Failure::{result.error}", file=sys.stderr)
        raise SystemExit(1) from result.error
    if result.skipped:
        print(f"Nothing detached ({result.state}).", file=sys.stderr)
        return
    print(
        f"Detached {len(result.detached)} distribution(s) into "
        f"'{result.working_directory}'.",
        file=sys.stderr,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    _normalize_input_env()
    app()
