"""Copy detached distributions into the working directory."""

from __future__ import annotations

import logging
import shutil
import typing as typ

from .errors import DetachError

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from pathlib import Path

    from .artifacts import Artifact

__all__ = ["copy_to_working_directory", "initialize_working_directory"]


logger = logging.getLogger(__name__)


def initialize_working_directory(working_directory: Path) -> Path:
    """Create ``working_directory`` and any missing parents.

    Existing contents are left untouched so a failed run can be repeated.
    """
    try:
        working_directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Could not create working directory {working_directory}"
        raise DetachError(msg) from exc
    return working_directory


def _copy_file(source: Path, destination: Path) -> None:
    """Copy ``source`` over ``destination``, replacing any existing file."""
    if destination.exists():
        if destination.samefile(source):
            logger.info("Already staged: %s", source.name)
            return
        destination.unlink()
    shutil.copyfile(source, destination)


def copy_to_working_directory(
    detached: cabc.Iterable[Artifact], working_directory: Path
) -> list[Path]:
    """Copy each detached artifact's file into ``working_directory``.

    Parameters
    ----------
    detached
        Artifacts removed from the build's attached collection.
    working_directory
        Flat directory that receives the copies under their base names.

    Returns
    -------
    list[Path]
        Paths of the staged copies in ``detached`` order.

    Raises
    ------
    DetachError
        Raised when a file cannot be copied. Copies made before the failure
        are kept.
    """
    logger.info("Copying detached artifacts to working directory.")
    copied: list[Path] = []
    for artifact in detached:
        source = artifact.file
        destination = working_directory / source.name
        logger.info("Copying: %s", source.name)
        try:
            _copy_file(source, destination)
        except OSError as exc:
            msg = f"Could not copy {source} to {destination}"
            raise DetachError(msg) from exc
        copied.append(destination)
    return copied
