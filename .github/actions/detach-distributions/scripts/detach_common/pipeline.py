"""Detach, stage, and sign distribution archives for a single build."""

from __future__ import annotations

import dataclasses
import enum
import logging
import typing as typ

from .artifacts import Artifact, classify, detach
from .digests import record_sha1s, sign_artifacts, write_sha1_properties
from .errors import DetachError
from .staging import copy_to_working_directory, initialize_working_directory

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from pathlib import Path

    from .config import DetachConfig

__all__ = ["DetachResult", "RunState", "detach_distributions"]


logger = logging.getLogger(__name__)


class RunState(enum.StrEnum):
    """Progress of a detachment run."""

    NOT_STARTED = "not-started"
    CLASSIFIED = "classified"
    RECORDED = "recorded"
    STAGED = "staged"
    SIGNED = "signed"
    DONE = "done"
    FAILED = "failed"
    SKIPPED_NOT_DIST_MODULE = "skipped-not-dist-module"
    SKIPPED_NO_STAGING_URL = "skipped-no-staging-url"
    SKIPPED_EMPTY_SET = "skipped-empty-set"


_SKIPPED_STATES = frozenset(
    {
        RunState.SKIPPED_NOT_DIST_MODULE,
        RunState.SKIPPED_NO_STAGING_URL,
        RunState.SKIPPED_EMPTY_SET,
    }
)


@dataclasses.dataclass(slots=True)
class DetachResult:
    """Outcome of :func:`detach_distributions`."""

    state: RunState
    working_directory: Path
    detached: list[Artifact] = dataclasses.field(default_factory=list)
    remaining: list[Artifact] = dataclasses.field(default_factory=list)
    sha1s: dict[str, str] = dataclasses.field(default_factory=dict)
    copied: list[Path] = dataclasses.field(default_factory=list)
    checksum_files: list[Path] = dataclasses.field(default_factory=list)
    properties_file: Path | None = None
    error: DetachError | None = None

    @property
    def ok(self) -> bool:
        """Return ``True`` unless the run failed."""
        return self.state is not RunState.FAILED

    @property
    def skipped(self) -> bool:
        """Return ``True`` when the run exited early without side effects."""
        return self.state in _SKIPPED_STATES


def detach_distributions(
    config: DetachConfig, attached: cabc.MutableSequence[Artifact]
) -> DetachResult:
    """Detach distribution archives from ``attached`` and stage them.

    Parameters
    ----------
    config
        Working directory and run-time switches.
    attached
        The build's attached artifacts. Detached distributions are removed
        from this collection in place.

    Returns
    -------
    DetachResult
        Final state of the run. A failure is reported as
        :attr:`RunState.FAILED` with :attr:`DetachResult.error` set; files
        written before the failure are left in place.
    """
    result = DetachResult(RunState.NOT_STARTED, config.working_directory)

    if not config.is_dist_module:
        logger.info(
            "This module is marked as a non distribution or assembly module, "
            "and the plugin will not run."
        )
        result.state = RunState.SKIPPED_NOT_DIST_MODULE
        return result
    if not config.dist_svn_staging_url:
        logger.warning(
            "dist_svn_staging_url is not set, distributions will not be detached."
        )
        result.state = RunState.SKIPPED_NO_STAGING_URL
        return result

    logger.info("Detaching Assemblies")
    observed = list(attached)
    result.detached = classify(observed)
    detach(attached, result.detached)
    result.remaining = list(attached)
    result.state = RunState.CLASSIFIED

    if not result.detached:
        logger.info("Current project contains no distributions. Not executing.")
        result.state = RunState.SKIPPED_EMPTY_SET
        return result

    try:
        _run_stages(result, observed)
    except DetachError as exc:
        logger.error("Detaching distributions failed after %s: %s", result.state, exc)  # noqa: TRY400
        result.error = exc
        result.state = RunState.FAILED
    return result


def _run_stages(result: DetachResult, observed: list[Artifact]) -> None:
    """Record, stage, and sign, advancing ``result.state`` after each step."""
    working_directory = result.working_directory

    result.sha1s = record_sha1s(observed)
    initialize_working_directory(working_directory)
    result.properties_file = write_sha1_properties(result.sha1s, working_directory)
    result.state = RunState.RECORDED

    result.copied = copy_to_working_directory(result.detached, working_directory)
    result.state = RunState.STAGED

    result.checksum_files = sign_artifacts(result.detached, working_directory)
    result.state = RunState.SIGNED

    logger.info(
        "Staged %d distribution(s) with %d checksum file(s) in %s",
        len(result.copied),
        len(result.checksum_files),
        working_directory,
    )
    result.state = RunState.DONE
