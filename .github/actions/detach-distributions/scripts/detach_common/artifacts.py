"""Build artifact model and the distribution classifier.

Distribution archives produced by the assembly step (``*-src.zip``,
``*-bin.tar.gz`` and their ``.asc`` signatures) are published through the
distribution channel rather than the package repository. This module decides
which attached artifacts are detached and removes them from the build's
attached collection.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from pathlib import Path

__all__ = [
    "ARTIFACT_TYPES_TO_DETACH",
    "Artifact",
    "classify",
    "detach",
    "is_detachable",
]


ARTIFACT_TYPES_TO_DETACH: frozenset[str] = frozenset(
    {
        "zip",
        "tar.gz",
        "zip.asc",
        "tar.gz.asc",
    }
)


@dataclasses.dataclass(slots=True, frozen=True)
class Artifact:
    """An artifact attached to the build, backed by exactly one file."""

    group_id: str
    artifact_id: str
    version: str
    type: str
    file: Path

    @property
    def key(self) -> str:
        """Return the ``groupId-artifactId-version-type`` digest map key."""
        return "-".join((self.group_id, self.artifact_id, self.version, self.type))

    @property
    def is_signature(self) -> bool:
        """Return ``True`` when the backing file is a detached signature."""
        return "asc" in self.file.name

    def describe(self) -> str:
        """Return a short label used in log and error messages."""
        return f"{self.artifact_id}-{self.version} type: {self.type}"


def is_detachable(artifact: Artifact) -> bool:
    """Return ``True`` when ``artifact``'s type is an allow-listed distribution.

    Matching is exact and case-sensitive; ``ZIP`` or ``tar`` never match.
    """
    return artifact.type in ARTIFACT_TYPES_TO_DETACH


def classify(attached: cabc.Iterable[Artifact]) -> list[Artifact]:
    """Return the detachable members of ``attached`` in iteration order.

    Parameters
    ----------
    attached
        Artifacts currently attached to the build.

    Returns
    -------
    list[Artifact]
        The distribution artifacts to detach. Empty when the build produced
        no distributions.
    """
    return [artifact for artifact in attached if is_detachable(artifact)]


def detach(
    attached: cabc.MutableSequence[Artifact], detached: cabc.Sequence[Artifact]
) -> None:
    """Remove every member of ``detached`` from ``attached`` by equality.

    Removal walks a snapshot of ``detached`` so ``attached`` may be the same
    collection the classification was derived from.
    """
    for artifact in list(detached):
        attached.remove(artifact)
