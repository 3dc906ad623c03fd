"""Helper package for detaching distribution archives from a build.

Distribution archives and their signatures are removed from the build's
attached artifacts, copied into a working directory, and given ``.md5`` and
``.sha1`` checksum sidecars. A ``sha1.properties`` file records the SHA-1 of
every attached artifact for the release audit trail.
"""

from __future__ import annotations

from .artifacts import ARTIFACT_TYPES_TO_DETACH, Artifact, classify, detach
from .config import (
    BuildManifest,
    DetachConfig,
    apply_overrides,
    coerce_bool,
    load_artifacts,
    load_manifest,
    load_settings,
)
from .digests import load_sha1_properties, record_sha1s, sign_artifacts
from .errors import DetachError
from .pipeline import DetachResult, RunState, detach_distributions

__all__ = [
    "ARTIFACT_TYPES_TO_DETACH",
    "Artifact",
    "BuildManifest",
    "DetachConfig",
    "DetachError",
    "DetachResult",
    "RunState",
    "apply_overrides",
    "classify",
    "coerce_bool",
    "detach",
    "detach_distributions",
    "load_artifacts",
    "load_manifest",
    "load_settings",
    "load_sha1_properties",
    "record_sha1s",
    "sign_artifacts",
]
