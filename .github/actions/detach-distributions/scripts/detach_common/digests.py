"""Digest recording and checksum sidecar generation for detached distributions."""

from __future__ import annotations

import hashlib
import logging
import typing as typ

from .errors import DetachError

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from pathlib import Path

    from .artifacts import Artifact

__all__ = [
    "SHA1_PROPERTIES_FILE",
    "SIDECAR_ALGORITHMS",
    "file_digest",
    "load_sha1_properties",
    "record_sha1s",
    "sign_artifacts",
    "write_sha1_properties",
]


logger = logging.getLogger(__name__)

SHA1_PROPERTIES_FILE = "sha1.properties"
SIDECAR_ALGORITHMS: tuple[str, ...] = ("md5", "sha1")

_PROPERTIES_HEADER = "release sha1s"
_CHUNK_SIZE = 8192
_ESCAPES = {
    "\\": "\\\\",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
    " ": "\\ ",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
}
_UNESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def file_digest(path: Path, algorithm: str) -> str:
    """Return the lower-case hex ``algorithm`` digest of ``path``'s bytes.

    Raises
    ------
    OSError
        Raised when ``path`` cannot be opened or read.
    """
    hasher = hashlib.new(algorithm)
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def record_sha1s(
    artifacts: cabc.Iterable[Artifact], sha1s: dict[str, str] | None = None
) -> dict[str, str]:
    """Record the SHA-1 of every artifact in ``artifacts``.

    Parameters
    ----------
    artifacts
        Every artifact attached to the build, detached or not.
    sha1s
        Existing digest map to extend. A new map is created when omitted.

    Returns
    -------
    dict[str, str]
        Mapping of :attr:`Artifact.key` to SHA-1 hex digest. Repeated keys keep
        the digest recorded last.

    Raises
    ------
    DetachError
        Raised when an artifact's file cannot be read.
    """
    recorded = {} if sha1s is None else sha1s
    for artifact in artifacts:
        try:
            recorded[artifact.key] = file_digest(artifact.file, "sha1")
        except OSError as exc:
            msg = f"Could not find artifact signature for: {artifact.describe()}"
            raise DetachError(msg) from exc
    return recorded


def _escape_property(text: str, *, is_key: bool) -> str:
    """Escape ``text`` for a ``.properties`` file."""
    escaped: list[str] = []
    for index, char in enumerate(text):
        if char == " " and not is_key and index > 0:
            escaped.append(char)
        else:
            escaped.append(_ESCAPES.get(char, char))
    return "".join(escaped)


def write_sha1_properties(sha1s: dict[str, str], working_directory: Path) -> Path:
    """Write ``sha1s`` to ``sha1.properties`` inside ``working_directory``.

    The file is rewritten on every call with a comment header followed by one
    ``key=value`` line per entry, sorted by key.

    Raises
    ------
    DetachError
        Raised when the properties file cannot be written.
    """
    properties_file = working_directory / SHA1_PROPERTIES_FILE
    lines = [f"#{_PROPERTIES_HEADER}"]
    for key, value in sorted(sha1s.items()):
        escaped_key = _escape_property(key, is_key=True)
        lines.append(f"{escaped_key}={_escape_property(value, is_key=False)}")
    try:
        with properties_file.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write("\n".join(lines) + "\n")
    except OSError as exc:
        msg = f"Failure to write sha1's to {properties_file}"
        raise DetachError(msg) from exc
    logger.info("Wrote %d sha1(s) to %s", len(sha1s), properties_file)
    return properties_file


def _split_property(line: str) -> tuple[str, str]:
    """Split a logical properties line at its first unescaped separator."""
    parts: list[str] = []
    chars = iter(line)
    for char in chars:
        if char == "\\":
            following = next(chars, "")
            parts.append(_UNESCAPES.get(following, following))
            continue
        if char in "=:":
            value = _unescape_property("".join(chars))
            return "".join(parts), value
        parts.append(char)
    return "".join(parts), ""


def _unescape_property(text: str) -> str:
    """Reverse :func:`_escape_property` for a value."""
    result: list[str] = []
    chars = iter(text)
    for char in chars:
        if char == "\\":
            following = next(chars, "")
            result.append(_UNESCAPES.get(following, following))
        else:
            result.append(char)
    return "".join(result)


def load_sha1_properties(path: Path) -> dict[str, str]:
    """Return the digest map stored in a ``sha1.properties`` file.

    Comment lines (``#`` or ``!``) and blank lines are ignored.
    """
    sha1s: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.lstrip()
        if not line or line.startswith(("#", "!")):
            continue
        key, value = _split_property(line)
        sha1s[key] = value
    return sha1s


def _write_sidecar(path: Path, digest: str) -> None:
    """Write ``digest`` and a newline to ``path``."""
    with path.open("w", encoding="ascii", newline="\n") as handle:
        handle.write(f"{digest}\n")


def sign_artifacts(
    detached: cabc.Iterable[Artifact], working_directory: Path
) -> list[Path]:
    """Write ``.md5`` and ``.sha1`` sidecars for staged distribution archives.

    Digests are computed over the copies in ``working_directory``. Signature
    files (any name containing ``asc``) are skipped.

    Parameters
    ----------
    detached
        Detached artifacts whose files were already copied into
        ``working_directory``.
    working_directory
        Directory holding the staged copies.

    Returns
    -------
    list[Path]
        Sidecar files in the order they were written.

    Raises
    ------
    DetachError
        Raised when a staged file cannot be read or a sidecar cannot be
        written.
    """
    sidecars: list[Path] = []
    for artifact in detached:
        if artifact.is_signature:
            continue
        name = artifact.file.name
        staged = working_directory / name
        try:
            for algorithm in SIDECAR_ALGORITHMS:
                digest = file_digest(staged, algorithm)
                logger.info("%s %s: %s", name, algorithm, digest)
                sidecar = working_directory / f"{name}.{algorithm}"
                _write_sidecar(sidecar, digest)
                sidecars.append(sidecar)
        except OSError as exc:
            msg = f"Could not sign file: {name}"
            raise DetachError(msg) from exc
    return sidecars
