"""Tests for digest recording and checksum sidecars."""

from __future__ import annotations

import hashlib
import re
import shutil
import typing as typ

import pytest

from detach_common.digests import (
    SHA1_PROPERTIES_FILE,
    file_digest,
    load_sha1_properties,
    record_sha1s,
    sign_artifacts,
    write_sha1_properties,
)
from detach_common.errors import DetachError

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from pathlib import Path

    from detach_common.artifacts import Artifact


def _stage(artifacts: list[Artifact], working_directory: Path) -> None:
    working_directory.mkdir(exist_ok=True)
    for artifact in artifacts:
        shutil.copyfile(artifact.file, working_directory / artifact.file.name)


class TestFileDigest:
    """Tests for the file_digest helper."""

    def test_matches_hashlib(self, tmp_path: Path) -> None:
        """Chunked hashing matches a one-shot digest."""
        payload = bytes(range(256)) * 100
        path = tmp_path / "blob"
        path.write_bytes(payload)

        assert file_digest(path, "sha1") == hashlib.sha1(payload).hexdigest()  # noqa: S324
        assert file_digest(path, "md5") == hashlib.md5(payload).hexdigest()  # noqa: S324

    def test_raises_os_error_for_missing_file(self, tmp_path: Path) -> None:
        """Unreadable files surface the underlying OSError."""
        with pytest.raises(FileNotFoundError):
            file_digest(tmp_path / "missing", "sha1")


class TestRecordSha1s:
    """Tests for the record_sha1s function."""

    def test_records_every_artifact(
        self, make_artifact: cabc.Callable[..., Artifact]
    ) -> None:
        """Every artifact gets one entry, distributions or not."""
        artifacts = [make_artifact("jar"), make_artifact("zip"), make_artifact("pom")]

        sha1s = record_sha1s(artifacts)

        assert set(sha1s) == {artifact.key for artifact in artifacts}
        for artifact in artifacts:
            expected = hashlib.sha1(artifact.file.read_bytes()).hexdigest()  # noqa: S324
            assert sha1s[artifact.key] == expected

    def test_last_write_wins_for_duplicate_keys(
        self, make_artifact: cabc.Callable[..., Artifact]
    ) -> None:
        """Colliding keys keep the digest recorded last."""
        first = make_artifact("zip", "first.zip", content=b"first")
        second = make_artifact("zip", "second.zip", content=b"second")

        sha1s = record_sha1s([first, second])

        assert sha1s == {first.key: hashlib.sha1(b"second").hexdigest()}  # noqa: S324

    def test_extends_existing_map(
        self, make_artifact: cabc.Callable[..., Artifact]
    ) -> None:
        """An existing digest map is extended in place."""
        existing = {"other-key": "0" * 40}
        artifact = make_artifact("jar")

        result = record_sha1s([artifact], existing)

        assert result is existing
        assert set(existing) == {"other-key", artifact.key}

    def test_missing_file_names_artifact(
        self, make_artifact: cabc.Callable[..., Artifact]
    ) -> None:
        """Read failures abort with the artifact id, version, and type."""
        artifact = make_artifact("tar.gz")
        artifact.file.unlink()

        with pytest.raises(DetachError, match="widget-1.0 type: tar.gz") as excinfo:
            record_sha1s([artifact])

        assert isinstance(excinfo.value.__cause__, FileNotFoundError)


class TestSha1Properties:
    """Tests for writing and loading sha1.properties."""

    def test_writes_header_and_sorted_entries(self, tmp_path: Path) -> None:
        """The file has a comment header and one key=value line per entry."""
        sha1s = {"g-b-1.0-zip": "b" * 40, "g-a-1.0-jar": "a" * 40}

        path = write_sha1_properties(sha1s, tmp_path)

        assert path == tmp_path / SHA1_PROPERTIES_FILE
        assert path.read_text(encoding="utf-8").splitlines() == [
            "#release sha1s",
            f"g-a-1.0-jar={'a' * 40}",
            f"g-b-1.0-zip={'b' * 40}",
        ]

    def test_rewrites_instead_of_appending(self, tmp_path: Path) -> None:
        """A second write replaces the previous contents."""
        write_sha1_properties({"old-key": "1" * 40}, tmp_path)
        path = write_sha1_properties({"new-key": "2" * 40}, tmp_path)

        assert load_sha1_properties(path) == {"new-key": "2" * 40}

    def test_escapes_special_characters(self, tmp_path: Path) -> None:
        """Separators and spaces in keys are escaped and read back intact."""
        sha1s = {"g:x-a=b-1 0-zip": "c" * 40}

        path = write_sha1_properties(sha1s, tmp_path)

        assert "g\\:x-a\\=b-1\\ 0-zip=" in path.read_text(encoding="utf-8")
        assert load_sha1_properties(path) == sha1s

    def test_write_failure_raises_detach_error(self, tmp_path: Path) -> None:
        """A missing working directory aborts with DetachError."""
        with pytest.raises(DetachError, match="Failure to write sha1's"):
            write_sha1_properties({"k": "v"}, tmp_path / "missing")

    def test_load_ignores_comments_and_blank_lines(self, tmp_path: Path) -> None:
        """Comment and blank lines are skipped."""
        path = tmp_path / SHA1_PROPERTIES_FILE
        path.write_text("#release sha1s\n! note\n\na-b=c\n", encoding="utf-8")

        assert load_sha1_properties(path) == {"a-b": "c"}


class TestSignArtifacts:
    """Tests for the sign_artifacts function."""

    def test_writes_md5_and_sha1_sidecars(
        self, make_artifact: cabc.Callable[..., Artifact], tmp_path: Path
    ) -> None:
        """Each archive gets single-line lowercase md5 and sha1 sidecars."""
        archive = make_artifact("zip", "widget-1.0-src.zip")
        working_directory = tmp_path / "work"
        _stage([archive], working_directory)
        payload = archive.file.read_bytes()

        sidecars = sign_artifacts([archive], working_directory)

        md5_file = working_directory / "widget-1.0-src.zip.md5"
        sha1_file = working_directory / "widget-1.0-src.zip.sha1"
        assert sidecars == [md5_file, sha1_file]
        md5_text = md5_file.read_text(encoding="ascii")
        sha1_text = sha1_file.read_text(encoding="ascii")
        assert re.fullmatch(r"[0-9a-f]{32}\n", md5_text)
        assert re.fullmatch(r"[0-9a-f]{40}\n", sha1_text)
        assert md5_text == f"{hashlib.md5(payload).hexdigest()}\n"  # noqa: S324
        assert sha1_text == f"{hashlib.sha1(payload).hexdigest()}\n"  # noqa: S324

    def test_skips_signatures(
        self, make_artifact: cabc.Callable[..., Artifact], tmp_path: Path
    ) -> None:
        """Files whose name contains ``asc`` get no sidecars."""
        signature = make_artifact("zip.asc", "widget-1.0-src.zip.asc")
        working_directory = tmp_path / "work"
        _stage([signature], working_directory)

        assert sign_artifacts([signature], working_directory) == []
        assert sorted(path.name for path in working_directory.iterdir()) == [
            "widget-1.0-src.zip.asc"
        ]

    def test_hashes_staged_copy(
        self, make_artifact: cabc.Callable[..., Artifact], tmp_path: Path
    ) -> None:
        """Digests come from the copy in the working directory."""
        archive = make_artifact("tar.gz", "widget-1.0-bin.tar.gz")
        working_directory = tmp_path / "work"
        working_directory.mkdir()
        (working_directory / archive.file.name).write_bytes(b"staged bytes")

        sign_artifacts([archive], working_directory)

        sha1_file = working_directory / "widget-1.0-bin.tar.gz.sha1"
        expected = hashlib.sha1(b"staged bytes").hexdigest()  # noqa: S324
        assert sha1_file.read_text(encoding="ascii") == f"{expected}\n"

    def test_missing_staged_copy_raises(
        self, make_artifact: cabc.Callable[..., Artifact], tmp_path: Path
    ) -> None:
        """Unstaged archives abort signing with the file name."""
        archive = make_artifact("zip", "widget-1.0-bin.zip")
        working_directory = tmp_path / "work"
        working_directory.mkdir()

        with pytest.raises(DetachError, match="Could not sign file: widget-1.0-bin.zip"):
            sign_artifacts([archive], working_directory)
