"""Shared pytest fixtures for the detach-distributions action."""

from __future__ import annotations

import importlib.util
import sys
import typing as typ
from pathlib import Path

import pytest
from syspath_hack import prepend_to_syspath

SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"
prepend_to_syspath(SCRIPTS_DIR)

from detach_common.artifacts import Artifact

if typ.TYPE_CHECKING:
    from collections import abc as cabc
    from types import ModuleType

GROUP_ID = "org.example"
ARTIFACT_ID = "widget"
VERSION = "1.0"


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """Return a directory holding the build's artifact files."""
    path = tmp_path / "target"
    path.mkdir()
    return path


@pytest.fixture
def make_artifact(build_dir: Path) -> cabc.Callable[..., Artifact]:
    """Return a factory that writes an artifact file and describes it."""

    def _make(
        artifact_type: str,
        file_name: str | None = None,
        *,
        content: bytes | None = None,
        artifact_id: str = ARTIFACT_ID,
    ) -> Artifact:
        name = file_name or f"{artifact_id}-{VERSION}.{artifact_type}"
        path = build_dir / name
        path.write_bytes(content if content is not None else name.encode())
        return Artifact(GROUP_ID, artifact_id, VERSION, artifact_type, path)

    return _make


@pytest.fixture
def detach_script(monkeypatch: pytest.MonkeyPatch) -> ModuleType:
    """Load ``detach.py`` as a module with fresh state."""
    module_name = "detach_distributions_detach"
    script_path = SCRIPTS_DIR / "detach.py"
    monkeypatch.delitem(sys.modules, module_name, raising=False)
    spec = importlib.util.spec_from_file_location(module_name, script_path)
    if spec is None or spec.loader is None:  # pragma: no cover - import failure
        msg = f"Failed to load module specification from {script_path}"
        raise RuntimeError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def _reset_argv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure Cyclopts parsers do not inherit pytest's CLI arguments."""
    monkeypatch.setattr(sys, "argv", ["detach.py"])
