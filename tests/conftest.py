"""Pytest configuration and fixtures for quick open tests."""

from pathlib import Path
from typing import Dict

import pytest

from quickopen.models import WorkspaceSnapshot


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path_factory, monkeypatch) -> Path:
    """Point the config file at an empty temporary home for every test."""
    home = tmp_path_factory.mktemp("quickopen_home")
    monkeypatch.setattr("quickopen.config.BASE_DIR", home)
    monkeypatch.setattr("quickopen.config.CONFIG_FILE", home / "config.toml")
    return home


def _write_tree(root: Path, files: Dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A small git-style project with hidden and ignored entries.

    Visible candidates, in discovery order::

        README.md
        setup.py
        docs/guide.md
        src/file_index.py
        src/fuzzy_match.py
        src/utils/helpers.py
        tests/test_fuzzy_match.py
    """
    root = tmp_path.resolve() / "proj"
    (root / ".git").mkdir(parents=True)
    _write_tree(root, {
        ".git/config": "[core]\n",
        ".gitignore": "*.log\nbuild/\n",
        ".env": "SECRET=1\n",
        "README.md": "# proj\n",
        "setup.py": "",
        "debug.log": "noise\n",
        "build/out.txt": "",
        "docs/guide.md": "",
        "src/fuzzy_match.py": "",
        "src/file_index.py": "",
        "src/.cache/stale.py": "",
        "src/utils/helpers.py": "",
        "tests/test_fuzzy_match.py": "",
    })
    return root


@pytest.fixture
def make_snapshot():
    """Build a snapshot under a fake root from file names, keeping order."""
    def _make(*names: str, root: str = "/proj") -> WorkspaceSnapshot:
        base = Path(root)
        return WorkspaceSnapshot(base, tuple(base / name for name in names))
    return _make
