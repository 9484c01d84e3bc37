"""Workspace root discovery and candidate enumeration.

The root of a workspace is the nearest ancestor holding a version-control
marker such as ``.git``. Files under it are enumerated once per root and
published as an immutable :class:`~quickopen.models.WorkspaceSnapshot`;
asking again for a file under the same root reuses the snapshot instead of
walking the tree on every query.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import pathspec

from . import config
from .models import WorkspaceSnapshot

logger = logging.getLogger(__name__)


def resolve_root(
    starting_file: Path | str,
    markers: Sequence[str] = tuple(config.DEFAULT_VCS_MARKERS),
) -> Path:
    """Find the workspace root for *starting_file*.

    Walks upward from the file's directory (or from the path itself when it
    is a directory) and returns the first ancestor that contains one of
    *markers*. When no ancestor does, the top-most ancestor is the root.
    """
    path = Path(starting_file).expanduser().resolve()
    folder = path if path.is_dir() else path.parent

    candidate = folder
    for candidate in (folder, *folder.parents):
        if any(_exists(candidate / marker) for marker in markers):
            return candidate
    return candidate


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError as exc:
        logger.debug("Cannot inspect %s: %s", path, exc)
        return False


class IgnoreRules:
    """Gitignore-style rules collected per directory during a walk."""

    def __init__(self, root: Path, ignore_files: Sequence[str], enabled: bool = True) -> None:
        self.root = root
        self.ignore_files = list(ignore_files)
        self.enabled = enabled
        self._lines: Dict[Path, List[str]] = {}
        self._specs: Dict[Path, pathspec.GitIgnoreSpec] = {}
        if enabled:
            exclude = root / ".git" / "info" / "exclude"
            self._load(root, [exclude])

    def _load(self, directory: Path, files: Iterable[Path]) -> None:
        lines: List[str] = []
        for file in files:
            try:
                if not file.is_file():
                    continue
                content = file.read_text(encoding="utf-8", errors="ignore")
            except OSError as exc:
                logger.debug("Skipping unreadable ignore file %s: %s", file, exc)
                continue
            for line in content.splitlines():
                try:
                    pathspec.GitIgnoreSpec.from_lines([line])
                except ValueError as exc:
                    # git ignores malformed patterns too
                    logger.debug("Skipping invalid pattern %r in %s: %s", line, file, exc)
                    continue
                lines.append(line)
        if lines:
            # later lines take precedence, so .gitignore overrides info/exclude
            merged = self._lines.setdefault(directory, [])
            merged.extend(lines)
            self._specs[directory] = pathspec.GitIgnoreSpec.from_lines(merged)

    def enter(self, directory: Path) -> None:
        """Pick up the ignore files of *directory*."""
        if self.enabled:
            self._load(directory, (directory / name for name in self.ignore_files))

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        if not self.enabled:
            return False
        for directory, spec in self._specs.items():
            try:
                rel = path.relative_to(directory).as_posix()
            except ValueError:
                continue
            if is_dir:
                rel += "/"
            if spec.match_file(rel):
                return True
        return False


def iter_files(
    root: Path,
    skip_hidden: bool = True,
    ignore_files: Sequence[str] = tuple(config.DEFAULT_IGNORE_FILES),
    respect_ignore_files: bool = True,
) -> Iterator[Path]:
    """Yield regular files under *root* in a deterministic order.

    Hidden entries and entries matched by ignore rules are skipped. Entries
    that cannot be read are logged and skipped.
    """
    rules = IgnoreRules(root, ignore_files, enabled=respect_ignore_files)

    def _on_error(exc: OSError) -> None:
        logger.debug("Skipping unreadable entry %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        rules.enter(current)

        dirnames[:] = sorted(
            d for d in dirnames
            if not (skip_hidden and d.startswith("."))
            and not rules.is_ignored(current / d, is_dir=True)
        )

        for name in sorted(filenames):
            if skip_hidden and name.startswith("."):
                continue
            file_path = current / name
            if rules.is_ignored(file_path):
                continue
            try:
                if not file_path.is_file():
                    # broken symlink, socket, ...
                    continue
            except OSError as exc:
                logger.debug("Skipping %s: %s", file_path, exc)
                continue
            yield file_path


class WorkspaceIndexer:
    """Owns the current workspace root and its candidate files.

    The snapshot is replaced, never mutated, so a ranking pass that grabbed
    :attr:`snapshot` keeps a consistent view even while a background index
    for another root is running.
    """

    def __init__(
        self,
        markers: Optional[Sequence[str]] = None,
        ignore_files: Optional[Sequence[str]] = None,
        respect_ignore_files: bool = True,
        skip_hidden: bool = True,
        max_files: int = config.DEFAULT_MAX_FILES,
        background: bool = False,
    ) -> None:
        self.markers = tuple(markers if markers is not None else config.DEFAULT_VCS_MARKERS)
        self.ignore_files = tuple(ignore_files if ignore_files is not None else config.DEFAULT_IGNORE_FILES)
        self.respect_ignore_files = respect_ignore_files
        self.skip_hidden = skip_hidden
        self.max_files = max_files
        self.background = background

        self._lock = threading.Lock()
        self._snapshot: Optional[WorkspaceSnapshot] = None
        self._pending_root: Optional[Path] = None
        self._future: Optional[Future] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_settings(cls, settings) -> "WorkspaceIndexer":
        """Build an indexer from :class:`~quickopen.config_manager.IndexSettings`."""
        return cls(
            markers=settings.vcs_markers,
            ignore_files=settings.ignore_files,
            respect_ignore_files=settings.respect_ignore_files,
            skip_hidden=settings.skip_hidden,
            max_files=settings.max_files,
            background=settings.background,
        )

    @property
    def snapshot(self) -> Optional[WorkspaceSnapshot]:
        """The last complete snapshot, or None before the first index."""
        with self._lock:
            return self._snapshot

    @property
    def root(self) -> Optional[Path]:
        snap = self.snapshot
        return snap.root if snap else None

    @property
    def indexing(self) -> bool:
        """True while a background index is running."""
        with self._lock:
            return self._pending_root is not None

    def resolve_root(self, starting_file: Path | str) -> Path:
        return resolve_root(starting_file, self.markers)

    def index(self, root: Path) -> Tuple[Path, ...]:
        """Enumerate candidate files under *root*, deduplicated in discovery order."""
        seen: Dict[Path, None] = {}
        for path in iter_files(
            root,
            skip_hidden=self.skip_hidden,
            ignore_files=self.ignore_files,
            respect_ignore_files=self.respect_ignore_files,
        ):
            if path in seen:
                continue
            if len(seen) >= self.max_files:
                logger.warning("Stopped indexing %s after %d files", root, self.max_files)
                break
            seen[path] = None
        logger.debug("Indexed %d files under %s", len(seen), root)
        return tuple(seen)

    def refresh(self, starting_file: Path | str) -> Optional[WorkspaceSnapshot]:
        """Make sure the snapshot matches the root of *starting_file*.

        Re-indexes only when the resolved root differs from the cached one.
        In background mode the previous snapshot is returned until the new
        one is complete.
        """
        root = self.resolve_root(starting_file)
        with self._lock:
            current = self._snapshot
            if current is not None and current.root == root:
                # a pending index for some other root is now stale
                self._pending_root = None
                return current
            if self._pending_root == root:
                return current

        if not self.background:
            self._publish(WorkspaceSnapshot(root, self.index(root)))
            return self.snapshot

        with self._lock:
            self._pending_root = root
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="quickopen-index")
            self._future = self._executor.submit(self._index_in_background, root)
            return self._snapshot

    def _index_in_background(self, root: Path) -> None:
        files = self.index(root)
        with self._lock:
            # A later refresh asked for another root; drop this result
            if self._pending_root != root:
                return
            self._pending_root = None
        self._publish(WorkspaceSnapshot(root, files))

    def _publish(self, snapshot: WorkspaceSnapshot) -> None:
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot
        if previous is None or previous.root != snapshot.root:
            logger.info("Workspace root: %s (%d files)", snapshot.root, len(snapshot))

    def wait(self, timeout: Optional[float] = None) -> Optional[WorkspaceSnapshot]:
        """Block until a pending background index has been published."""
        future = self._future
        if future is not None:
            future.result(timeout=timeout)
        return self.snapshot

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
