# File: shipwright/exporters.py
"""
Shipwright - Project Writer (File-System Manager)
==================================================

Responsible for:
    1. Checking that generated files will not clobber existing ones.
    2. Writing generated files atomically (write-to-temp then rename).
    3. Appending registration lines to package ``__init__.py`` files,
       skipping lines that are already present.
    4. Recording every file touched, with size and checksum.
    5. Rolling back every change it made when a later write fails.

The writer never renders anything. The generator hands it finished file
contents only after every blueprint rendered successfully.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from shipwright.errors import ExportError
from shipwright.utils import count_lines, read_file, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single file touched by the writer."""

    relative_path: str
    absolute_path: str
    action: str  # "created" | "overwritten" | "appended" | "unchanged"
    size_bytes: int = 0
    line_count: int = 0
    sha256: str = ""



# ---------------------------------------------------------------------------
# ProjectWriter
# ---------------------------------------------------------------------------


class ProjectWriter:
    """
    Writes generated files under a project root.

    Usage::

        writer = ProjectWriter(Path("./my_app"))
        conflicts = writer.check_targets(["db/entities/posts.py"])
        writer.write("db/entities/posts.py", source)
        writer.append_line("db/entities/__init__.py", "from . import posts")

    In ``dry_run`` mode nothing touches the disk but records are still
    produced.
    """

    def __init__(
        self,
        root: Path,
        *,
        dry_run: bool = False,
        atomic_writes: bool = True,
        overwrite: bool = False,
    ) -> None:
        self._root: Path = Path(root).resolve()
        self._dry_run: bool = dry_run
        self._atomic_writes: bool = atomic_writes
        self._overwrite: bool = overwrite
        self._records: List[FileRecord] = []
        # (path, content before the first change or None if it did not exist)
        self._backups: List[Tuple[Path, Optional[str]]] = []

        logger.debug(
            "ProjectWriter initialised: root=%s, dry_run=%s, atomic=%s, overwrite=%s.",
            self._root,
            dry_run,
            atomic_writes,
            overwrite,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def records(self) -> Tuple[FileRecord, ...]:
        return tuple(self._records)

    def _target(self, rel_path: str) -> Path:
        target: Path = (self._root / rel_path).resolve()
        if not target.is_relative_to(self._root):
            raise ExportError(f"Refusing to write outside the project: {rel_path}")
        return target

    def _remember(self, target: Path) -> None:
        if self._dry_run or any(path == target for path, _ in self._backups):
            return
        try:
            previous: Optional[str] = read_file(target) if target.exists() else None
        except OSError as exc:
            raise ExportError(f"Failed to read {target}: {exc}") from exc
        self._backups.append((target, previous))

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def check_targets(self, rel_paths: Iterable[str]) -> List[str]:
        """Return the paths that already exist and would be replaced."""
        if self._overwrite:
            return []
        return [p for p in rel_paths if self._target(p).exists()]

    def write(self, rel_path: str, content: str) -> FileRecord:
        """Write *content* to ``root / rel_path``."""
        target: Path = self._target(rel_path)
        existed: bool = target.exists()
        if existed and not self._overwrite:
            raise ExportError(f"File already exists: {rel_path}")

        size: int = len(content.encode("utf-8"))
        self._remember(target)
        if not self._dry_run:
            try:
                size = write_file(target, content, atomic=self._atomic_writes)
            except OSError as exc:
                raise ExportError(f"Failed to write {rel_path}: {exc}") from exc

        record: FileRecord = FileRecord(
            relative_path=rel_path,
            absolute_path=str(target),
            action="overwritten" if existed else "created",
            size_bytes=size,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        self._records.append(record)
        logger.info("%s %s (%d bytes).", record.action.capitalize(), rel_path, size)
        return record

    def append_line(self, rel_path: str, line: str) -> bool:
        """
        Append *line* to a text file, creating the file if needed.

        Returns False (and writes nothing) when the line is already present.
        """
        target: Path = self._target(rel_path)
        try:
            existing: str = read_file(target) if target.exists() else ""
        except OSError as exc:
            raise ExportError(f"Failed to read {rel_path}: {exc}") from exc

        if line in existing.splitlines():
            self._records.append(
                FileRecord(
                    relative_path=rel_path,
                    absolute_path=str(target),
                    action="unchanged",
                )
            )
            logger.debug("Line already present in %s: %s", rel_path, line)
            return False

        prefix: str = "" if not existing or existing.endswith("\n") else "\n"
        content: str = existing + prefix + line + "\n"
        self._remember(target)
        if not self._dry_run:
            try:
                write_file(target, content, atomic=self._atomic_writes)
            except OSError as exc:
                raise ExportError(f"Failed to update {rel_path}: {exc}") from exc

        self._records.append(
            FileRecord(
                relative_path=rel_path,
                absolute_path=str(target),
                action="appended",
                size_bytes=len(content.encode("utf-8")),
                line_count=count_lines(content),
                sha256=sha256_hex(content),
            )
        )
        logger.info("Registered '%s' in %s.", line, rel_path)
        return True

    def rollback(self) -> None:
        """
        Undo every change made so far, newest first: created files are
        removed, modified files get their previous content back.
        """
        while self._backups:
            target, previous = self._backups.pop()
            try:
                if previous is None:
                    target.unlink(missing_ok=True)
                else:
                    write_file(target, previous, atomic=self._atomic_writes)
            except OSError as exc:
                logger.error("Could not roll back %s: %s", target, exc)
                continue
            logger.info("Rolled back %s.", target)
        self._records.clear()


__all__: List[str] = [
    "FileRecord",
    "ProjectWriter",
]

logger.debug("shipwright.exporters loaded — %d public symbols.", len(__all__))
