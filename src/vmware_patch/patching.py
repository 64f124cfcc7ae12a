"""Idempotent, backed-up file patching driven by pure transforms."""

from __future__ import annotations

import difflib
import json
import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, ClassVar, Mapping, Union

__all__ = [
    "Applied",
    "BackupError",
    "DEFAULT_BACKUP_DIR",
    "Failed",
    "PatchApplier",
    "PatchError",
    "PatchRequest",
    "PatchResult",
    "ReadError",
    "Skipped",
    "TempCreationError",
    "Transform",
    "TransformError",
    "Unchanged",
    "WouldChange",
    "WriteError",
    "apply_patch",
]

LOGGER = logging.getLogger(__name__)
TELEMETRY_LOGGER = logging.getLogger("vmware_patch.telemetry")

DEFAULT_BACKUP_DIR = Path("/tmp/backup/vmware")
BACKUP_SUFFIX = ".bak"

Transform = Callable[[bytes], bytes]


class PatchError(RuntimeError):
    """Raised when a single file cannot be patched."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class ReadError(PatchError):
    """The target file exists but could not be read."""


class TransformError(PatchError):
    """The transform raised or returned something other than bytes."""


class BackupError(PatchError):
    """The pre-patch copy could not be written."""


class TempCreationError(PatchError):
    """No temporary file could be created next to the target."""


class WriteError(PatchError):
    """Writing the candidate content or swapping it into place failed."""


@dataclass(slots=True, frozen=True)
class PatchRequest:
    """Single file patch: target path, pure transform and dry-run flag."""

    path: Path
    transform: Transform
    dry_run: bool = False


@dataclass(slots=True, frozen=True)
class Unchanged:
    path: Path
    status: ClassVar[str] = "unchanged"


@dataclass(slots=True, frozen=True)
class Applied:
    path: Path
    backup_path: Path
    status: ClassVar[str] = "applied"


@dataclass(slots=True, frozen=True)
class WouldChange:
    path: Path
    diff: str
    status: ClassVar[str] = "would-change"


@dataclass(slots=True, frozen=True)
class Skipped:
    path: Path
    reason: str
    status: ClassVar[str] = "skipped"


@dataclass(slots=True, frozen=True)
class Failed:
    path: Path
    error: PatchError
    status: ClassVar[str] = "failed"


PatchResult = Union[Unchanged, Applied, WouldChange, Skipped, Failed]


def _serialise_event_value(value: Any) -> Any:
    """Convert telemetry payload values into JSON-friendly representations."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (list, tuple, set)):
        return [_serialise_event_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _serialise_event_value(child) for key, child in value.items()}
    return str(value)


def _emit_patch_event(event: str, **fields: Any) -> None:
    """Log a structured telemetry event for a patch step."""
    payload = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat()}
    for key, value in fields.items():
        payload[key] = _serialise_event_value(value)
    TELEMETRY_LOGGER.info(json.dumps(payload, separators=(",", ":"), ensure_ascii=True))


def unified_diff(path: Path, before: bytes, after: bytes, *, encoding: str = "utf-8") -> str:
    """Render a ``diff -u`` style comparison of two file payloads."""
    label = path.as_posix()
    old_lines = before.decode(encoding, errors="replace").splitlines(keepends=True)
    new_lines = after.decode(encoding, errors="replace").splitlines(keepends=True)
    chunks = []
    for line in difflib.unified_diff(old_lines, new_lines, fromfile=label, tofile=label):
        chunks.append(line if line.endswith("\n") else line + "\n\\ No newline at end of file\n")
    return "".join(chunks)


@dataclass(slots=True)
class PatchApplier:
    """Apply pure transforms to files with backups and atomic replacement.

    The applier only carries configuration. Every call reads the target,
    computes the candidate content, and commits it only when it differs
    from what is on disk, so running the same transform again reports
    :class:`Unchanged` instead of producing another backup.
    """

    backup_dir: Path = DEFAULT_BACKUP_DIR
    clock: Callable[[], float] = field(default=time.time)
    encoding: str = "utf-8"

    def run(self, request: PatchRequest) -> PatchResult:
        return self.apply(request.path, request.transform, dry_run=request.dry_run)

    def apply(self, path: Path | str, transform: Transform, *, dry_run: bool = False) -> PatchResult:
        """Patch ``path`` with ``transform``; failures are returned, not raised."""
        target = Path(path)
        if not target.is_file():
            _emit_patch_event("patch.skipped", path=target, reason="file not found")
            return Skipped(target, "file not found")

        try:
            result = self._apply_existing(target, transform, dry_run=dry_run)
        except PatchError as error:
            LOGGER.warning("Patch of %s failed: %s", target, error)
            _emit_patch_event("patch.failed", path=target, error=str(error), kind=type(error).__name__, **error.details)
            return Failed(target, error)
        return result

    def _apply_existing(self, target: Path, transform: Transform, *, dry_run: bool) -> PatchResult:
        try:
            current = target.read_bytes()
        except OSError as error:
            raise ReadError(f"unable to read {target}: {error}", details={"errno": error.errno}) from error

        try:
            candidate = transform(current)
        except Exception as error:
            raise TransformError(f"transform failed for {target}: {error}") from error
        if not isinstance(candidate, bytes):
            raise TransformError(
                f"transform for {target} returned {type(candidate).__name__}, expected bytes"
            )

        if candidate == current:
            _emit_patch_event("patch.unchanged", path=target, bytes=len(current))
            return Unchanged(target)

        if dry_run:
            diff = unified_diff(target, current, candidate, encoding=self.encoding)
            _emit_patch_event("patch.dry_run", path=target, diff_lines=diff.count("\n"))
            return WouldChange(target, diff)

        backup_path = self._write_backup(target)
        self._replace_atomically(target, candidate)
        _emit_patch_event(
            "patch.applied",
            path=target,
            backup_path=backup_path,
            before_bytes=len(current),
            after_bytes=len(candidate),
        )
        return Applied(target, backup_path)

    def backup_path_for(self, target: Path) -> Path:
        """Return an unused ``<name>.<epoch>.bak`` path inside the backup directory."""
        stamp = int(self.clock())
        stem = f"{target.name}.{stamp}"
        candidate = self.backup_dir / f"{stem}{BACKUP_SUFFIX}"
        counter = 1
        while candidate.exists():
            candidate = self.backup_dir / f"{stem}.{counter}{BACKUP_SUFFIX}"
            counter += 1
        return candidate

    def _write_backup(self, target: Path) -> Path:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self.backup_path_for(target)
            shutil.copy2(target, backup_path)
        except OSError as error:
            raise BackupError(
                f"unable to back up {target} into {self.backup_dir}: {error}",
                details={"backup_dir": self.backup_dir},
            ) from error
        LOGGER.debug("Backed up %s to %s", target, backup_path)
        return backup_path

    def _replace_atomically(self, target: Path, candidate: bytes) -> None:
        """Write ``candidate`` beside ``target`` and rename it over the original."""
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        except OSError as error:
            raise TempCreationError(
                f"unable to create temporary file in {target.parent}: {error}",
                details={"directory": target.parent},
            ) from error

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(candidate)
                handle.flush()
                os.fsync(handle.fileno())
            shutil.copymode(target, tmp_path)
            os.replace(tmp_path, target)
        except OSError as error:
            tmp_path.unlink(missing_ok=True)
            raise WriteError(f"unable to write {target}: {error}", details={"errno": error.errno}) from error


def apply_patch(
    path: Path | str,
    transform: Transform,
    *,
    dry_run: bool = False,
    backup_dir: Path | str = DEFAULT_BACKUP_DIR,
) -> PatchResult:
    """Apply ``transform`` to ``path`` with a default-configured :class:`PatchApplier`."""
    return PatchApplier(backup_dir=Path(backup_dir)).apply(path, transform, dry_run=dry_run)
