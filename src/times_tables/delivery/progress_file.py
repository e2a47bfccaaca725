"""
JSON Progress File for local practice.

Stores a single learner's engine state as pretty-printed JSON:
- load / save of the full engine
- load_or_new fallback to a fresh engine
- reset with a timestamped backup

File location: ~/.times_tables/progress.json (configurable)
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path

from loguru import logger

from ..core import EngineStateError, SchedulingEngine
from ..core.engine import Clock
from ..core.stats import utc_now


class ProgressFileError(Exception):
    """Progress file could not be read or written."""


class ProgressFile:
    """
    File-backed persistence for one learner's engine.

    Handles:
    - Atomic writes (temp file, then replace)
    - Fallback to a fresh engine when the file is missing or corrupt
    - Backups under ``<dir>/backups`` before a reset
    """

    def __init__(self, path: Path, clock: Clock | None = None):
        """
        Initialize the progress file.

        Args:
            path: Location of the JSON file
            clock: Clock handed to every engine this file produces
        """
        self.path = Path(path)
        self.clock = clock

    @property
    def backup_dir(self) -> Path:
        return self.path.parent / "backups"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> SchedulingEngine:
        """
        Load the stored engine.

        Raises:
            ProgressFileError: If the file is missing, unreadable or invalid
        """
        if not self.path.exists():
            raise ProgressFileError(f"No progress file at {self.path}")

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ProgressFileError(f"Failed to read {self.path}: {e}") from e

        try:
            return SchedulingEngine.from_dict(data, clock=self.clock)
        except EngineStateError as e:
            raise ProgressFileError(f"Invalid progress in {self.path}: {e}") from e

    def save(self, engine: SchedulingEngine) -> None:
        """
        Write the engine state.

        Raises:
            ProgressFileError: If the directory or file cannot be written
        """
        payload = json.dumps(engine.to_dict(), indent=2)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self.path)
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ProgressFileError(f"Failed to write {self.path}: {e}") from e

        logger.debug(f"Progress saved to {self.path}")

    def load_or_new(self) -> SchedulingEngine:
        """Load the stored engine, or start fresh if that fails."""
        try:
            return self.load()
        except ProgressFileError as e:
            if self.path.exists():
                logger.warning(f"{e}; starting fresh")
            else:
                logger.info(f"No saved progress at {self.path}; starting fresh")
            return SchedulingEngine(clock=self.clock)

    def reset(self) -> Path | None:
        """
        Back up the current file and replace it with a fresh engine.

        Returns:
            Path of the backup, or None if there was nothing to back up
        """
        backup_file = None

        if self.path.exists():
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_file = self._backup_name()
            shutil.copy2(self.path, backup_file)
            logger.info(f"Backup saved: {backup_file}")

        self.save(SchedulingEngine(clock=self.clock))
        logger.info("Progress reset")
        return backup_file

    def _backup_name(self) -> Path:
        """Unused backup path stamped with the clock's current time."""
        now = (self.clock or utc_now)()
        stem = f"progress_backup_{now.strftime('%Y%m%d_%H%M%S_%f')}"
        candidate = self.backup_dir / f"{stem}.json"
        n = 1
        while candidate.exists():
            candidate = self.backup_dir / f"{stem}_{n}.json"
            n += 1
        return candidate

    def list_backups(self) -> list[Path]:
        """List available backup files, newest first."""
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob("progress_backup_*.json"), reverse=True)
