"""Durable storage for uploaded PDF bytes.

Paths handed in and out are relative to a fixed root directory, which is
what gets recorded on document rows. Disk I/O runs in worker threads so the
event loop keeps serving other requests.
"""

import asyncio
import logging
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class FileStorage:
    """Local-filesystem byte storage rooted at a single directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, relative_path: str) -> Path:
        """Map a stored relative path to an absolute one.

        Raises:
            ValueError: If the path points outside the storage root.
        """
        path = (self._root / relative_path).resolve()
        if not path.is_relative_to(self._root):
            raise ValueError(f"Path escapes storage root: {relative_path}")
        return path

    async def write(self, relative_path: str, data: bytes) -> str:
        """Write bytes, creating parent directories as needed.

        Returns:
            The relative path the bytes were written to.
        """
        path = self.resolve(relative_path)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug(f"Stored {len(data)} bytes at {relative_path}")
        return relative_path

    async def delete(self, relative_path: str) -> bool:
        """Remove a stored file. Never raises; returns whether a file was removed."""
        try:
            path = self.resolve(relative_path)
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to delete stored file {relative_path}: {e}")
            return False

        logger.info(f"Deleted stored file: {relative_path}")
        return True

    async def exists(self, relative_path: str) -> bool:
        try:
            path = self.resolve(relative_path)
        except ValueError:
            return False
        return await asyncio.to_thread(path.is_file)

    async def cleanup_old_files(self, directory: str, max_age_days: int = 30) -> int:
        """Delete files in directory older than max_age_days.

        Returns:
            Number of files removed. Failures are logged and skipped.
        """
        target = self.resolve(directory)
        cutoff = time.time() - max_age_days * 24 * 60 * 60

        def _cleanup() -> int:
            if not target.is_dir():
                return 0
            removed = 0
            for entry in target.iterdir():
                try:
                    if entry.is_file() and entry.stat().st_mtime < cutoff:
                        entry.unlink()
                        removed += 1
                except OSError as e:
                    logger.warning(f"Failed to remove old file {entry}: {e}")
            return removed

        removed = await asyncio.to_thread(_cleanup)
        logger.info(f"Cleaned up {removed} old files from {directory}")
        return removed
