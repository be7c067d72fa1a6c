"""
Durable file storage for the tracked channel list and per-channel history.

The tracked list lives in a single JSON array file with a mirrored
backup. Every write goes to a temporary file that is fsynced and then
renamed over the target (POSIX atomic rename), so a crash mid-write
never leaves a truncated primary. History is stored as one JSON array
per channel under ``history/``.

Blocking file I/O runs in worker threads via ``asyncio.to_thread`` so
the event loop keeps serving requests while a write is in progress.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from subtrack.exceptions import StorageCorruptionError, StorageError
from subtrack.models.channel_types import validate_channel_id
from subtrack.models.stats import StatSnapshot

logger = logging.getLogger(__name__)

_HISTORY_ADAPTER: TypeAdapter[list[StatSnapshot]] = TypeAdapter(list[StatSnapshot])


def _parse_channel_list(raw: str) -> list[str]:
    """Parse a tracked-list file body.

    Raises
    ------
    ValueError
        If the body is not a JSON array of strings.
    """
    data = json.loads(raw)
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError("Channel list must be a JSON array of strings")

    seen: set[str] = set()
    channel_ids: list[str] = []
    for channel_id in data:
        if channel_id in seen:
            continue
        seen.add(channel_id)
        channel_ids.append(channel_id)

    if len(channel_ids) != len(data):
        logger.warning(
            "Dropped %d duplicate channel IDs while loading",
            len(data) - len(channel_ids),
        )
    return channel_ids


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` through a temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp.{uuid4().hex}")
    try:
        with tmp_path.open("w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class ChannelStore:
    """
    File-backed store for the tracked channel list and channel history.

    Parameters
    ----------
    data_dir : Path
        Root directory for all persisted files.
    channels_filename : str, optional
        Name of the primary tracked-list file (default: "channels.json").
    backup_filename : str, optional
        Name of the mirrored backup file (default: "channels.backup.json").

    Examples
    --------
    >>> store = ChannelStore(Path("./data"))
    >>> tracked = await store.load()
    >>> await store.save([*tracked, "UCxyz"])
    """

    def __init__(
        self,
        data_dir: Path,
        channels_filename: str = "channels.json",
        backup_filename: str = "channels.backup.json",
    ) -> None:
        self.data_dir = data_dir
        self.channels_file = data_dir / channels_filename
        self.backup_file = data_dir / backup_filename
        self.history_dir = data_dir / "history"
        self._history_locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Tracked channel list
    # ------------------------------------------------------------------

    async def load(self) -> list[str]:
        """
        Load the tracked channel list, recovering from the backup if needed.

        Returns
        -------
        list[str]
            Tracked channel IDs in first-registration order. Empty on a
            cold start (neither file exists).

        Raises
        ------
        StorageCorruptionError
            If both files are unreadable while at least one exists.
        StorageError
            If the primary could not be restored from a valid backup.
        """
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> list[str]:
        try:
            raw = self.channels_file.read_text(encoding="utf-8")
            channel_ids = _parse_channel_list(raw)
        except (OSError, ValueError) as primary_error:
            return self._recover_from_backup(primary_error)

        logger.info(
            "Loaded %d channels from %s", len(channel_ids), self.channels_file
        )

        # Refresh the one-generation-back recovery point
        try:
            _atomic_write(self.backup_file, raw)
        except OSError:
            logger.warning(
                "Could not refresh backup %s", self.backup_file, exc_info=True
            )
        return channel_ids

    def _recover_from_backup(self, primary_error: Exception) -> list[str]:
        primary_missing = isinstance(primary_error, FileNotFoundError)
        if not primary_missing:
            logger.warning(
                "Error loading %s (%s); attempting to restore from backup",
                self.channels_file,
                primary_error,
            )

        try:
            raw = self.backup_file.read_text(encoding="utf-8")
            channel_ids = _parse_channel_list(raw)
        except (OSError, ValueError) as backup_error:
            if primary_missing and isinstance(backup_error, FileNotFoundError):
                logger.info("No channel list or backup found; starting empty")
                return []
            logger.critical(
                "Unable to load channels from %s or %s (primary: %s, backup: %s)",
                self.channels_file,
                self.backup_file,
                primary_error,
                backup_error,
            )
            raise StorageCorruptionError(
                message=(
                    f"Both {self.channels_file.name} and {self.backup_file.name} "
                    f"are unreadable; refusing to start with an empty list"
                ),
                path=self.channels_file,
                primary_error=primary_error,
                backup_error=backup_error,
            ) from backup_error

        try:
            _atomic_write(self.channels_file, raw)
        except OSError as e:
            raise StorageError(
                message=f"Failed to restore {self.channels_file} from backup",
                path=self.channels_file,
                operation="restore",
                original_error=e,
            ) from e

        logger.warning("Restored %d channels from backup", len(channel_ids))
        return channel_ids

    def peek(self) -> list[str]:
        """
        Read the primary tracked-list file without recovery or side effects.

        Raises
        ------
        StorageError
            If the primary file exists but is unreadable or malformed.
        """
        try:
            return _parse_channel_list(self.channels_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise StorageError(
                message=f"{self.channels_file.name} is unreadable",
                path=self.channels_file,
                operation="peek",
                original_error=e,
            ) from e

    async def save(self, channel_ids: Sequence[str]) -> None:
        """
        Atomically replace the primary tracked-list file.

        Raises
        ------
        StorageError
            If the temp write or the rename fails. The previous primary
            file is left untouched.
        """
        content = json.dumps(list(channel_ids), indent=2)
        try:
            await asyncio.to_thread(_atomic_write, self.channels_file, content)
        except OSError as e:
            raise StorageError(
                message=f"Failed to save channel list to {self.channels_file}",
                path=self.channels_file,
                operation="save",
                original_error=e,
            ) from e
        logger.debug("Saved %d channels", len(channel_ids))

    # ------------------------------------------------------------------
    # Per-channel history
    # ------------------------------------------------------------------

    def history_path(self, channel_id: str) -> Path:
        """Return the history file path for a channel."""
        try:
            safe_id = validate_channel_id(channel_id)
        except (TypeError, ValueError) as e:
            raise StorageError(
                message=f"Channel ID {channel_id!r} cannot be used as a file name",
                operation="history_path",
                original_error=e,
            ) from e
        return self.history_dir / f"{safe_id}.json"

    def _history_lock(self, channel_id: str) -> asyncio.Lock:
        lock = self._history_locks.get(channel_id)
        if lock is None:
            lock = asyncio.Lock()
            self._history_locks[channel_id] = lock
        return lock

    def _read_history_sync(self, path: Path) -> list[StatSnapshot]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(
                message=f"Failed to read history file {path}",
                path=path,
                operation="load_history",
                original_error=e,
            ) from e

        try:
            return _HISTORY_ADAPTER.validate_json(raw)
        except ValidationError as e:
            raise StorageError(
                message=f"History file {path} is corrupted",
                path=path,
                operation="load_history",
                original_error=e,
            ) from e

    async def load_history(self, channel_id: str) -> list[StatSnapshot]:
        """
        Load the full history of a channel.

        Returns
        -------
        list[StatSnapshot]
            Snapshots ordered by timestamp; empty if nothing was recorded.

        Raises
        ------
        StorageError
            If the history file exists but cannot be read or parsed.
        """
        path = self.history_path(channel_id)
        async with self._history_lock(channel_id):
            return await asyncio.to_thread(self._read_history_sync, path)

    async def load_latest(self, channel_id: str) -> StatSnapshot | None:
        """Return the most recent stored snapshot of a channel, if any."""
        history = await self.load_history(channel_id)
        return history[-1] if history else None

    def _append_history_sync(self, path: Path, snapshot: StatSnapshot) -> None:
        history = self._read_history_sync(path)
        if history:
            last = history[-1].timestamp
            if (
                last is not None
                and snapshot.timestamp is not None
                and snapshot.timestamp < last
            ):
                snapshot = snapshot.model_copy(update={"timestamp": last})
        history.append(snapshot)
        content = json.dumps([item.to_json_dict() for item in history])
        try:
            _atomic_write(path, content)
        except OSError as e:
            raise StorageError(
                message=f"Failed to append history to {path}",
                path=path,
                operation="append_history",
                original_error=e,
            ) from e

    async def append_history(self, channel_id: str, snapshot: StatSnapshot) -> None:
        """
        Durably append one snapshot to a channel's history.

        Appends for the same channel are serialized; each one is a full
        read-modify-write through an atomic rename.

        Raises
        ------
        StorageError
            If the existing history is unreadable or the write fails.
        """
        path = self.history_path(channel_id)
        async with self._history_lock(channel_id):
            await asyncio.to_thread(self._append_history_sync, path, snapshot)

    def count_history_files(self) -> int:
        """Count channels with a history file on disk."""
        if not self.history_dir.is_dir():
            return 0
        return sum(1 for _ in self.history_dir.glob("*.json"))
