"""
Local snapshot store - persists the last known user collection in one durable slot.

The slot is a key in a JSON file, so the collection survives process restarts.
Writes go through a temp file and an atomic rename.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from user_directory.config import settings
from user_directory.models.user import User
from user_directory.utils.errors import SnapshotCorrupt

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Key/value slot holding a JSON array of user records"""

    def __init__(self, path: Optional[Union[str, Path]] = None, key: Optional[str] = None):
        self.path = Path(path or settings.SNAPSHOT_PATH)
        self.key = key or settings.SNAPSHOT_KEY

    def _read_file(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            content = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SnapshotCorrupt(f"unreadable snapshot file {self.path}: {e}") from e
        if not isinstance(content, dict):
            raise SnapshotCorrupt(f"snapshot file {self.path} is not a JSON object")
        return content

    def _decode(self, raw: Any) -> List[User]:
        if not isinstance(raw, list):
            raise SnapshotCorrupt(f"slot '{self.key}' does not hold a JSON array")
        try:
            users = [User.from_payload(item) for item in raw]
        except ValidationError as e:
            raise SnapshotCorrupt(f"slot '{self.key}' holds an invalid user record") from e
        if len({user.id for user in users}) != len(users):
            raise SnapshotCorrupt(f"slot '{self.key}' holds duplicate user ids")
        return users

    def _load_sync(self) -> Optional[List[User]]:
        try:
            content = self._read_file()
            if self.key not in content:
                return None
            return self._decode(content[self.key])
        except SnapshotCorrupt as e:
            logger.warning(f"Ignoring corrupt snapshot: {e}")
            return None

    def _write_file(self, content: Dict[str, Any]) -> bool:
        # Each write gets its own temp file so concurrent saves never share one
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name + ".", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(content, tmp, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write snapshot file {self.path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            return False
        return True

    def _other_slots(self) -> Dict[str, Any]:
        # A corrupt file is overwritten rather than merged into
        try:
            content = self._read_file()
        except SnapshotCorrupt:
            return {}
        content.pop(self.key, None)
        return content

    def _save_sync(self, users: List[User]) -> bool:
        content = self._other_slots()
        content[self.key] = [user.to_payload() for user in users]
        return self._write_file(content)

    def _clear_sync(self) -> bool:
        if not self.path.exists():
            return True
        return self._write_file(self._other_slots())

    async def load(self) -> Optional[List[User]]:
        """Return the stored collection, or None when absent or malformed"""
        return await asyncio.to_thread(self._load_sync)

    async def save(self, users: List[User]) -> bool:
        """Overwrite the slot with the given collection"""
        saved = await asyncio.to_thread(self._save_sync, list(users))
        if saved:
            logger.info(f"Snapshot saved: {len(users)} users")
        return saved

    async def clear(self) -> bool:
        """Drop the slot"""
        return await asyncio.to_thread(self._clear_sync)
