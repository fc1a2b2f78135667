"""
Base service layer shared by the user directory services
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from user_directory.models.user import User

logger = logging.getLogger(__name__)

# One lock per snapshot slot and event loop, shared by every service writing to that slot
_slot_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[Tuple[str, str], asyncio.Lock]]" = weakref.WeakKeyDictionary()


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[User]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    notice: Optional[str] = None


def get_slot_lock(path: str, key: str) -> asyncio.Lock:
    """Get the lock that serializes operations on one snapshot slot within the running event loop"""
    locks = _slot_locks.setdefault(asyncio.get_running_loop(), {})
    slot = (path, key)
    if slot not in locks:
        locks[slot] = asyncio.Lock()
    return locks[slot]


class BaseService:
    """Base service with optional single-flight serialization"""

    def __init__(self, resource_name: str, slot: Optional[Tuple[str, str]] = None):
        self.resource_name = resource_name
        self._slot = slot
        logger.info(f"{type(self).__name__} initialized for resource: {resource_name}")

    @asynccontextmanager
    async def _serialized(self):
        """Hold the slot lock when serialization is enabled, otherwise run unguarded"""
        if self._slot is None:
            yield
            return
        async with get_slot_lock(*self._slot):
            yield

    @staticmethod
    def failure(error: str, error_type: str, data: Optional[List[User]] = None) -> ServiceResult:
        return ServiceResult(
            success=False,
            data=data,
            count=len(data) if data else 0,
            error=error,
            error_type=error_type
        )
