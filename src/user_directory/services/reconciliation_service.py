"""
Reconciliation service - merges the local snapshot with the remote user collection.

The demo API accepts writes but never persists them, so the local snapshot is
authoritative: any id present locally wins over the server's copy, and records
the server has but the snapshot lacks are appended. Create/update/delete go
through the gateway first and touch the in-memory collection only after it
succeeds (create/update can be made optimistic via OPTIMISTIC_WRITES).
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from user_directory.config import settings
from user_directory.models.user import User, UserFields
from user_directory.services.base_service import BaseService, ServiceResult
from user_directory.services.user_gateway import UserGateway
from user_directory.storage.snapshot_store import SnapshotStore
from user_directory.utils.errors import RemoteFailure

logger = logging.getLogger(__name__)

CACHED_DATA_NOTICE = "Using cached data: the user API is unavailable."


def is_local_origin(user_id: int) -> bool:
    """Local-origin records were created here and never exist on the remote API"""
    return user_id > settings.REMOTE_ID_CEILING


def merge_collections(local: Iterable[User], remote: Iterable[User]) -> List[User]:
    """Local records win unconditionally; unseen remote records are appended; result sorted by id"""
    merged: Dict[int, User] = {}
    for user in local:
        merged.setdefault(user.id, user)
    for user in remote:
        if user.id not in merged:
            merged[user.id] = user
    return sorted(merged.values(), key=lambda user: user.id)


def next_user_id(users: List[User], strategy: str = "floor") -> int:
    """
    Pick an identifier for a locally created user

    Args:
        users: Current collection
        strategy: "floor" hands out ids from LOCAL_ID_FLOOR upwards;
            "sequential" continues after the larger of the max id and the collection size

    Returns:
        An id above the remote-origin range that no user in the collection holds
    """
    max_id = max((user.id for user in users), default=0)
    if strategy == "sequential":
        return max(max_id, len(users), settings.REMOTE_ID_CEILING) + 1
    if strategy == "floor":
        return max_id + 1 if max_id >= settings.LOCAL_ID_FLOOR else settings.LOCAL_ID_FLOOR
    raise ValueError(f"Unknown id strategy: {strategy}")


def _find_index(users: List[User], user_id: int) -> Optional[int]:
    for index, user in enumerate(users):
        if user.id == user_id:
            return index
    return None


class ReconciliationService(BaseService):
    """Client-authoritative CRUD over the remote user API and the local snapshot"""

    def __init__(
        self,
        gateway: Optional[UserGateway] = None,
        store: Optional[SnapshotStore] = None,
        id_strategy: Optional[str] = None,
        optimistic_writes: Optional[bool] = None,
        serialize: Optional[bool] = None
    ):
        self.gateway = gateway or UserGateway()
        self.store = store or SnapshotStore()
        self.id_strategy = id_strategy or settings.ID_STRATEGY
        self.optimistic_writes = settings.OPTIMISTIC_WRITES if optimistic_writes is None else optimistic_writes
        if serialize is None:
            serialize = settings.SERIALIZE_OPERATIONS
        slot = (str(self.store.path), self.store.key) if serialize else None
        super().__init__("users", slot)

    async def _persist(self, users: List[User]):
        if not await self.store.save(users):
            logger.warning("Snapshot not persisted; in-memory collection is ahead of the stored copy")

    async def load_all(self) -> ServiceResult:
        """
        Reconcile the snapshot with a fresh remote listing

        Returns:
            ServiceResult with the authoritative collection. On remote failure the
            snapshot is returned with a notice, or a LOAD_FAILED error when none exists.
        """
        async with self._serialized():
            snapshot = await self.store.load()

            try:
                remote = await self.gateway.list_users()
            except RemoteFailure as e:
                if snapshot is None:
                    logger.error(f"Failed to load users and no snapshot available: {e}")
                    return self.failure("Failed to load users. Please try again later.", "LOAD_FAILED", data=[])
                logger.warning(f"User API unavailable, serving {len(snapshot)} cached users: {e}")
                return ServiceResult(
                    success=True,
                    data=snapshot,
                    count=len(snapshot),
                    notice=CACHED_DATA_NOTICE
                )

            if snapshot is None:
                users = merge_collections([], remote)
            else:
                users = merge_collections(snapshot, remote)
                logger.info(f"Merged {len(snapshot)} local with {len(remote)} remote users into {len(users)}")

            await self._persist(users)
            return ServiceResult(success=True, data=users, count=len(users))

    async def get(self, users: List[User], user_id: int) -> ServiceResult:
        """Look a user up locally first, then on the remote API"""
        index = _find_index(users, user_id)
        if index is not None:
            return ServiceResult(success=True, data=[users[index]], count=1)

        try:
            user = await self.gateway.get_user(user_id)
        except RemoteFailure as e:
            return self.failure(f"Failed to load user details: {e}", "REMOTE_FAILURE")

        if user is None:
            return self.failure(f"User {user_id} not found", "NOT_FOUND")
        return ServiceResult(success=True, data=[user], count=1)

    async def create(self, users: List[User], fields: UserFields) -> ServiceResult:
        """
        Create a user and append it to the collection

        Args:
            users: In-memory collection, mutated in place
            fields: Submitted user attributes

        Returns:
            ServiceResult with the created user
        """
        async with self._serialized():
            notice = None
            try:
                echoed = await self.gateway.create_user(fields)
            except RemoteFailure as e:
                if not self.optimistic_writes:
                    return self.failure("Failed to create user. Please try again.", "REMOTE_FAILURE")
                echoed = {}
                notice = f"User saved locally only: {e}"

            submitted = fields.to_payload()
            submitted.pop("id", None)
            payload: Dict[str, Any] = {**submitted, **echoed}
            taken = {user.id for user in users}
            remote_id = payload.get("id")
            if not (isinstance(remote_id, int) and remote_id > settings.REMOTE_ID_CEILING and remote_id not in taken):
                payload["id"] = next_user_id(users, self.id_strategy)

            user = User.from_payload(payload)
            users.append(user)
            logger.info(f"Created user {user.id}")
            await self._persist(users)
            return ServiceResult(success=True, data=[user], count=1, notice=notice)

    async def update(self, users: List[User], user_id: int, fields: UserFields) -> ServiceResult:
        """Replace a user's fields with the submitted ones"""
        async with self._serialized():
            index = _find_index(users, user_id)
            if index is None:
                return self.failure(f"User {user_id} not found", "NOT_FOUND")

            notice = None
            echoed: Dict[str, Any] = {}
            if not is_local_origin(user_id):
                try:
                    echoed = (await self.gateway.update_user(user_id, fields)).to_payload()
                except RemoteFailure as e:
                    if not self.optimistic_writes:
                        return self.failure("Failed to update user. Please try again.", "REMOTE_FAILURE")
                    notice = f"User updated locally only: {e}"

            payload = {**users[index].to_payload(), **fields.to_changes(), **echoed, "id": user_id}
            users[index] = User.from_payload(payload)
            logger.info(f"Updated user {user_id}")
            await self._persist(users)
            return ServiceResult(success=True, data=[users[index]], count=1, notice=notice)

    async def delete(self, users: List[User], user_id: int) -> ServiceResult:
        """Remove a user once the remote API has accepted the delete"""
        async with self._serialized():
            index = _find_index(users, user_id)
            if index is None:
                return self.failure(f"User {user_id} not found", "NOT_FOUND")

            if not is_local_origin(user_id):
                try:
                    await self.gateway.delete_user(user_id)
                except RemoteFailure as e:
                    logger.error(f"Delete of user {user_id} rejected: {e}")
                    return self.failure("Failed to delete user. Please try again.", "REMOTE_FAILURE")

            removed = users.pop(index)
            logger.info(f"Deleted user {removed.id}")
            await self._persist(users)
            return ServiceResult(success=True, data=[removed], count=1)


# Global service instance
_reconciliation_service = None


def get_reconciliation_service() -> ReconciliationService:
    """Get the global reconciliation service instance"""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
