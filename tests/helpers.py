"""
Test helpers: user factory and an in-memory gateway double
"""

from typing import Any, Dict, List, Optional

from user_directory.models.user import User, UserFields
from user_directory.utils.errors import RemoteFailure


def make_user(user_id: int, name: Optional[str] = None, **extra) -> User:
    payload = {
        "id": user_id,
        "name": name or f"User {user_id}",
        "email": f"user{user_id}@example.com",
        "phone": "555-0100",
    }
    payload.update(extra)
    return User.from_payload(payload)


class FakeGateway:
    """In-memory stand-in for UserGateway that records calls and can be told to fail"""

    def __init__(self, users: Optional[List[User]] = None):
        self.users = list(users or [])
        self.fail_operations = set()
        self.created_id: Optional[int] = None
        self.calls: List[tuple] = []

    @property
    def collection_url(self) -> str:
        return "https://api.test/users"

    def _check(self, operation: str):
        if operation in self.fail_operations:
            raise RemoteFailure(operation, 500, "HTTP error! status: 500")

    async def list_users(self) -> List[User]:
        self.calls.append(("list_users",))
        self._check("list_users")
        return list(self.users)

    async def get_user(self, user_id: int) -> Optional[User]:
        self.calls.append(("get_user", user_id))
        self._check("get_user")
        return next((user for user in self.users if user.id == user_id), None)

    async def create_user(self, fields: UserFields) -> Dict[str, Any]:
        self.calls.append(("create_user", fields))
        self._check("create_user")
        payload = fields.to_payload()
        if self.created_id is not None:
            payload["id"] = self.created_id
        return payload

    async def update_user(self, user_id: int, fields: UserFields) -> User:
        self.calls.append(("update_user", user_id))
        self._check("update_user")
        return User.from_payload({**fields.to_payload(), "id": user_id})

    async def delete_user(self, user_id: int) -> bool:
        self.calls.append(("delete_user", user_id))
        self._check("delete_user")
        return True

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]
