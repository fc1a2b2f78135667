"""
Remote user gateway - thin async REST client for the demo user API
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from user_directory.config import settings
from user_directory.models.user import User, UserFields
from user_directory.utils.errors import RemoteFailure

logger = logging.getLogger(__name__)


class UserGateway:
    """REST client for the remote user collection. One round trip per call, no retries."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        resource_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.USER_API_BASE_URL).rstrip("/")
        self.resource_path = resource_path or settings.USERS_RESOURCE_PATH
        self._transport = transport

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}{self.resource_path}"

    async def _request(
        self,
        operation: str,
        method: str,
        endpoint: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """Make REST request, normalizing every failure into RemoteFailure"""
        url = f"{self.collection_url}{endpoint}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                if method == "GET":
                    response = await client.get(url)
                elif method == "POST":
                    response = await client.post(url, json=data)
                elif method == "PUT":
                    response = await client.put(url, json=data)
                elif method == "DELETE":
                    response = await client.delete(url)
                else:
                    raise ValueError(f"Unsupported method: {method}")
        except httpx.HTTPError as e:
            logger.error(f"Error in {operation}: {e}")
            raise RemoteFailure(operation, message=str(e)) from e

        if not response.is_success:
            logger.error(f"Error in {operation}: HTTP {response.status_code}")
            raise RemoteFailure(operation, response.status_code, f"HTTP error! status: {response.status_code}")

        return response

    @staticmethod
    def _parse(operation: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Error in {operation}: malformed JSON payload")
            raise RemoteFailure(operation, response.status_code, "malformed JSON payload") from e

    def _to_user(self, operation: str, response: httpx.Response, payload: Any) -> User:
        try:
            return User.from_payload(payload)
        except ValidationError as e:
            logger.error(f"Error in {operation}: unexpected user payload")
            raise RemoteFailure(operation, response.status_code, "unexpected user payload") from e

    async def list_users(self) -> List[User]:
        """Fetch all users"""
        response = await self._request("list_users", "GET")
        payload = self._parse("list_users", response)
        if not isinstance(payload, list):
            raise RemoteFailure("list_users", response.status_code, "expected a JSON array of users")
        return [self._to_user("list_users", response, item) for item in payload]

    async def get_user(self, user_id: int) -> Optional[User]:
        """Fetch a single user, or None when the API does not know the id"""
        try:
            response = await self._request("get_user", "GET", f"/{user_id}")
        except RemoteFailure as e:
            if e.status_code == 404:
                return None
            raise
        return self._to_user("get_user", response, self._parse("get_user", response))

    async def create_user(self, fields: UserFields) -> Dict[str, Any]:
        """
        Create a user

        Returns the raw echoed record. The demo API may omit the id or hand back
        one that is never persisted, so id assignment is left to the caller.
        """
        body = fields.to_payload()
        body.pop("id", None)
        response = await self._request("create_user", "POST", data=body)
        payload = self._parse("create_user", response)
        if not isinstance(payload, dict):
            raise RemoteFailure("create_user", response.status_code, "expected a JSON object")
        try:
            echoed = UserFields.model_validate(payload)
        except ValidationError as e:
            logger.error("Error in create_user: unexpected user payload")
            raise RemoteFailure("create_user", response.status_code, "unexpected user payload") from e
        return echoed.to_payload()

    async def update_user(self, user_id: int, fields: UserFields) -> User:
        """Replace a user's fields"""
        body = fields.to_payload()
        body["id"] = user_id
        response = await self._request("update_user", "PUT", f"/{user_id}", data=body)
        payload = self._parse("update_user", response)
        if isinstance(payload, dict):
            payload.setdefault("id", user_id)
        return self._to_user("update_user", response, payload)

    async def delete_user(self, user_id: int) -> bool:
        """Delete a user; any 2xx counts as success"""
        await self._request("delete_user", "DELETE", f"/{user_id}")
        return True
