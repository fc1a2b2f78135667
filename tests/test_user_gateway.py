"""
Remote user gateway tests against an httpx mock transport
"""

import json

import httpx
import pytest

from user_directory.models.user import UserFields
from user_directory.services.user_gateway import UserGateway
from user_directory.utils.errors import RemoteFailure

BASE_URL = "https://api.test"

LEANNE = {
    "id": 1,
    "name": "Leanne Graham",
    "username": "Bret",
    "email": "Sincere@april.biz",
    "phone": "1-770-736-8031 x56442",
    "website": "hildegard.org",
    "address": {"street": "Kulas Light", "suite": "Apt. 556", "city": "Gwenborough", "zipcode": "92998-3874",
                "geo": {"lat": "-37.3159", "lng": "81.1496"}},
    "company": {"name": "Romaguera-Crona", "catchPhrase": "Multi-layered client-server neural-net",
                "bs": "harness real-time e-markets"},
}


def make_gateway(handler) -> UserGateway:
    return UserGateway(base_url=BASE_URL, resource_path="/users", transport=httpx.MockTransport(handler))


class TestGatewayRequests:
    """Verbs, paths and bodies sent to the remote collection"""

    @pytest.mark.asyncio
    async def test_list_users(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=[LEANNE, {"id": 2, "name": "Ervin Howell"}])

        users = await make_gateway(handler).list_users()

        assert seen == [("GET", "/users")]
        assert [user.id for user in users] == [1, 2]
        assert users[0].company.catch_phrase == "Multi-layered client-server neural-net"
        assert users[0].address.city == "Gwenborough"

    @pytest.mark.asyncio
    async def test_extra_fields_round_trip(self):
        def handler(request):
            return httpx.Response(200, json=LEANNE)

        user = await make_gateway(handler).get_user(1)

        assert user.to_payload() == LEANNE

    @pytest.mark.asyncio
    async def test_create_posts_body_without_id(self):
        bodies = []

        def handler(request):
            assert request.method == "POST"
            assert request.url.path == "/users"
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(201, json={**body, "id": 11})

        created = await make_gateway(handler).create_user(UserFields(name="X", email="x@example.com"))

        assert "id" not in bodies[0]
        assert bodies[0]["name"] == "X"
        assert created["id"] == 11

    @pytest.mark.asyncio
    async def test_update_puts_body_with_id(self):
        def handler(request):
            assert request.method == "PUT"
            assert request.url.path == "/users/3"
            body = json.loads(request.content)
            assert body["id"] == 3
            return httpx.Response(200, json=body)

        user = await make_gateway(handler).update_user(3, UserFields(name="Updated"))

        assert user.id == 3
        assert user.name == "Updated"

    @pytest.mark.asyncio
    async def test_delete_accepts_empty_body(self):
        def handler(request):
            assert request.method == "DELETE"
            assert request.url.path == "/users/4"
            return httpx.Response(200)

        assert await make_gateway(handler).delete_user(4) is True


class TestGatewayFailures:
    """Every failure mode surfaces as RemoteFailure"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 404, 500, 503])
    async def test_non_2xx_status(self, status_code):
        gateway = make_gateway(lambda request: httpx.Response(status_code))

        with pytest.raises(RemoteFailure) as exc_info:
            await gateway.list_users()

        assert exc_info.value.operation == "list_users"
        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteFailure) as exc_info:
            await make_gateway(handler).delete_user(1)

        assert exc_info.value.operation == "delete_user"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content,content_type", [
        (b"<html>oops</html>", "text/html"),
        (b'{"id": 1}', "application/json"),
        (b'[{"name": "no id"}]', "application/json"),
    ])
    async def test_malformed_list_payload(self, content, content_type):
        gateway = make_gateway(
            lambda request: httpx.Response(200, content=content, headers={"Content-Type": content_type})
        )

        with pytest.raises(RemoteFailure):
            await gateway.list_users()

    @pytest.mark.asyncio
    async def test_get_unknown_user_returns_none(self):
        gateway = make_gateway(lambda request: httpx.Response(404, json={}))
        assert await gateway.get_user(99) is None

    @pytest.mark.asyncio
    async def test_get_server_error_raises(self):
        gateway = make_gateway(lambda request: httpx.Response(500))

        with pytest.raises(RemoteFailure) as exc_info:
            await gateway.get_user(1)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("echo", [
        {"name": 123, "address": "x"},
        {"company": ["not", "an", "object"]},
    ])
    async def test_malformed_create_echo(self, echo):
        gateway = make_gateway(lambda request: httpx.Response(201, json=echo))

        with pytest.raises(RemoteFailure) as exc_info:
            await gateway.create_user(UserFields(name="X"))

        assert exc_info.value.operation == "create_user"
        assert exc_info.value.status_code == 201

    @pytest.mark.asyncio
    async def test_malformed_update_echo(self):
        gateway = make_gateway(lambda request: httpx.Response(200, json={"id": 3, "email": {"bad": True}}))

        with pytest.raises(RemoteFailure) as exc_info:
            await gateway.update_user(3, UserFields(name="X"))

        assert exc_info.value.operation == "update_user"
