"""
pytest configuration and fixtures for the user directory test suite
"""

from typing import List

import pytest

from helpers import FakeGateway, make_user
from user_directory.models.user import User
from user_directory.services.reconciliation_service import ReconciliationService
from user_directory.storage.snapshot_store import SnapshotStore


@pytest.fixture
def remote_users() -> List[User]:
    return [make_user(1, "Leanne Graham"), make_user(2, "Ervin Howell"), make_user(3, "Clementine Bauch")]


@pytest.fixture
def gateway(remote_users) -> FakeGateway:
    return FakeGateway(remote_users)


@pytest.fixture
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "snapshot.json", "users")


@pytest.fixture
def service(gateway, store) -> ReconciliationService:
    return ReconciliationService(
        gateway=gateway,
        store=store,
        id_strategy="floor",
        optimistic_writes=False,
        serialize=False
    )
