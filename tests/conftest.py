import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_DATA_DIR = Path("/tmp/artsy-client-test")
os.environ["ARTSY_DB_PATH"] = str(TEST_DATA_DIR / "artsy-client-test.db")
os.environ["ARTSY_SNAPSHOT_PATH"] = str(TEST_DATA_DIR / "user_data.json")
os.environ["ARTSY_BASE_URL"] = "http://testserver/"
os.environ["ARTSY_SYNC_INLINE"] = "true"
os.environ["ARTSY_PERSIST_COOKIES_ON_DISK"] = "false"
os.environ["ARTSY_RELOAD_BACKOFF_SECONDS"] = "0"

from artsy_client.config import clear_settings_cache  # noqa: E402
from artsy_client.db import create_storage_engine  # noqa: E402
from artsy_client.errors import ApplicationError, TransportError  # noqa: E402
from artsy_client.schemas import FavoriteDetail, FavoritesResponse, User  # noqa: E402
from artsy_client.services.gateway.base import GatewayResponse, NetworkGateway  # noqa: E402
from artsy_client.services.session_store import SessionStore  # noqa: E402
from artsy_client.services.snapshot_store import SessionSnapshotStore  # noqa: E402
from artsy_client.tasks.task_runner import TaskRunner  # noqa: E402


def make_favorite(favorite_id: str) -> FavoriteDetail:
    return FavoriteDetail(
        id=favorite_id,
        name=f"Artist {favorite_id}",
        nationality="Dutch",
        years="1853 - 1890",
        added_at="2025-01-01T00:00:00.000Z",
        thumbnail_url=f"https://d32dm0rphc51dk.cloudfront.net/{favorite_id}/square.jpg",
    )


class FakeGateway(NetworkGateway):
    """In-memory server: favorites toggles mutate ``server_ids``."""

    def __init__(self):
        self.server_ids: List[str] = []
        self.favorites_message = "success"
        self.offline = False
        self.reject_toggles = False
        self.fetch_errors: List[Exception] = []
        self.on_fetch: Optional[Callable[[], None]] = None
        self.profile: Optional[User] = None
        self.login_response = GatewayResponse(status_code=200, body="{}")
        self.register_response = GatewayResponse(status_code=200, body="{}")
        self.delete_response = GatewayResponse(status_code=200, body='{"message": "deleted"}')
        self.calls: List[Tuple] = []

    def fetch_favorites(self) -> FavoritesResponse:
        self.calls.append(("fetch_favorites",))
        if self.on_fetch is not None:
            self.on_fetch()
        if self.offline:
            raise TransportError("offline")
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return FavoritesResponse(
            favorites=[make_favorite(fid) for fid in self.server_ids],
            message=self.favorites_message,
        )

    def add_favorite(self, favorite_id: str) -> GatewayResponse:
        self.calls.append(("add_favorite", favorite_id))
        if self.offline:
            raise TransportError("offline")
        if self.reject_toggles:
            return GatewayResponse(status_code=500, body='{"error": "toggle rejected"}')
        if favorite_id not in self.server_ids:
            self.server_ids.append(favorite_id)
        return GatewayResponse(status_code=200, body='{"message": "added"}')

    def remove_favorite(self, favorite_id: str) -> GatewayResponse:
        self.calls.append(("remove_favorite", favorite_id))
        if self.offline:
            raise TransportError("offline")
        if self.reject_toggles:
            return GatewayResponse(status_code=500, body='{"error": "toggle rejected"}')
        if favorite_id in self.server_ids:
            self.server_ids.remove(favorite_id)
        return GatewayResponse(status_code=200, body='{"message": "removed"}')

    def login(self, email: str, password: str) -> GatewayResponse:
        self.calls.append(("login", email))
        if self.offline:
            raise TransportError("offline")
        return self.login_response

    def register(self, full_name: str, email: str, password: str) -> GatewayResponse:
        self.calls.append(("register", full_name, email))
        if self.offline:
            raise TransportError("offline")
        return self.register_response

    def fetch_user_profile(self) -> User:
        self.calls.append(("fetch_user_profile",))
        if self.offline:
            raise TransportError("offline")
        if self.profile is None:
            raise ApplicationError("not logged in", status_code=401)
        return self.profile

    def delete_account(self) -> GatewayResponse:
        self.calls.append(("delete_account",))
        if self.offline:
            raise TransportError("offline")
        return self.delete_response

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class DeferredRunner(TaskRunner):
    """Queues tasks until ``run_pending`` so tests can look at optimistic
    state before the network outcome lands."""

    def __init__(self):
        super().__init__(inline=True)
        self.pending: List[Tuple[Callable, tuple]] = []
        self.sleeps: List[float] = []

    def submit(self, fn, *args):
        self.pending.append((fn, args))
        return None

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def run_pending(self) -> None:
        while self.pending:
            fn, args = self.pending.pop(0)
            fn(*args)


@pytest.fixture(autouse=True)
def fresh_settings():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine(tmp_path):
    storage = create_storage_engine(str(tmp_path / "cookies.db"))
    yield storage
    storage.dispose()


@pytest.fixture
def snapshot_store(tmp_path):
    return SessionSnapshotStore(str(tmp_path / "user_data.json"))


@pytest.fixture
def store(snapshot_store):
    return SessionStore(snapshot_store)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def runner():
    return DeferredRunner()


@pytest.fixture
def user():
    return User(
        id="ada@example.com",
        full_name="Ada Lovelace",
        email="ada@example.com",
        avatar_url="https://www.gravatar.com/avatar/ada",
    )


@pytest.fixture
def recorder(store):
    """Records favorite ids at each change notification."""
    seen: List[frozenset] = []
    store.subscribe(lambda: seen.append(store.favorite_ids))
    return seen
