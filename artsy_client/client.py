import logging
from typing import Optional

from sqlalchemy.engine import Engine

from artsy_client.config import Settings, get_settings
from artsy_client.db import create_storage_engine
from artsy_client.services.auth import AuthService
from artsy_client.services.bootstrap import SessionBootstrapper
from artsy_client.services.cookie_jar import CookieJar
from artsy_client.services.favorites_sync import FavoritesSynchronizer
from artsy_client.services.gateway import NetworkGateway, get_gateway
from artsy_client.services.notifier import ChangeNotifier
from artsy_client.services.session_store import SessionStore
from artsy_client.services.snapshot_store import SessionSnapshotStore
from artsy_client.tasks.task_runner import TaskRunner

logger = logging.getLogger(__name__)


class ArtsyClient:
    """Owns one session engine: storage, cookie jar, gateway and stores.

    Build it once per process, call ``start`` to validate the stored session
    in the background, and ``close`` on shutdown.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine: Optional[Engine] = None,
        cookie_jar: Optional[CookieJar] = None,
        gateway: Optional[NetworkGateway] = None,
        snapshot_store: Optional[SessionSnapshotStore] = None,
        runner: Optional[TaskRunner] = None,
    ):
        self.settings = settings or get_settings()
        if cookie_jar is None:
            persist = self.settings.persist_cookies_on_disk
            if engine is None and persist:
                engine = create_storage_engine(self.settings.db_path)
            cookie_jar = CookieJar(engine=engine, enable_persistence=persist)
        self.engine = engine
        self.cookie_jar = cookie_jar
        self.gateway = gateway or get_gateway(self.cookie_jar, settings=self.settings)
        self.snapshot_store = snapshot_store or SessionSnapshotStore(self.settings.snapshot_path)
        self.notifier = ChangeNotifier()
        self.store = SessionStore(self.snapshot_store, self.notifier)
        self.runner = runner or TaskRunner(max_workers=self.settings.max_workers, inline=self.settings.sync_inline)
        self.favorites = FavoritesSynchronizer(
            self.store,
            self.gateway,
            self.runner,
            max_retries=self.settings.reload_max_retries,
            backoff_seconds=self.settings.reload_backoff_seconds,
        )
        self.bootstrapper = SessionBootstrapper(self.store, self.snapshot_store, self.gateway, self.runner)
        self.auth = AuthService(self.store, self.favorites, self.gateway, self.cookie_jar)

    def start(self) -> None:
        logger.info("Starting session validation")
        self.bootstrapper.start()

    def close(self) -> None:
        self.runner.shutdown(wait=True)
        self.gateway.close()
        if self.engine is not None:
            self.engine.dispose()

    def __enter__(self) -> "ArtsyClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
