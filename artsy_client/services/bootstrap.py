import logging

from artsy_client.errors import ApplicationError, GatewayError, TransportError
from artsy_client.services.gateway.base import NetworkGateway
from artsy_client.services.session_store import SessionStore
from artsy_client.services.snapshot_store import SessionSnapshotStore
from artsy_client.tasks.task_runner import TaskRunner

logger = logging.getLogger(__name__)


class SessionBootstrapper:
    def __init__(
        self,
        store: SessionStore,
        snapshot_store: SessionSnapshotStore,
        gateway: NetworkGateway,
        runner: TaskRunner,
    ):
        self.store = store
        self.snapshot_store = snapshot_store
        self.gateway = gateway
        self.runner = runner

    def start(self) -> None:
        self.runner.submit(self.validate_session)

    def validate_session(self) -> None:
        """Show the cached user right away, then let the server decide.

        A server that answers without a session logs the user out; a server
        that cannot be reached leaves the cached user in place.
        """
        snapshot = self.snapshot_store.load()
        if snapshot is not None:
            logger.info("Restored cached user %s", snapshot.email)
            self.store.set_user(snapshot)

        try:
            response = self.gateway.fetch_favorites()
        except TransportError as exc:
            logger.warning("Could not validate session, keeping cached user: %s", exc)
            return
        except ApplicationError as exc:
            if exc.is_unauthorized:
                logger.info("Server rejected the stored session")
                self.store.set_user(None)
            else:
                logger.warning("Could not validate session, keeping cached user: %s", exc)
            return

        if not response.is_authenticated:
            logger.info("No valid session on the server")
            self.store.set_user(None)
            return

        if self.store.current_user is None:
            self._restore_profile()
        self.store.replace_favorites(response.favorites)
        logger.info("Session restored with %d favorites", len(response.favorites))

    def _restore_profile(self) -> None:
        try:
            user = self.gateway.fetch_user_profile()
        except GatewayError as exc:
            logger.warning("Session is valid but the profile could not be loaded: %s", exc)
            return
        self.store.set_user(user)
