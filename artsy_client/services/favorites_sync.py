import logging
from typing import Optional

from artsy_client.config import get_settings
from artsy_client.errors import GatewayError
from artsy_client.schemas import User
from artsy_client.services.gateway.base import NetworkGateway
from artsy_client.services.session_store import PendingToggle, SessionStore
from artsy_client.tasks.task_runner import TaskRunner

logger = logging.getLogger(__name__)


class FavoritesSynchronizer:
    """Optimistic favorite toggles reconciled against the server.

    Every toggle outcome, success or failure, ends in a ``reload`` so any
    divergence from server truth lasts at most one round trip.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: NetworkGateway,
        runner: TaskRunner,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.store = store
        self.gateway = gateway
        self.runner = runner
        self.max_retries = settings.reload_max_retries if max_retries is None else max_retries
        self.backoff_seconds = settings.reload_backoff_seconds if backoff_seconds is None else backoff_seconds

    def is_favorite(self, favorite_id: str) -> bool:
        return self.store.is_favorite(favorite_id)

    def reload(self, max_retries: Optional[int] = None) -> None:
        retries = self.max_retries if max_retries is None else max_retries
        owner = self.store.current_user
        if owner is None:
            logger.debug("reload: no user, clearing local favorites")
            self.store.clear_favorites()
            return
        if not self.store.try_begin_reconcile():
            logger.debug("reload: already in flight, skipping")
            return
        try:
            self.runner.submit(self._run_reload, retries, owner)
        except RuntimeError:
            self.store.end_reconcile()
            raise

    def _run_reload(self, retries: int, owner: User) -> None:
        retry = False
        stale = False
        try:
            response = self.gateway.fetch_favorites()
        except GatewayError as exc:
            if retries > 0:
                logger.warning(
                    "Loading favorites failed (%s), retrying in %.1fs (%d retries left)",
                    exc,
                    self.backoff_seconds,
                    retries,
                )
                self.runner.sleep(self.backoff_seconds)
                retry = True
            else:
                logger.warning("Loading favorites failed (%s), dropping local favorites", exc)
                self.store.clear_favorites()
        else:
            if self.store.current_user is owner:
                self.store.replace_favorites(response.favorites)
            else:
                logger.info("Session changed while loading favorites, discarding the response")
                stale = True
        finally:
            self.store.end_reconcile()

        if retry:
            self.reload(retries - 1)
        elif stale:
            self.reload()

    def toggle(self, favorite_id: str) -> bool:
        if self.store.current_user is None:
            logger.warning("toggle: no user logged in, ignoring %s", favorite_id)
            return False
        pending = self.store.begin_toggle(favorite_id)
        self.runner.submit(self._push_toggle, pending)
        return pending.adding

    def _push_toggle(self, pending: PendingToggle) -> None:
        action = "add" if pending.adding else "remove"
        try:
            if pending.adding:
                response = self.gateway.add_favorite(pending.favorite_id)
            else:
                response = self.gateway.remove_favorite(pending.favorite_id)
        except GatewayError as exc:
            logger.warning("Favorite %s of %s failed: %s", action, pending.favorite_id, exc)
            self.store.revert_toggle(pending)
        else:
            if response.ok:
                self.store.confirm_toggle(pending)
            else:
                logger.warning(
                    "Favorite %s of %s rejected with HTTP %s",
                    action,
                    pending.favorite_id,
                    response.status_code,
                )
                self.store.revert_toggle(pending)
        self.reload()
