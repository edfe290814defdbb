import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set

from artsy_client.schemas import FavoriteDetail, User
from artsy_client.services.notifier import ChangeNotifier, Listener, Subscription
from artsy_client.services.snapshot_store import SessionSnapshotStore

logger = logging.getLogger(__name__)


class ToggleState(str, Enum):
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass
class PendingToggle:
    favorite_id: str
    adding: bool
    state: ToggleState = field(default=ToggleState.TENTATIVE)

    def _resolve(self, state: ToggleState) -> None:
        if self.state is not ToggleState.TENTATIVE:
            raise ValueError(f"toggle for {self.favorite_id} already {self.state.value}")
        self.state = state


class SessionStore:
    """In-memory session state: the current user plus two favorites views.

    ``favorite_ids`` is the membership cache used for "is this a favorite"
    checks; ``favorite_details`` is the enriched list shown on screen. They
    agree after every reconciliation and may briefly differ while an
    optimistic toggle is in flight.
    """

    def __init__(self, snapshot_store: SessionSnapshotStore, notifier: Optional[ChangeNotifier] = None):
        self._snapshot_store = snapshot_store
        self._notifier = notifier or ChangeNotifier()
        self._lock = threading.RLock()
        self._current_user: Optional[User] = None
        self._favorite_ids: Set[str] = set()
        self._favorite_details: List[FavoriteDetail] = []
        self._reconciling = False

    @property
    def current_user(self) -> Optional[User]:
        return self._current_user

    @property
    def favorite_ids(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._favorite_ids)

    @property
    def favorite_details(self) -> List[FavoriteDetail]:
        with self._lock:
            return list(self._favorite_details)

    @property
    def reconciling(self) -> bool:
        return self._reconciling

    def is_favorite(self, favorite_id: str) -> bool:
        with self._lock:
            return favorite_id in self._favorite_ids

    def set_user(self, user: Optional[User]) -> None:
        if user is None:
            self._current_user = None
            self._snapshot_store.clear()
            logger.info("Session user cleared")
            return
        logger.info("Session user set to %s", user.email)
        self._current_user = user
        self._snapshot_store.save(user)

    def clear(self) -> None:
        with self._lock:
            self._current_user = None
            self._favorite_ids.clear()
            self._favorite_details.clear()
        self._snapshot_store.clear()
        self.notify()

    # listener registry

    def subscribe(self, callback: Listener) -> Subscription:
        return self._notifier.subscribe(callback)

    def unsubscribe(self, callback) -> None:
        self._notifier.unsubscribe(callback)

    def notify(self) -> None:
        self._notifier.notify()

    # reconciliation

    def try_begin_reconcile(self) -> bool:
        with self._lock:
            if self._reconciling:
                return False
            self._reconciling = True
            return True

    def end_reconcile(self) -> None:
        with self._lock:
            self._reconciling = False

    def replace_favorites(self, details: Iterable[FavoriteDetail]) -> None:
        with self._lock:
            self._favorite_details = list(details)
            self._favorite_ids = {detail.id for detail in self._favorite_details}
            count = len(self._favorite_ids)
        logger.debug("Replaced favorites with %d server entries", count)
        self.notify()

    def clear_favorites(self) -> None:
        with self._lock:
            self._favorite_ids.clear()
            self._favorite_details.clear()
        self.notify()

    # optimistic toggle

    def begin_toggle(self, favorite_id: str) -> PendingToggle:
        with self._lock:
            adding = favorite_id not in self._favorite_ids
            if adding:
                self._favorite_ids.add(favorite_id)
            else:
                self._favorite_ids.discard(favorite_id)
                self._favorite_details = [d for d in self._favorite_details if d.id != favorite_id]
        logger.debug("Optimistic %s of %s", "add" if adding else "remove", favorite_id)
        self.notify()
        return PendingToggle(favorite_id=favorite_id, adding=adding)

    def confirm_toggle(self, pending: PendingToggle) -> None:
        pending._resolve(ToggleState.CONFIRMED)

    def revert_toggle(self, pending: PendingToggle) -> None:
        pending._resolve(ToggleState.REVERTED)
        with self._lock:
            if pending.adding:
                self._favorite_ids.discard(pending.favorite_id)
            else:
                self._favorite_ids.add(pending.favorite_id)
        logger.debug("Reverted optimistic %s of %s", "add" if pending.adding else "remove", pending.favorite_id)
        self.notify()
