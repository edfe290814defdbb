import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from artsy_client.config import get_settings
from artsy_client.schemas import User

logger = logging.getLogger(__name__)


class SessionSnapshotStore:
    """Last known user, kept on disk so the UI can restore it before the
    server confirms the session. Never authoritative and never raises."""

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().snapshot_path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, user: User) -> None:
        payload = {
            "id": user.id,
            "fullName": user.full_name,
            "email": user.email,
            "profileImageUrl": user.avatar_url or "",
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save session snapshot to %s: %s", self._path, exc)
            return
        logger.debug("Saved session snapshot for %s", user.email)

    def load(self) -> Optional[User]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug("No session snapshot at %s", self._path)
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Could not read session snapshot %s: %s", self._path, exc)
            return None
        if not isinstance(raw, dict):
            logger.warning("Session snapshot %s is not a JSON object", self._path)
            return None

        avatar_url = raw.get("profileImageUrl")
        if not isinstance(avatar_url, str) or not avatar_url.strip() or avatar_url == "null":
            avatar_url = None
        try:
            return User(
                id=raw["id"],
                full_name=raw["fullName"],
                email=raw["email"],
                avatar_url=avatar_url,
            )
        except (KeyError, ValidationError) as exc:
            logger.warning("Session snapshot %s is incomplete: %s", self._path, exc)
            return None

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete session snapshot %s: %s", self._path, exc)
