import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from artsy_client.config import get_settings
from artsy_client.db import get_engine
from artsy_client.errors import CookieDecodeError
from artsy_client.models import CookieEntry, utcnow

logger = logging.getLogger(__name__)

# 9999-12-31T23:59:59Z; cookies without Expires/Max-Age live until replaced.
SESSION_COOKIE_EXPIRES_AT = 253402300799.0

COOKIE_ATTR_NAMES = {
    "path",
    "domain",
    "expires",
    "max-age",
    "secure",
    "httponly",
    "samesite",
    "priority",
    "partitioned",
}


@dataclass(frozen=True)
class CookieRecord:
    name: str
    value: str
    domain: str
    path: str = "/"
    expires_at: float = SESSION_COOKIE_EXPIRES_AT
    secure: bool = False
    http_only: bool = False
    host_only: bool = True

    def is_expired(self, now: float) -> bool:
        return self.expires_at < now


def serialize_cookies(cookies: Iterable[CookieRecord]) -> str:
    return json.dumps([asdict(cookie) for cookie in cookies], ensure_ascii=False)


def deserialize_cookies(payload: str) -> List[CookieRecord]:
    try:
        raw = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise CookieDecodeError(f"cookie payload is not valid JSON: {exc}") from exc
    if not isinstance(raw, list):
        raise CookieDecodeError("cookie payload must be a JSON array")

    cookies: List[CookieRecord] = []
    for item in raw:
        if not isinstance(item, dict):
            raise CookieDecodeError(f"cookie entry must be an object, got {type(item).__name__}")
        try:
            cookies.append(
                CookieRecord(
                    name=str(item["name"]),
                    value=str(item["value"]),
                    domain=str(item["domain"]),
                    path=str(item.get("path") or "/"),
                    expires_at=float(item["expires_at"]),
                    secure=bool(item.get("secure", False)),
                    http_only=bool(item.get("http_only", False)),
                    host_only=bool(item.get("host_only", True)),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CookieDecodeError(f"malformed cookie entry: {exc!r}") from exc
    return cookies


def _parse_expires(value: str) -> Optional[float]:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def parse_set_cookie(header: str, request_host: str, now: float) -> Optional[CookieRecord]:
    if not header:
        return None
    parts = header.split(";")
    first = parts[0].strip()
    if "=" not in first:
        return None
    name, value = first.split("=", 1)
    name = name.strip()
    if not name or name.lower() in COOKIE_ATTR_NAMES:
        return None

    domain = request_host.lower()
    host_only = True
    path = "/"
    secure = False
    http_only = False
    expires_at: Optional[float] = None
    max_age: Optional[int] = None

    for part in parts[1:]:
        chunk = part.strip()
        if not chunk:
            continue
        key, _, attr = chunk.partition("=")
        key = key.strip().lower()
        attr = attr.strip()
        if key == "domain" and attr:
            domain = attr.lstrip(".").lower()
            host_only = False
        elif key == "path" and attr.startswith("/"):
            path = attr
        elif key == "secure":
            secure = True
        elif key == "httponly":
            http_only = True
        elif key == "max-age":
            try:
                max_age = int(attr)
            except ValueError:
                continue
        elif key == "expires":
            expires_at = _parse_expires(attr)

    if max_age is not None:
        expires_at = now + max_age if max_age > 0 else 0.0
    if expires_at is None:
        expires_at = SESSION_COOKIE_EXPIRES_AT

    return CookieRecord(
        name=name,
        value=value.strip(),
        domain=domain,
        path=path,
        expires_at=expires_at,
        secure=secure,
        http_only=http_only,
        host_only=host_only,
    )


def cookie_header(cookies: Iterable[CookieRecord]) -> str:
    return "; ".join(f"{cookie.name}={cookie.value}" for cookie in cookies)


class CookieJar:
    """Per-host authentication cookies, mirrored into one storage row per host.

    ``store`` replaces a host's whole list. ``retrieve`` prunes expired
    cookies and writes the pruned list back. Storage failures are logged and
    leave the in-memory state authoritative for the current process.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        enable_persistence: Optional[bool] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        settings = get_settings()
        self._cookies: Dict[str, List[CookieRecord]] = {}
        self._lock = threading.Lock()
        # Serializes row writes; each write copies the host list from memory under it.
        self._persist_lock = threading.Lock()
        self._persist_enabled = (
            bool(enable_persistence) if enable_persistence is not None else bool(settings.persist_cookies_on_disk)
        )
        if engine is None and self._persist_enabled:
            engine = get_engine()
        self._engine = engine
        self._clock = clock or time.time
        self._load_persisted_cookies()

    def store(self, host: str, cookies: Iterable[CookieRecord]) -> None:
        records = list(cookies)
        with self._lock:
            if records:
                self._cookies[host] = records
            else:
                self._cookies.pop(host, None)
        logger.debug("Stored %d cookies for host %s", len(records), host)
        self._sync_host(host)

    def retrieve(self, host: str) -> List[CookieRecord]:
        now = self._clock()
        with self._lock:
            cookies = self._cookies.get(host, [])
            valid = [cookie for cookie in cookies if not cookie.is_expired(now)]
            pruned = len(valid) < len(cookies)
            if pruned:
                if valid:
                    self._cookies[host] = valid
                else:
                    self._cookies.pop(host, None)
        if pruned:
            logger.debug("Pruned %d expired cookies for host %s", len(cookies) - len(valid), host)
            self._sync_host(host)
        return list(valid)

    def clear(self) -> None:
        with self._persist_lock:
            with self._lock:
                self._cookies.clear()
            self._persist_clear()
        logger.info("Cleared all cookies")

    def hosts(self) -> List[str]:
        with self._lock:
            return sorted(self._cookies)

    def _load_persisted_cookies(self) -> None:
        if not self._persist_enabled:
            return
        try:
            with Session(self._engine) as session:
                rows = [(entry.host, entry.payload) for entry in session.exec(select(CookieEntry)).all()]
        except SQLAlchemyError as exc:
            logger.warning("Could not load persisted cookies: %s", exc)
            return

        loaded: Dict[str, List[CookieRecord]] = {}
        for host, payload in rows:
            try:
                cookies = deserialize_cookies(payload)
            except CookieDecodeError as exc:
                logger.warning("Ignoring undecodable cookies for host %s: %s", host, exc)
                continue
            if cookies:
                loaded[host] = cookies
        with self._lock:
            self._cookies.update(loaded)
        logger.debug("Loaded persisted cookies for %d hosts", len(loaded))

    def _sync_host(self, host: str) -> None:
        if not self._persist_enabled:
            return
        with self._persist_lock:
            with self._lock:
                current = list(self._cookies.get(host, []))
            self._persist_host(host, current)

    def _persist_host(self, host: str, cookies: List[CookieRecord]) -> None:
        if not self._persist_enabled:
            return
        try:
            with Session(self._engine) as session:
                entry = session.get(CookieEntry, host)
                if not cookies:
                    if entry is not None:
                        session.delete(entry)
                else:
                    if entry is None:
                        entry = CookieEntry(host=host)
                    entry.payload = serialize_cookies(cookies)
                    entry.updated_at = utcnow()
                    session.add(entry)
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Could not persist cookies for host %s: %s", host, exc)

    def _persist_clear(self) -> None:
        if not self._persist_enabled:
            return
        try:
            with Session(self._engine) as session:
                for entry in session.exec(select(CookieEntry)).all():
                    session.delete(entry)
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Could not clear persisted cookies: %s", exc)
