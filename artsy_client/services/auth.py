import logging
from typing import Optional

from pydantic import ValidationError

from artsy_client.errors import ApplicationError, AuthenticationError, GatewayError
from artsy_client.schemas import AuthResponse, User
from artsy_client.services.cookie_jar import CookieJar
from artsy_client.services.favorites_sync import FavoritesSynchronizer
from artsy_client.services.gateway.base import GatewayResponse, NetworkGateway
from artsy_client.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def _parse_auth_response(response: GatewayResponse) -> AuthResponse:
    try:
        return AuthResponse.model_validate_json(response.body or "{}")
    except ValidationError as exc:
        raise ApplicationError(
            f"auth response is malformed: {exc}",
            status_code=response.status_code,
            body=response.body,
        ) from exc


class AuthService:
    def __init__(
        self,
        store: SessionStore,
        synchronizer: FavoritesSynchronizer,
        gateway: NetworkGateway,
        cookie_jar: CookieJar,
    ):
        self.store = store
        self.synchronizer = synchronizer
        self.gateway = gateway
        self.cookie_jar = cookie_jar

    def login(self, email: str, password: str) -> User:
        response = self.gateway.login(email, password)
        if not response.ok:
            raise AuthenticationError(
                "Username or password is incorrect",
                status_code=response.status_code,
                body=response.body,
            )
        payload = _parse_auth_response(response)
        if payload.user is None:
            raise ApplicationError("login response has no user", status_code=response.status_code, body=response.body)
        return self._start_session(payload.user.to_user())

    def register(self, full_name: str, email: str, password: str) -> User:
        response = self.gateway.register(full_name, email, password)
        if not response.ok:
            try:
                rejection = _parse_auth_response(response)
            except ApplicationError:
                rejection = AuthResponse()
            raise AuthenticationError(
                rejection.message or "Registration failed",
                status_code=response.status_code,
                body=response.body,
            )
        payload = _parse_auth_response(response)
        user = payload.user.to_user() if payload.user is not None else User(id=email, full_name=full_name, email=email)
        return self._start_session(user)

    def _start_session(self, user: User) -> User:
        self.store.set_user(user)
        self.synchronizer.reload()
        return user

    def logout(self) -> None:
        logger.info("Logging out")
        self.store.clear()
        self.cookie_jar.clear()

    def delete_account(self) -> bool:
        try:
            response = self.gateway.delete_account()
        except GatewayError as exc:
            logger.warning("Delete account failed: %s", exc)
            deleted = False
        else:
            deleted = response.ok
            if not deleted:
                logger.warning("Delete account rejected with HTTP %s: %s", response.status_code, response.body)
        # Local session goes away either way; a rejected token is likely stale.
        self.store.clear()
        self.cookie_jar.clear()
        return deleted

    def refresh_profile(self) -> Optional[User]:
        try:
            user = self.gateway.fetch_user_profile()
        except GatewayError as exc:
            logger.warning("Could not refresh profile: %s", exc)
            return None
        self.store.set_user(user)
        return user
