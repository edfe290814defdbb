import logging
import time
from typing import Optional

import httpx
from pydantic import ValidationError

from artsy_client.config import Settings, get_settings
from artsy_client.errors import ApplicationError, TransportError
from artsy_client.schemas import (
    FavoritesResponse,
    LoginRequest,
    RegisterRequest,
    User,
    UserProfileResponse,
)
from artsy_client.services.cookie_jar import CookieJar, cookie_header, parse_set_cookie
from artsy_client.services.gateway.base import GatewayResponse, NetworkGateway

logger = logging.getLogger(__name__)


class HttpGateway(NetworkGateway):
    def __init__(
        self,
        cookie_jar: CookieJar,
        client: Optional[httpx.Client] = None,
        base_url: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.cookie_jar = cookie_jar
        self.client = client or httpx.Client(
            base_url=base_url or self.settings.base_url,
            timeout=self.settings.request_timeout,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )
        if client is not None and base_url:
            self.client.base_url = base_url
        hooks = self.client.event_hooks
        self.client.event_hooks = {
            "request": [*hooks.get("request", []), self._attach_cookies],
            "response": [*hooks.get("response", []), self._capture_cookies],
        }

    def _attach_cookies(self, request: httpx.Request) -> None:
        cookies = self.cookie_jar.retrieve(request.url.host)
        if cookies:
            request.headers["Cookie"] = cookie_header(cookies)
        elif "Cookie" in request.headers:
            del request.headers["Cookie"]

    def _capture_cookies(self, response: httpx.Response) -> None:
        headers = response.headers.get_list("set-cookie")
        if not headers:
            return
        host = response.request.url.host
        now = time.time()
        records = [record for record in (parse_set_cookie(h, host, now) for h in headers) if record is not None]
        if records:
            self.cookie_jar.store(host, records)

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed without a response: %s", method, path, exc)
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        logger.debug("%s %s -> %s", method, path, response.status_code)
        return response

    @staticmethod
    def _wrap(response: httpx.Response) -> GatewayResponse:
        return GatewayResponse(status_code=response.status_code, body=response.text)

    @staticmethod
    def _reject(response: httpx.Response, what: str) -> ApplicationError:
        return ApplicationError(
            f"{what} rejected with HTTP {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    def fetch_favorites(self) -> FavoritesResponse:
        response = self._send("GET", "api/favorites")
        if not response.is_success:
            raise self._reject(response, "favorites request")
        try:
            return FavoritesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ApplicationError(
                f"favorites response is malformed: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def add_favorite(self, favorite_id: str) -> GatewayResponse:
        return self._wrap(self._send("GET", "api/favorites/add", params={"artistId": favorite_id}))

    def remove_favorite(self, favorite_id: str) -> GatewayResponse:
        return self._wrap(self._send("GET", "api/favorites/remove", params={"artistId": favorite_id}))

    def login(self, email: str, password: str) -> GatewayResponse:
        payload = LoginRequest(email=email, password=password).model_dump()
        return self._wrap(self._send("POST", "api/auth/login", json=payload))

    def register(self, full_name: str, email: str, password: str) -> GatewayResponse:
        payload = RegisterRequest(fullname=full_name, email=email, password=password).model_dump()
        return self._wrap(self._send("POST", "api/auth/register", json=payload))

    def fetch_user_profile(self) -> User:
        response = self._send("GET", "api/auth/profile")
        if not response.is_success:
            raise self._reject(response, "profile request")
        try:
            return UserProfileResponse.model_validate(response.json()).to_user()
        except (ValueError, ValidationError) as exc:
            raise ApplicationError(
                f"profile response is malformed: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def delete_account(self) -> GatewayResponse:
        return self._wrap(self._send("DELETE", "api/auth/delete"))

    def close(self) -> None:
        self.client.close()
