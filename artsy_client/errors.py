from typing import Optional


class ArtsyClientError(Exception):
    pass


class GatewayError(ArtsyClientError):
    pass


class TransportError(GatewayError):
    """The request never produced a response (offline, DNS, timeout)."""


class ApplicationError(GatewayError):
    """A well-formed response that rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code in {401, 403}


class AuthenticationError(ApplicationError):
    pass


class CookieDecodeError(ArtsyClientError):
    pass
