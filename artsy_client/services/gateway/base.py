from abc import ABC, abstractmethod
from dataclasses import dataclass

from artsy_client.schemas import FavoritesResponse, User


@dataclass
class GatewayResponse:
    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class NetworkGateway(ABC):
    """Remote API operations consumed by the session core.

    Every method raises ``TransportError`` when no response arrives.
    ``fetch_favorites`` and ``fetch_user_profile`` raise ``ApplicationError``
    on a rejected or undecodable response; the others return the raw
    ``GatewayResponse`` and leave the success check to the caller.
    """

    @abstractmethod
    def fetch_favorites(self) -> FavoritesResponse:
        raise NotImplementedError

    @abstractmethod
    def add_favorite(self, favorite_id: str) -> GatewayResponse:
        raise NotImplementedError

    @abstractmethod
    def remove_favorite(self, favorite_id: str) -> GatewayResponse:
        raise NotImplementedError

    @abstractmethod
    def login(self, email: str, password: str) -> GatewayResponse:
        raise NotImplementedError

    @abstractmethod
    def register(self, full_name: str, email: str, password: str) -> GatewayResponse:
        raise NotImplementedError

    @abstractmethod
    def fetch_user_profile(self) -> User:
        raise NotImplementedError

    @abstractmethod
    def delete_account(self) -> GatewayResponse:
        raise NotImplementedError

    def close(self) -> None:
        return None
