from typing import Optional

import httpx

from artsy_client.config import Settings
from artsy_client.services.cookie_jar import CookieJar
from artsy_client.services.gateway.base import GatewayResponse, NetworkGateway


def get_gateway(
    cookie_jar: CookieJar,
    client: Optional[httpx.Client] = None,
    settings: Optional[Settings] = None,
) -> NetworkGateway:
    from artsy_client.services.gateway.http import HttpGateway

    return HttpGateway(cookie_jar=cookie_jar, client=client, settings=settings)


__all__ = ["GatewayResponse", "NetworkGateway", "get_gateway"]
