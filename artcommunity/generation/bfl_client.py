"""
Proxy client for the external image-synthesis API (Black Forest Labs)

The client injects the service key and relays upstream responses untouched.
It never caches, transforms or retries.
"""
from dataclasses import dataclass
import httpx
from typing import Any, Optional
import logging
from artcommunity.config.settings import settings
from artcommunity.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class ProxyResponse:
    """Upstream status and decoded body"""
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BFLClient:
    """Relays generation requests to the external API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client
        Args:
            base_url: API root (defaults to settings.BFL_API_BASE_URL)
            api_key: Service key sent as ``x-key`` (defaults to settings.BFL_API_KEY)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.base_url = (base_url or settings.BFL_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.BFL_API_KEY
        self.client = httpx.AsyncClient(
            timeout=timeout or settings.BFL_TIMEOUT,
            transport=transport,
        )

    def _headers(self, with_body: bool = False) -> dict:
        headers = {"x-key": self.api_key or ""}
        if with_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def forward(self, endpoint: str, params: Any) -> ProxyResponse:
        """
        POST a generation request to ``endpoint``
        Args:
            endpoint: Path on the upstream API, e.g. ``/v1/flux-pro-1.1``
            params: Opaque JSON payload
        Returns:
            Upstream status and body
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        logger.info(f"Forwarding generation request to {url}")
        return await self._send("POST", url, json=params, headers=self._headers(with_body=True))

    async def get_result(self, request_id: str) -> ProxyResponse:
        """Fetch the result of a previously submitted generation"""
        url = f"{self.base_url}/v1/get_result"
        return await self._send("GET", url, params={"id": request_id}, headers=self._headers())

    async def _send(self, method: str, url: str, **kwargs) -> ProxyResponse:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Transport error calling {url}: {e}")
            raise UpstreamError(str(e) or e.__class__.__name__) from e
        if response.is_error:
            logger.warning(f"Upstream {method} {url} returned {response.status_code}")
        return ProxyResponse(status_code=response.status_code, body=_decode(response))

    async def aclose(self):
        await self.client.aclose()


def _decode(response: httpx.Response) -> Any:
    """JSON body when possible, raw text otherwise"""
    try:
        return response.json()
    except ValueError:
        return response.text
