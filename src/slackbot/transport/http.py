"""
HTTP client for the Slack Web API.
"""

from typing import Any, Optional

import httpx

from slackbot.errors import TransportError

DEFAULT_BASE_URL = "https://slack.com/api"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "slackbot-rtm/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> bytes:
        """GET ``path`` and return the raw body. Anything but a 200 is a TransportError."""
        try:
            resp = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {path} failed: {e}") from e
        if resp.status_code != 200:
            raise TransportError(
                f"Request to {path} failed with code {resp.status_code}",
                details={"status_code": resp.status_code},
            )
        return resp.content

    async def close(self) -> None:
        await self._client.aclose()
