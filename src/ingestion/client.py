"""
Single-GET HTTP client shared by all fetch tasks
"""
import logging
from typing import Optional

import httpx

from core.errors import FetchTimeoutError, NetworkError

logger = logging.getLogger(__name__)


class RemoteClient:
    """
    Performs one HTTP GET and returns the raw body.
    No retries here; callers decide what is worth retrying.

    The underlying httpx.AsyncClient (connection pool) is shared read-only
    by every concurrent fetch.
    """

    def __init__(
        self,
        user_agent: str,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str, timeout: Optional[float] = None) -> bytes:
        """
        GET `url` and return the body bytes.

        Raises:
            FetchTimeoutError: connect/read/pool timeout
            NetworkError: transport failure or non-2xx status
        """
        effective_timeout = timeout if timeout is not None else self.timeout
        headers = {"User-Agent": self.user_agent}

        try:
            # stream() guarantees the connection is released on every exit path
            async with self._client.stream(
                "GET", url, headers=headers, timeout=effective_timeout
            ) as response:
                body = await response.aread()
                if not response.is_success:
                    raise NetworkError(
                        f"Unexpected status {response.status_code}",
                        {"url": url, "status": response.status_code},
                    )
                return body

        except httpx.TimeoutException as e:
            raise FetchTimeoutError(
                f"Request timed out after {effective_timeout}s",
                {"url": url},
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request failed: {e}", {"url": url}) from e
