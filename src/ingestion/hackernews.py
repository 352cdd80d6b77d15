"""
Ingest ids and items from the Hacker News Firebase API
"""
import asyncio
import json
import logging
import random
from typing import Awaitable, Callable, List, Optional

from pydantic import TypeAdapter, ValidationError

from core.entities import Item
from core.errors import DecodeError, ExhaustedError, NetworkError
from ingestion.base import IdSource, ItemRecord, ItemSource
from ingestion.client import RemoteClient
from services.config import RetryConfig, UpstreamConfig

logger = logging.getLogger(__name__)

_ID_LIST = TypeAdapter(List[int])


class IdListFetcher(IdSource):
    """One request, one decode, no retry."""

    def __init__(self, client: RemoteClient, upstream: UpstreamConfig):
        self.client = client
        self.upstream = upstream

    async def fetch_top_ids(self) -> List[int]:
        url = self.upstream.id_list_url
        body = await self.client.fetch(url, timeout=self.upstream.request_timeout)

        try:
            ids = _ID_LIST.validate_json(body)
        except ValidationError as e:
            raise DecodeError("Malformed id list", {"url": url, "errors": e.error_count()}) from e

        logger.info(f"Fetched {len(ids)} ids from {self.upstream.list_name}")
        return ids


class ItemFetcher(ItemSource):
    """
    Fetches one item, retrying network failures with a uniform random
    backoff until the attempt budget is spent.
    """

    def __init__(
        self,
        client: RemoteClient,
        upstream: UpstreamConfig,
        retry: RetryConfig,
        *,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.upstream = upstream
        self.retry = retry
        self._rng = rng or random.Random()
        self._sleep = sleep

    def _backoff(self) -> float:
        return self._rng.uniform(self.retry.backoff_min, self.retry.backoff_max)

    async def fetch_item(self, item_id: int) -> Item:
        url = self.upstream.item_url(item_id)
        body = await self._fetch_with_retry(item_id, url)
        return self._decode(item_id, url, body)

    async def _fetch_with_retry(self, item_id: int, url: str) -> bytes:
        last_error: Optional[NetworkError] = None

        for attempt in range(1, self.retry.max_attempts + 1):
            try:
                return await self.client.fetch(url, timeout=self.upstream.request_timeout)
            except NetworkError as e:
                last_error = e
                logger.debug(
                    f"Item {item_id}: attempt {attempt}/{self.retry.max_attempts} failed: {e}"
                )

            if attempt < self.retry.max_attempts:
                await self._sleep(self._backoff())

        raise ExhaustedError(
            f"Item {item_id}: gave up after {self.retry.max_attempts} attempts",
            attempts=self.retry.max_attempts,
            last_error=last_error,
            item_id=item_id,
        )

    def _decode(self, item_id: int, url: str, body: bytes) -> Item:
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise DecodeError("Invalid JSON", {"item_id": item_id, "url": url}) from e

        # The API answers `null` for ids it does not know
        if payload is None:
            raise DecodeError("Empty item record", {"item_id": item_id, "url": url})

        try:
            record = ItemRecord.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                "Item record failed validation",
                {"item_id": item_id, "errors": e.error_count()},
            ) from e

        return record.to_item(display_url=self.upstream.display_url(record.id))
