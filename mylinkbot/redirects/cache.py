"""Fetch and cache the remote redirect list."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

import aiohttp
from loguru import logger

from mylinkbot.redirects.models import RedirectEntry, RedirectListError

DEFAULT_REDIRECTS_URL = (
    "https://raw.githubusercontent.com/home-assistant/my.home-assistant.io/main/redirect.json"
)
DEFAULT_FETCH_TIMEOUT = 10.0


class Fetcher(Protocol):
    async def fetch(self) -> list[Any]: ...


class RedirectFetcher:
    """Downloads the redirect list JSON document."""

    def __init__(self, url: str = DEFAULT_REDIRECTS_URL, timeout: float = DEFAULT_FETCH_TIMEOUT):
        self.url = url
        self.timeout = timeout

    async def fetch(self) -> list[Any]:
        """GET the list and return the decoded JSON array."""
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.get(self.url) as response:
                    response.raise_for_status()
                    # raw.githubusercontent.com serves JSON as text/plain
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RedirectListError(f"Failed to fetch redirect list from {self.url}: {e}") from e
        except json.JSONDecodeError as e:
            raise RedirectListError(f"Redirect list at {self.url} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise RedirectListError(
                f"Redirect list must be a JSON array, got {type(data).__name__}"
            )
        return data


class RedirectCache:
    """In-memory redirect list, replaced wholesale on every fetch."""

    def __init__(self, fetcher: Fetcher | None = None):
        self._fetcher = fetcher or RedirectFetcher()
        self._entries: tuple[RedirectEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self._entries

    async def load(self, force: bool = False) -> None:
        """Fetch the list when forced or when nothing is cached yet."""
        if not force and self._entries:
            return

        raw = await self._fetcher.fetch()
        entries = tuple(RedirectEntry.from_dict(item) for item in raw)
        self._entries = entries
        logger.info(f"Loaded {len(entries)} redirects (force={force})")

    def get(self) -> tuple[RedirectEntry, ...]:
        return self._entries

    def find(self, key: str) -> RedirectEntry | None:
        """Return the first entry with the given key, in list order."""
        for entry in self._entries:
            if entry.redirect == key:
                return entry
        return None

    def clear(self) -> None:
        self._entries = ()
