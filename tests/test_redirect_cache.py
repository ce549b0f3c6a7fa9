"""Regression tests for RedirectCache and the HTTP fetcher."""

from __future__ import annotations

import asyncio
import json
import unittest
from typing import Any

from aiohttp import web
from aiohttp import test_utils

from mylinkbot.redirects.cache import RedirectCache, RedirectFetcher
from mylinkbot.redirects.models import RedirectEntry, RedirectListError


class StaticFetcher:
    def __init__(self, *payloads: list[Any]) -> None:
        self.payloads = list(payloads)
        self.calls = 0

    async def fetch(self) -> list[Any]:
        payload = self.payloads[min(self.calls, len(self.payloads) - 1)]
        self.calls += 1
        return payload


class RedirectCacheTests(unittest.IsolatedAsyncioTestCase):
    """Validate load/get/find semantics."""

    async def test_starts_empty_and_loads_on_demand(self) -> None:
        cache = RedirectCache(StaticFetcher([{"redirect": "a", "name": "A"}]))
        self.assertTrue(cache.is_empty)
        self.assertEqual(cache.get(), ())

        await cache.load()

        self.assertFalse(cache.is_empty)
        self.assertEqual(cache.get(), (RedirectEntry(redirect="a", name="A"),))

    async def test_non_forced_load_keeps_cache(self) -> None:
        fetcher = StaticFetcher([{"redirect": "a"}], [{"redirect": "b"}])
        cache = RedirectCache(fetcher)

        await cache.load()
        await cache.load()

        self.assertEqual(fetcher.calls, 1)
        self.assertIsNotNone(cache.find("a"))

    async def test_forced_load_replaces_entries(self) -> None:
        fetcher = StaticFetcher([{"redirect": "a"}], [{"redirect": "b"}])
        cache = RedirectCache(fetcher)

        await cache.load()
        await cache.load(force=True)

        self.assertEqual(fetcher.calls, 2)
        self.assertIsNone(cache.find("a"))
        self.assertIsNotNone(cache.find("b"))

    async def test_empty_list_is_refetched(self) -> None:
        fetcher = StaticFetcher([], [{"redirect": "a"}])
        cache = RedirectCache(fetcher)

        await cache.load()
        self.assertTrue(cache.is_empty)
        await cache.load()

        self.assertEqual(fetcher.calls, 2)
        self.assertIsNotNone(cache.find("a"))

    async def test_invalid_entry_keeps_previous_entries(self) -> None:
        fetcher = StaticFetcher([{"redirect": "a"}], [{"name": "no key"}])
        cache = RedirectCache(fetcher)
        await cache.load()

        with self.assertRaises(RedirectListError):
            await cache.load(force=True)

        self.assertIsNotNone(cache.find("a"))

    async def test_clear(self) -> None:
        cache = RedirectCache(StaticFetcher([{"redirect": "a"}]))
        await cache.load()
        cache.clear()
        self.assertTrue(cache.is_empty)


class RedirectEntryTests(unittest.TestCase):
    def test_from_dict_carries_metadata(self) -> None:
        entry = RedirectEntry.from_dict(
            {
                "redirect": "blueprint_import",
                "name": "Import blueprint",
                "description": "Import a blueprint",
                "introduced": "2021.3",
                "component": "blueprint",
                "badge": "blueprint",
                "params": {"blueprint_url": "url"},
            }
        )
        self.assertTrue(entry.needs_form)
        self.assertEqual(entry.introduced, "2021.3")
        self.assertEqual(entry.component, "blueprint")
        self.assertFalse(entry.deprecated)

    def test_entries_are_hashable(self) -> None:
        entry = RedirectEntry.from_dict({"redirect": "p", "params": {"token": "string"}})
        same = RedirectEntry.from_dict({"redirect": "p", "params": {"token": "string"}})

        self.assertEqual(hash(entry), hash(same))
        self.assertEqual(len({entry, same}), 1)

    def test_name_defaults_to_key(self) -> None:
        self.assertEqual(RedirectEntry.from_dict({"redirect": "logs"}).name, "logs")

    def test_rejects_invalid_params(self) -> None:
        with self.assertRaises(RedirectListError):
            RedirectEntry.from_dict({"redirect": "x", "params": ["a"]})


class RedirectFetcherTests(unittest.IsolatedAsyncioTestCase):
    """Fetch against a local aiohttp server."""

    async def asyncSetUp(self) -> None:
        self.body: str = "[]"
        self.status = 200
        self.delay = 0.0

        async def handler(_: web.Request) -> web.Response:
            if self.delay:
                await asyncio.sleep(self.delay)
            return web.Response(text=self.body, status=self.status, content_type="text/plain")

        app = web.Application()
        app.router.add_get("/redirect.json", handler)
        self.server = test_utils.TestServer(app)
        await self.server.start_server()
        self.url = str(self.server.make_url("/redirect.json"))

    async def asyncTearDown(self) -> None:
        await self.server.close()

    async def test_fetch_decodes_plain_text_json(self) -> None:
        self.body = json.dumps([{"redirect": "a", "name": "A"}])

        data = await RedirectFetcher(self.url).fetch()

        self.assertEqual(data, [{"redirect": "a", "name": "A"}])

    async def test_http_error_is_wrapped(self) -> None:
        self.status = 500

        with self.assertRaises(RedirectListError):
            await RedirectFetcher(self.url).fetch()

    async def test_invalid_json_is_wrapped(self) -> None:
        self.body = "<html>"

        with self.assertRaises(RedirectListError):
            await RedirectFetcher(self.url).fetch()

    async def test_non_array_document_is_rejected(self) -> None:
        self.body = json.dumps({"redirect": "a"})

        with self.assertRaises(RedirectListError):
            await RedirectFetcher(self.url).fetch()

    async def test_timeout_is_wrapped(self) -> None:
        self.delay = 0.5

        with self.assertRaises(RedirectListError):
            await RedirectFetcher(self.url, timeout=0.05).fetch()

    async def test_cache_over_http(self) -> None:
        self.body = json.dumps([{"redirect": "integrations", "name": "Integrations"}])
        cache = RedirectCache(RedirectFetcher(self.url))

        await cache.load()

        self.assertEqual(cache.find("integrations").name, "Integrations")


if __name__ == "__main__":
    unittest.main(verbosity=2)
