import asyncio
import itertools

import pytest

from schema_server.errors import UpstreamFetchFailed
from schema_server.schema import build_snapshot
from schema_source.sample import sample_schema


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StaticFetcher:
    """Returns a fresh sample snapshot with an increasing version on every fetch."""

    def __init__(self, delay_sec: float = 0.0):
        self.delay_sec = delay_sec
        self.calls = 0
        self._versions = itertools.count(1)

    async def fetch(self):
        self.calls += 1
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        return build_snapshot(sample_schema(), version=f"v{next(self._versions)}")


class GatedFetcher(StaticFetcher):
    """Blocks every fetch until `release` is set. Build it inside the running loop."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch(self):
        self.entered.set()
        await self.release.wait()
        return await super().fetch()


class FlakyFetcher(StaticFetcher):
    """Fails the first `failures` fetches, then succeeds."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures

    async def fetch(self):
        if self.failures > 0:
            self.failures -= 1
            self.calls += 1
            raise UpstreamFetchFailed("upstream unavailable")
        return await super().fetch()


class MalformedFetcher(StaticFetcher):
    """Builds from a document whose qualities section is a list for the first `bad` fetches."""

    def __init__(self, bad: int):
        super().__init__()
        self.bad = bad

    async def fetch(self):
        if self.bad > 0:
            self.bad -= 1
            self.calls += 1
            doc = sample_schema()
            doc["schema"]["qualities"] = [6, 11]
            return build_snapshot(doc)
        return await super().fetch()


@pytest.fixture
def raw():
    return sample_schema()


@pytest.fixture
def snapshot(raw):
    return build_snapshot(raw, version="v1")


@pytest.fixture
def clock():
    return FakeClock()
