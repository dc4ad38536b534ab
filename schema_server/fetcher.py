import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Protocol

import httpx

from .errors import SnapshotInvalid, UpstreamFetchFailed
from .schema import Snapshot, build_snapshot

class SnapshotFetcher(Protocol):
    async def fetch(self) -> Snapshot: ...

class HttpSchemaFetcher:
    """Download the raw schema document from an upstream HTTP source."""

    def __init__(self, upstream_url: str, timeout_sec: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.upstream_url = upstream_url
        self.timeout_sec = timeout_sec
        self._transport = transport
        self._log = logging.getLogger(__name__)
        self._client: httpx.AsyncClient | None = None

    async def start(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport)

    async def stop(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self) -> Snapshot:
        await self.start()
        assert self._client is not None
        t0 = time.time()
        status = 0
        try:
            r = await self._client.get(self.upstream_url, headers={"Accept": "application/json"})
            status = r.status_code
            if r.status_code != 200:
                raise UpstreamFetchFailed(f"Upstream returned HTTP {r.status_code}")
            raw = r.json()
            fetch_ms = int((time.time() - t0) * 1000)
            t_build = time.time()
            etag = r.headers.get("ETag")
            snap = await asyncio.to_thread(build_snapshot, raw, etag.strip('"') if etag else None)
            build_ms = int((time.time() - t_build) * 1000)
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"Upstream request failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamFetchFailed(f"Upstream document could not be decoded: {e}") from e

        self._log.info(
            "fetch",
            extra={
                "event": "fetch.run",
                "extra_fields": {
                    "url": self.upstream_url,
                    "status": status,
                    "fetch_ms": fetch_ms,
                    "build_ms": build_ms,
                    "version": snap.version,
                    "items": len(snap.items_by_defindex),
                },
            },
        )
        return snap

class FileSchemaFetcher:
    """Load the raw schema document from a local JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._log = logging.getLogger(__name__)

    async def start(self):
        pass

    async def stop(self):
        pass

    def _load(self) -> Snapshot:
        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        return build_snapshot(raw)

    async def fetch(self) -> Snapshot:
        try:
            snap = await asyncio.to_thread(self._load)
        except OSError as e:
            raise UpstreamFetchFailed(f"Cannot read schema file {self.path}: {e}") from e
        except ValueError as e:
            raise SnapshotInvalid(f"Schema file {self.path} is malformed: {e!r}") from e
        self._log.info(
            "fetch",
            extra={"event": "fetch.run", "extra_fields": {"path": str(self.path), "version": snap.version}},
        )
        return snap
