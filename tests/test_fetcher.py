import asyncio
import json

import httpx
import pytest

from schema_server.errors import SnapshotInvalid, UpstreamFetchFailed
from schema_server.fetcher import FileSchemaFetcher, HttpSchemaFetcher
from schema_source.sample import sample_schema

URL = "http://upstream.test/schema"


def run_fetch(handler):
    async def scenario():
        fetcher = HttpSchemaFetcher(URL, timeout_sec=5, transport=httpx.MockTransport(handler))
        await fetcher.start()
        try:
            return await fetcher.fetch()
        finally:
            await fetcher.stop()

    return asyncio.run(scenario())


def test_http_fetch_builds_snapshot_with_etag_version():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == URL
        return httpx.Response(200, json=sample_schema(), headers={"ETag": '"abc123"'})

    snap = run_fetch(handler)
    assert snap.version == "abc123"
    assert snap.item(5021)["item_name"] == "Mann Co. Supply Crate Key"


def test_http_fetch_without_etag_uses_content_hash():
    snap = run_fetch(lambda request: httpx.Response(200, json=sample_schema()))
    assert len(snap.version) == 16


def test_http_error_status_is_upstream_failure():
    with pytest.raises(UpstreamFetchFailed, match="HTTP 503"):
        run_fetch(lambda request: httpx.Response(503, json={"error": "down"}))


def test_network_error_is_upstream_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFetchFailed):
        run_fetch(handler)


def test_undecodable_body_is_upstream_failure():
    with pytest.raises(UpstreamFetchFailed):
        run_fetch(lambda request: httpx.Response(200, content=b"<html>oops</html>"))


def test_wrong_shape_is_snapshot_invalid():
    with pytest.raises(SnapshotInvalid):
        run_fetch(lambda request: httpx.Response(200, json={"schema": {}}))


def test_wrong_shape_section_is_snapshot_invalid():
    doc = sample_schema()
    doc["schema"]["qualities"] = [6, 11]
    with pytest.raises(SnapshotInvalid, match="malformed"):
        run_fetch(lambda request: httpx.Response(200, json=doc))


def test_file_fetcher(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(sample_schema()), encoding="utf-8")
    snap = asyncio.run(FileSchemaFetcher(path).fetch())
    assert snap.item(45)["item_name"] == "Force-A-Nature"


def test_file_fetcher_failures(tmp_path):
    with pytest.raises(UpstreamFetchFailed):
        asyncio.run(FileSchemaFetcher(tmp_path / "missing.json").fetch())

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotInvalid):
        asyncio.run(FileSchemaFetcher(broken).fetch())


def test_file_fetcher_wrong_shape_section(tmp_path):
    doc = sample_schema()
    doc["schema"]["attribute_controlled_attached_particles"] = ["Burning Flames"]
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(SnapshotInvalid):
        asyncio.run(FileSchemaFetcher(path).fetch())
