"""Tests for the module index client."""

import httpx
import pytest
from prometheus_client import CollectorRegistry

from app.retrievers.index_client import (
    Candidate,
    ModuleIndexClient,
    ModuleIndexError,
    Repository,
    parse_listing,
)
from libs.common.metrics import MetricsCollector


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_urls_encode_each_segment():
    client = ModuleIndexClient("https://index.test/", httpx.AsyncClient())

    assert client.repos_url() == "https://index.test/repos.json"
    assert client.listing_url("/user/my repo/") == "https://index.test/user/my%20repo/full.txt"
    assert client.module_url("user/my repo", "a b?") == "https://index.test/user/my%20repo/a%20b%3F.py"


def test_parse_listing_skips_blank_lines_and_carriage_returns():
    repo = Repository(path="alpha")

    candidates = parse_listing(repo, "ping\r\n\r\n  pinger \n\n")

    assert candidates == [
        Candidate(repo_path="alpha", module_name="ping"),
        Candidate(repo_path="alpha", module_name="pinger"),
    ]


@pytest.mark.asyncio
async def test_fetch_candidates_flattens_in_repository_order(module_index):
    async with module_index.client() as http_client:
        client = ModuleIndexClient("https://index.test", http_client)
        repositories = await client.fetch_repositories()
        candidates = await client.fetch_candidates(repositories)

    assert repositories == [Repository("alpha"), Repository("beta")]
    assert [(c.repo_path, c.module_name) for c in candidates] == [
        ("alpha", "ping"),
        ("alpha", "pinger"),
        ("alpha", "translate"),
        ("beta", "pin"),
        ("beta", "weather"),
    ]


@pytest.mark.asyncio
async def test_fetch_module_source(module_index):
    async with module_index.client() as http_client:
        client = ModuleIndexClient("https://index.test", http_client)
        source = await client.fetch_module_source("alpha", "ping")

    assert "class PingMod(loader.Module):" in source
    assert module_index.requested == ["/alpha/ping.py"]


@pytest.mark.asyncio
async def test_error_status_raises(make_index):
    index = make_index({"alpha": {"ping": ""}}, fail_path="/alpha/full.txt")

    async with index.client() as http_client:
        client = ModuleIndexClient("https://index.test", http_client)
        with pytest.raises(ModuleIndexError) as exc_info:
            await client.fetch_candidates([Repository("alpha")])

    assert "503" in str(exc_info.value)
    assert exc_info.value.url == "https://index.test/alpha/full.txt"


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as http_client:
        client = ModuleIndexClient("https://index.test", http_client)
        with pytest.raises(ModuleIndexError, match="connection refused"):
            await client.fetch_repositories()


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["not json", '{"path": "alpha"}', '[{"name": "alpha"}]'])
async def test_malformed_repository_list_raises(body):
    async with _client(lambda request: httpx.Response(200, text=body)) as http_client:
        client = ModuleIndexClient("https://index.test", http_client)
        with pytest.raises(ModuleIndexError):
            await client.fetch_repositories()


@pytest.mark.asyncio
async def test_fetches_are_counted(module_index):
    registry = CollectorRegistry()
    collector = MetricsCollector("test-service", registry=registry)

    async with module_index.client() as http_client:
        client = ModuleIndexClient("https://index.test", http_client, collector)
        await client.fetch_candidates(await client.fetch_repositories())
        with pytest.raises(ModuleIndexError):
            await client.fetch_module_source("alpha", "missing")

    def sample(kind, outcome):
        return registry.get_sample_value(
            "module_index_fetches_total", {"kind": kind, "outcome": outcome}
        )

    assert sample("repos", "ok") == 1.0
    assert sample("listing", "ok") == 2.0
    assert sample("module", "error") == 1.0
