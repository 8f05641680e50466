"""Shared fixtures: an in-memory module index served through httpx."""

import json
from typing import Dict, List, Optional

import httpx
import pytest

from libs.common.config import SearchConfig

INDEX_URL = "https://index.test"


PING_SOURCE = '''# meta developer: @alice
# meta banner: https://example.com/ping.png
from .. import loader, utils


@loader.tds
class PingMod(loader.Module):
    """Measures round-trip latency"""

    strings = {"name": "Ping"}
'''

PINGER_SOURCE = '''# meta developer: @bob
from .. import loader


class PingerMod(loader.Module):
    """
    Pings every chat member
    on command.
    """

    strings = {"name": "Pinger"}
'''

PIN_SOURCE = '''from .. import loader


class PinMod(loader.Module):
    strings = {}
'''


class ModuleIndexStub:
    """Serves ``repos.json``, ``full.txt`` listings and module sources.

    ``repos`` maps a repository path to ``{module_name: source}``; listings
    are rendered in insertion order.
    """

    def __init__(self, repos: Dict[str, Dict[str, str]], fail_path: Optional[str] = None):
        self.repos = repos
        self.fail_path = fail_path
        self.requested: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requested.append(path)

        if path == self.fail_path:
            return httpx.Response(503, text="unavailable")

        if path == "/repos.json":
            return httpx.Response(200, text=json.dumps([{"path": repo} for repo in self.repos]))

        for repo, modules in self.repos.items():
            if path == f"/{repo}/full.txt":
                return httpx.Response(200, text="\n".join(modules) + "\n")
            for name, source in modules.items():
                if path == f"/{repo}/{name}.py":
                    return httpx.Response(200, text=source)

        return httpx.Response(404, text="not found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def module_requests(self) -> List[str]:
        return [path for path in self.requested if path.endswith(".py")]


@pytest.fixture
def search_config():
    """Search settings pointed at the stub index."""
    return SearchConfig(ml_modules_index_url=INDEX_URL, ml_log_format="console")


@pytest.fixture
def module_index():
    """Two repositories with a handful of ``pin*`` modules."""
    return ModuleIndexStub({
        "alpha": {
            "ping": PING_SOURCE,
            "pinger": PINGER_SOURCE,
            "translate": PIN_SOURCE,
        },
        "beta": {
            "pin": PIN_SOURCE,
            "weather": PIN_SOURCE,
        },
    })


@pytest.fixture
def make_index():
    """Factory for custom index layouts."""
    return ModuleIndexStub
