"""Shared test fixtures for the compatibility engine tests."""

import asyncio
import json
from typing import Dict, List

import pytest

from caniuse_compat.config import ConfigResolver
from caniuse_compat.errors import DataUnavailableError
from caniuse_compat.matrix import CanIUseClient, SupportMatrixCache
from caniuse_compat.tools import CompatibilityTools


SUPPORT_DATA = {
    "flexbox": {"stats": {
        "chrome": {"4": "a x #1", "21": "y x", "29": "y", "37": "y"},
        "ie": {"10": "a x #2", "11": "a #2"},
    }},
    "css-grid": {"stats": {
        "chrome": {"37": "n", "57": "y"},
        "ie": {"10": "p", "11": "a x #2"},
    }},
    "css-variables": {"stats": {
        "chrome": {"37": "n", "49": "y"},
        "ie": {"11": "n"},
    }},
    "promises": {"stats": {
        "chrome": {"32": "y", "33": "y"},
        "ie": {"11": "n"},
    }},
}


class FakeFetch:
    """Stands in for the caniuse endpoint; unknown features fail like a 404"""

    def __init__(self, data: Dict):
        self.data = data
        self.calls: List[str] = []

    async def __call__(self, feature: str):
        self.calls.append(feature)
        if feature not in self.data:
            raise DataUnavailableError(feature, "Failed to fetch feature data: 404 Not Found")
        return self.data[feature]


class SlowFetch(FakeFetch):
    """Yields to the event loop mid-request, like a real network call"""

    async def __call__(self, feature: str):
        self.calls.append(feature)
        await asyncio.sleep(0.01)
        if feature not in self.data:
            raise DataUnavailableError(feature, "Failed to fetch feature data: 404 Not Found")
        return self.data[feature]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def fake_fetch() -> FakeFetch:
    return FakeFetch(SUPPORT_DATA)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(fake_fetch, clock) -> CanIUseClient:
    return CanIUseClient(SupportMatrixCache(clock=clock), fetch=fake_fetch)


@pytest.fixture
def config(tmp_path) -> ConfigResolver:
    """Config bound to an empty project dir with no environment overrides."""
    return ConfigResolver(str(tmp_path), environ={})


@pytest.fixture
def write_config(tmp_path):
    def _write(doc):
        path = tmp_path / ".caniuse-config.json"
        path.write_text(json.dumps(doc), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def tools(tmp_path, config, client) -> CompatibilityTools:
    return CompatibilityTools(str(tmp_path), config=config, client=client)
