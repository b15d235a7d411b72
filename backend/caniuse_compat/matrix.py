"""
Support Matrix Lookup

Fetches per-feature support matrices from caniuse, caches them for a fixed
time-to-live, and picks the support code for a browser/version pair.
"""

import asyncio
import logging
import re
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import aiohttp

from .errors import DataUnavailableError

logger = logging.getLogger(__name__)


CANIUSE_URL = "https://caniuse.com/process/get_feat_data.php"
DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_TIMEOUT_SECONDS = 30

# leading numeric prefix, e.g. "15.2-15.3" -> 15.2, "TP" -> no match
_NUMERIC_PREFIX = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")

FeatureRecord = Dict[str, Any]
Fetcher = Callable[[str], Awaitable[FeatureRecord]]


def parse_version(version: Any) -> Optional[float]:
    """Numeric value of a version string, or None for "latest", "TP", etc."""
    if version is None:
        return None
    match = _NUMERIC_PREFIX.match(str(version))
    if not match:
        return None
    return float(match.group(1))


def get_version_support_code(
    matrix: Mapping[str, Mapping[str, str]],
    browser: str,
    version: str,
    fallback_versions: Sequence[str] = (),
) -> Optional[str]:
    """Support code for browser/version, or None when nothing applies.

    Lookup order, first hit wins:
      1. exact version
      2. configured fallback versions, in order
      3. greatest numeric version <= the target (numeric targets only)
      4. lowest numeric version available
    """
    versions = (matrix or {}).get(browser)
    if not versions:
        return None

    code = versions.get(version)
    if code:
        return code

    for fallback in fallback_versions:
        code = versions.get(fallback)
        if code:
            return code

    numeric: List[Tuple[float, str]] = []
    for key in versions:
        value = parse_version(key)
        if value is not None:
            numeric.append((value, key))
    numeric.sort(key=lambda item: item[0])

    target = parse_version(version)
    if target is not None:
        closest = None
        for value, key in numeric:
            if value > target:
                break
            closest = key
        if closest is not None and versions.get(closest):
            return versions[closest]

    if numeric:
        lowest = numeric[0][1]
        if versions.get(lowest):
            return versions[lowest]

    return None


class SupportMatrixCache:
    """Per-feature records with a fixed lifetime; expiry is checked on read"""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[float, FeatureRecord]] = {}

    def get(self, key: str) -> Optional[FeatureRecord]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, record = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return record

    def put(self, key: str, record: FeatureRecord):
        self._entries[key] = (self.clock(), record)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class CanIUseClient:
    """Read-only client for caniuse feature support data"""

    def __init__(
        self,
        cache: Optional[SupportMatrixCache] = None,
        fetch: Optional[Fetcher] = None,
        base_url: str = CANIUSE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.cache = cache if cache is not None else SupportMatrixCache()
        self.base_url = base_url
        self.timeout = timeout
        self._fetch = fetch or self._fetch_remote
        self._pending: Dict[str, "asyncio.Future[FeatureRecord]"] = {}

    async def get_feature_data(self, feature: str) -> FeatureRecord:
        """Feature record (with a "stats" matrix), served from cache when fresh"""
        cached = self.cache.get(feature)
        if cached is not None:
            return cached

        # concurrent callers for the same feature share one fetch
        pending = self._pending.get(feature)
        if pending is None:
            pending = asyncio.ensure_future(self._load(feature))
            self._pending[feature] = pending
        return await asyncio.shield(pending)

    async def _load(self, feature: str) -> FeatureRecord:
        try:
            record = await self._fetch(feature)
            if not record:
                raise DataUnavailableError(feature, f"No data found for feature: {feature}")
            self.cache.put(feature, record)
            return record
        finally:
            self._pending.pop(feature, None)

    async def get_support_matrix(self, feature: str) -> Dict[str, Dict[str, str]]:
        record = await self.get_feature_data(feature)
        return record.get("stats") or {}

    async def _fetch_remote(self, feature: str) -> FeatureRecord:
        """Fetch from the caniuse support-data endpoint"""
        params = {"type": "support-data", "feat": feature}
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.base_url, params=params) as response:
                    if response.status != 200:
                        raise DataUnavailableError(
                            feature,
                            f"Failed to fetch feature data: {response.status} {response.reason}",
                        )
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Fetching %s from caniuse failed: %s", feature, e)
            raise DataUnavailableError(feature, str(e) or type(e).__name__) from e

        if not data:
            raise DataUnavailableError(feature, f"No data found for feature: {feature}")

        logger.debug("Fetched caniuse data for %s", feature)
        return data[0] if isinstance(data, list) else data
