"""
Time-bounded cache of the runtimes reported by the execution service.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeDescriptor:
    """A (language, version) pair the execution service can run code in"""
    language: str
    version: Optional[str]
    aliases: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, entry: Dict[str, Any]) -> "RuntimeDescriptor":
        if not isinstance(entry, dict) or not entry.get("language"):
            raise ValueError(f"Malformed runtime entry from execution service: {entry!r}")
        return cls(
            language=entry["language"],
            version=entry.get("version"),
            aliases=tuple(entry.get("aliases") or ()),
        )

    def matches(self, identifier: str) -> bool:
        return self.language == identifier


RuntimeFetcher = Callable[[], Awaitable[List[Dict[str, Any]]]]


class RuntimeCache:
    """
    Lazily refreshed runtime directory.

    Data is served from memory while younger than ``ttl`` seconds; after that
    the next ``get()`` fetches a fresh directory and replaces both the data
    and its timestamp. Fetch errors propagate to the caller.

    There is no lock: concurrent callers hitting an expired cache may both
    fetch, and the last one to finish wins.
    """

    DEFAULT_TTL_SECONDS = 60 * 60

    def __init__(
        self,
        fetcher: RuntimeFetcher,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        source: str = "execution service",
    ):
        self._fetcher = fetcher
        self.ttl = ttl
        self._clock = clock
        self._source = source
        self._data: Optional[List[RuntimeDescriptor]] = None
        self._timestamp: Optional[float] = None

    def is_valid(self) -> bool:
        if self._data is None or self._timestamp is None:
            return False
        return self._clock() - self._timestamp < self.ttl

    def invalidate(self) -> None:
        self._data = None
        self._timestamp = None

    async def get(self) -> List[RuntimeDescriptor]:
        if self.is_valid():
            logger.debug("Using cached runtimes")
            return self._data

        now = self._clock()
        logger.info(f"Fetching fresh runtimes from: {self._source}")
        raw = await self._fetcher()
        runtimes = []
        for entry in raw or []:
            try:
                runtimes.append(RuntimeDescriptor.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Skipping runtime entry: {e}")

        self._data, self._timestamp = runtimes, now
        logger.info(f"Cached {len(runtimes)} runtimes for {self.ttl:.0f}s")
        return runtimes
