"""
Async HTTP client for a Piston-style code execution service.
Only transport concerns live here: status errors are raised, payloads are returned as-is.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...config import PISTON_API_URL, PISTON_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class PistonClient:
    """
    Thin wrapper over the service's ``/runtimes`` and ``/execute`` endpoints.

    A fresh ``httpx.AsyncClient`` is opened per call. Pass ``transport`` to
    route requests somewhere other than the network (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = PISTON_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or PISTON_API_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def fetch_runtimes(self) -> List[Dict[str, Any]]:
        """GET {base}/runtimes. Raises httpx.HTTPError on failure."""
        async with self._client() as client:
            response = await client.get(f"{self.base_url}/runtimes")
            response.raise_for_status()
            return response.json()

    async def execute(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST {base}/execute. Raises httpx.HTTPError on failure."""
        async with self._client() as client:
            logger.debug(f"POST {self.base_url}/execute ({payload.get('language')} {payload.get('version')})")
            response = await client.post(f"{self.base_url}/execute", json=payload)
            response.raise_for_status()
            return response.json()
