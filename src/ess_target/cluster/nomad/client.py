import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ess_target.config import defaults
from ess_target.config.section.nomad import NomadConfig
from ess_target.target.exception import NotFoundError, RemoteAPIError

logger = logging.getLogger(__name__)

NODE_STATUS_INIT = "initializing"
NODE_STATUS_READY = "ready"
NODE_SCHEDULING_ELIGIBLE = "eligible"

NANOSECONDS_PER_SECOND = 1_000_000_000


class NomadClient:
    """
    Minimal async client for the parts of the Nomad HTTP API used when scaling a node pool.

    Use as an async context manager, the underlying session lives for one invocation only:

        async with NomadClient(config) as nomad:
            nodes = await nomad.list_nodes()
    """

    def __init__(self, config: NomadConfig, timeout_seconds: float = defaults.DEFAULT_NOMAD_REQUEST_TIMEOUT_SECONDS):
        self._config = config
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "NomadClient":
        headers = {}
        if self._config.token:
            headers["X-Nomad-Token"] = self._config.token

        self._session = aiohttp.ClientSession(headers=headers, timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def list_nodes(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/v1/nodes")

    async def get_node(self, node_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/node/{node_id}")

    async def list_node_allocations(self, node_id: str) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/v1/node/{node_id}/allocations")

    async def drain_node(self, node_id: str, deadline_seconds: float, ignore_system_jobs: bool) -> Dict[str, Any]:
        body = {
            "NodeID": node_id,
            "DrainSpec": {
                "Deadline": int(deadline_seconds * NANOSECONDS_PER_SECOND),
                "IgnoreSystemJobs": ignore_system_jobs,
            },
            "MarkEligible": False,
        }
        return await self._request("POST", f"/v1/node/{node_id}/drain", body)

    async def purge_node(self, node_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/v1/node/{node_id}/purge")

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        if self._session is None:
            raise RuntimeError("NomadClient must be used as an async context manager")

        params = {}
        if self._config.region:
            params["region"] = self._config.region
        if self._config.namespace:
            params["namespace"] = self._config.namespace

        url = f"{self._config.address}{path}"
        try:
            async with self._session.request(method, url, params=params, json=body) as response:
                if response.status == 404:
                    raise NotFoundError(f"Nomad {method} {path} returned 404: {await response.text()}")
                if response.status >= 400:
                    raise RemoteAPIError(f"Nomad {method} {path} returned {response.status}: {await response.text()}")

                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise RemoteAPIError(f"Nomad {method} {path} timed out after {self._timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise RemoteAPIError(f"Nomad {method} {path} failed: {e}") from e
