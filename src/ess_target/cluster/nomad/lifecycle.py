import logging
import math
from typing import Any, Dict, List, Set

from ess_target.cluster.nomad.client import (
    NODE_SCHEDULING_ELIGIBLE,
    NODE_STATUS_INIT,
    NODE_STATUS_READY,
    NomadClient,
)
from ess_target.cluster.nomad.node_selector import Node, needs_allocations, select_nodes
from ess_target.config import defaults
from ess_target.config.section.nomad import ClusterScalingConfig, NomadConfig
from ess_target.target.activity import ActivityPoller
from ess_target.target.exception import (
    AttributeNotFoundError,
    PostScaleInFailedError,
    PreScaleInFailedError,
    TargetError,
    wrap_error,
)
from ess_target.target.mixins import NodeLifecycleManager
from ess_target.target.types import NodeRemovalSelection, NodeResourceID

logger = logging.getLogger(__name__)

# node attribute holding the ESS instance identity of a Nomad client
NODE_HOSTNAME_ATTRIBUTE = "unique.hostname"


def ess_node_id_map(node: Node) -> str:
    """Identifies the ESS instance of a Nomad node."""
    attributes = node.get("Attributes") or {}
    if NODE_HOSTNAME_ATTRIBUTE not in attributes:
        raise AttributeNotFoundError(f'attribute "{NODE_HOSTNAME_ATTRIBUTE}" not found')
    return attributes[NODE_HOSTNAME_ATTRIBUTE]


def is_node_in_pool(node: Node, config: ClusterScalingConfig) -> bool:
    if config.node_class is not None and node.get("NodeClass") != config.node_class:
        return False
    if config.datacenter is not None and node.get("Datacenter") != config.datacenter:
        return False
    if config.node_pool is not None and node.get("NodePool") != config.node_pool:
        return False
    return True


def _is_draining(node: Node) -> bool:
    return bool(node.get("Drain")) or node.get("DrainStrategy") is not None


class NomadNodeLifecycleManager(NodeLifecycleManager):
    """Scale in tasks for the Nomad node pool running on an ESS scaling group."""

    def __init__(
        self,
        nomad_config: NomadConfig,
        drain_poll_interval_seconds: float = defaults.DEFAULT_NODE_DRAIN_POLL_INTERVAL_SECONDS,
        request_timeout_seconds: float = defaults.DEFAULT_NOMAD_REQUEST_TIMEOUT_SECONDS,
    ):
        self._nomad_config = nomad_config
        self._drain_poll_interval_seconds = drain_poll_interval_seconds
        self._request_timeout_seconds = request_timeout_seconds

    @classmethod
    def from_config(cls, config: Dict[str, str]) -> "NomadNodeLifecycleManager":
        return cls(NomadConfig.from_dict(config))

    async def is_pool_ready(self, config: Dict[str, str]) -> bool:
        scaling_config = ClusterScalingConfig.from_dict(config)

        async with NomadClient(self._nomad_config, self._request_timeout_seconds) as nomad:
            nodes = await nomad.list_nodes()

        for node in nodes:
            if not is_node_in_pool(node, scaling_config):
                continue

            if node.get("Status") == NODE_STATUS_INIT or _is_draining(node):
                logger.debug(f"node pool not ready, node {node['ID']} status={node.get('Status')}")
                return False

        return True

    async def select_and_drain(
        self, config: Dict[str, str], remote_ids: List[str], num: int
    ) -> NodeRemovalSelection:
        scaling_config = ClusterScalingConfig.from_dict(config)
        candidates = set(remote_ids)

        async with NomadClient(self._nomad_config, self._request_timeout_seconds) as nomad:
            nodes = await self.__find_candidate_nodes(nomad, scaling_config, candidates)

            allocations: Dict[str, List[Dict[str, Any]]] = {}
            if needs_allocations(scaling_config.node_selector_strategy):
                for node in nodes:
                    allocations[node["ID"]] = await nomad.list_node_allocations(node["ID"])

            selected = select_nodes(scaling_config.node_selector_strategy, nodes, allocations, num)
            if len(selected) < num:
                raise PreScaleInFailedError(
                    f"failed to identify enough nodes for removal, wanted {num} found {len(selected)} "
                    f"using strategy {scaling_config.node_selector_strategy}"
                )

            selection = [
                NodeResourceID(node_id=node["ID"], remote_resource_id=node["RemoteResourceID"]) for node in selected
            ]
            await self.__drain_nodes(nomad, scaling_config, selection)

        return selection

    async def notify_removed(self, config: Dict[str, str], selection: NodeRemovalSelection) -> None:
        scaling_config = ClusterScalingConfig.from_dict(config)
        if not scaling_config.node_purge:
            logger.debug(f"node purge disabled, leaving {len(selection)} removed nodes to Nomad garbage collection")
            return

        async with NomadClient(self._nomad_config, self._request_timeout_seconds) as nomad:
            for node in selection:
                try:
                    await nomad.purge_node(node.node_id)
                except TargetError as e:
                    raise PostScaleInFailedError(f"failed to purge node {node.node_id}: {e.message}") from e

                logger.info(f"purged Nomad node {node.node_id} of ESS instance {node.remote_resource_id}")

    async def __find_candidate_nodes(
        self, nomad: NomadClient, scaling_config: ClusterScalingConfig, candidates: Set[str]
    ) -> List[Node]:
        nodes = []
        for stub in await nomad.list_nodes():
            if not is_node_in_pool(stub, scaling_config):
                continue

            if (
                stub.get("Status") != NODE_STATUS_READY
                or stub.get("SchedulingEligibility") != NODE_SCHEDULING_ELIGIBLE
                or _is_draining(stub)
            ):
                logger.debug(f"skipping node {stub['ID']}, not ready or not eligible")
                continue

            node = await nomad.get_node(stub["ID"])
            try:
                remote_id = ess_node_id_map(node)
            except AttributeNotFoundError as e:
                raise wrap_error(f"failed to identify remote resource of node {stub['ID']}", e) from e

            if remote_id not in candidates:
                logger.debug(f"skipping node {stub['ID']}, instance {remote_id} is not a removal candidate")
                continue

            nodes.append({**stub, "RemoteResourceID": remote_id})

        return nodes

    async def __drain_nodes(
        self, nomad: NomadClient, scaling_config: ClusterScalingConfig, selection: NodeRemovalSelection
    ) -> None:
        for node in selection:
            logger.info(f"draining Nomad node {node.node_id} of ESS instance {node.remote_resource_id}")
            await nomad.drain_node(
                node.node_id,
                deadline_seconds=scaling_config.node_drain_deadline_seconds,
                ignore_system_jobs=scaling_config.node_drain_ignore_system_jobs,
            )

        budget_seconds = scaling_config.node_drain_deadline_seconds + defaults.DEFAULT_NODE_DRAIN_GRACE_SECONDS
        poller = ActivityPoller(
            interval_seconds=self._drain_poll_interval_seconds,
            retry_limit=max(1, math.ceil(budget_seconds / max(self._drain_poll_interval_seconds, 1))),
        )

        pending = {node.node_id for node in selection}

        async def check() -> bool:
            for node_id in sorted(pending):
                node = await nomad.get_node(node_id)
                if not _is_draining(node):
                    logger.debug(f"drain of Nomad node {node_id} complete")
                    pending.discard(node_id)
            return not pending

        try:
            await poller.wait_until_done(check, description="node drain")
        except TargetError as e:
            raise PreScaleInFailedError(f"failed to drain nodes {sorted(pending)}: {e.message}") from e
