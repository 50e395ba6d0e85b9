import abc
from typing import Dict, List

from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.target.types import GroupStatus, InstanceRecord, NodeRemovalSelection


class ScalingGroupClient:
    """
    Remote capability interface for one cloud's scaling groups.

    Every method is a single remote call, retries belong to the caller. Mutating calls return the id of the
    asynchronous scaling activity they started.
    """

    @abc.abstractmethod
    async def status(self, group: ScalingGroupRef) -> GroupStatus:
        """Raises NotFoundError unless exactly one group matches."""
        raise NotImplementedError()

    @abc.abstractmethod
    async def list_instances(self, group: ScalingGroupRef) -> List[InstanceRecord]:
        raise NotImplementedError()

    @abc.abstractmethod
    async def resize(self, group: ScalingGroupRef, total_capacity: int) -> str:
        """Sets the absolute total capacity of the group."""
        raise NotImplementedError()

    @abc.abstractmethod
    async def delete_instances(self, group: ScalingGroupRef, instance_ids: List[str]) -> str:
        raise NotImplementedError()

    @abc.abstractmethod
    async def scaling_activity_status(self, group: ScalingGroupRef, scaling_activity_id: str) -> bool:
        """True once the activity progress reaches 100, raises NotFoundError unless exactly one activity matches."""
        raise NotImplementedError()


class NodeLifecycleManager:
    """
    Cluster side of a scale in: knows which nodes run on which remote instances and how to drain them.
    """

    @abc.abstractmethod
    async def is_pool_ready(self, config: Dict[str, str]) -> bool:
        raise NotImplementedError()

    @abc.abstractmethod
    async def select_and_drain(
        self, config: Dict[str, str], remote_ids: List[str], num: int
    ) -> NodeRemovalSelection:
        """
        Select exactly num nodes among those running on remote_ids and drain them.

        Raises if fewer than num nodes can be drained safely.
        """
        raise NotImplementedError()

    @abc.abstractmethod
    async def notify_removed(self, config: Dict[str, str], selection: NodeRemovalSelection) -> None:
        """Called after the instances in selection were removed from the scaling group."""
        raise NotImplementedError()
