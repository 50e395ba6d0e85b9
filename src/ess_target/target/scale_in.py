import logging
from typing import Dict, List

from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.target.activity import ActivityPoller, ensure_scaling_activity_is_done
from ess_target.target.exception import PostScaleInFailedError, PreScaleInFailedError, TargetError, wrap_error
from ess_target.target.mixins import NodeLifecycleManager, ScalingGroupClient
from ess_target.target.types import InstanceRecord

logger = logging.getLogger(__name__)


class ScaleInCoordinator:
    """
    Shrinks a scaling group by a number of instances.

    Nodes are drained before their instances are removed, and the node lifecycle manager is told about the removal
    only once the remove activity completed. A failure at any step stops the sequence.
    """

    def __init__(
        self,
        scaling_group_client: ScalingGroupClient,
        node_lifecycle_manager: NodeLifecycleManager,
        poller: ActivityPoller,
    ):
        self._scaling_group_client = scaling_group_client
        self._node_lifecycle_manager = node_lifecycle_manager
        self._poller = poller

    async def scale_in(self, group: ScalingGroupRef, num: int, config: Dict[str, str]) -> None:
        try:
            instances = await self._scaling_group_client.list_instances(group)
        except TargetError as e:
            raise wrap_error("failed to list ESS scaling group instances", e) from e

        remote_ids = self.__filter_removable(group, instances)

        try:
            selection = await self._node_lifecycle_manager.select_and_drain(config, remote_ids, num)
        except TargetError as e:
            raise PreScaleInFailedError(f"failed to perform pre-scale Nomad scale in tasks: {e.message}") from e

        instance_ids = [node.remote_resource_id for node in selection]
        logger.debug(f"scale_in {group}: deleting ESS scaling group instances {instance_ids}")

        try:
            scaling_activity_id = await self._scaling_group_client.delete_instances(group, instance_ids)
        except TargetError as e:
            raise wrap_error("failed to delete instances", e) from e

        logger.info(f"scale_in {group}: successfully started remove instances activity {scaling_activity_id}")

        try:
            await ensure_scaling_activity_is_done(self._scaling_group_client, group, scaling_activity_id, self._poller)
        except TargetError as e:
            raise wrap_error("failed to confirm scale in ESS scaling group", e) from e

        logger.debug(f"scale_in {group}: scale in ESS scaling group confirmed")

        try:
            await self._node_lifecycle_manager.notify_removed(config, selection)
        except TargetError as e:
            logger.warning(f"scale_in {group}: instances {instance_ids} removed but post-scale tasks failed: {e}")
            raise PostScaleInFailedError(f"failed to perform post-scale Nomad scale in tasks: {e.message}") from e

    @staticmethod
    def __filter_removable(group: ScalingGroupRef, instances: List[InstanceRecord]) -> List[str]:
        remote_ids = []
        for instance in instances:
            if instance.is_removable():
                logger.debug(f"scale_in {group}: found healthy instance {instance.instance_id}")
                remote_ids.append(instance.instance_id)
            else:
                logger.debug(
                    f"scale_in {group}: skipping instance {instance.instance_id}, "
                    f"health_status={instance.health_status} lifecycle_state={instance.lifecycle_state}"
                )

        return remote_ids
