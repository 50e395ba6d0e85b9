import logging
from typing import Any, Awaitable, Callable, List, TypeVar

from alibabacloud_ess20220222 import models as ess_models

from ess_target.config.section.ess_target import ESSTargetConfig
from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.drivers.ess.client import create_ess_client
from ess_target.target.exception import NotFoundError, RemoteAPIError
from ess_target.target.mixins import ScalingGroupClient
from ess_target.target.types import GroupLifecycleState, GroupStatus, InstanceRecord

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPE_TOTAL_CAPACITY = "TotalCapacity"
ACTIVITY_PROGRESS_DONE = 100

R = TypeVar("R")


class ESSScalingGroupClient(ScalingGroupClient):
    """Alibaba Cloud ESS implementation of the scaling group capabilities, one SDK call per method."""

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_config(cls, config: ESSTargetConfig) -> "ESSScalingGroupClient":
        return cls(create_ess_client(config))

    async def status(self, group: ScalingGroupRef) -> GroupStatus:
        request = ess_models.DescribeScalingGroupsRequest(
            region_id=group.region, scaling_group_ids=[group.scaling_group_id]
        )
        response = await self.__call("DescribeScalingGroups", self._client.describe_scaling_groups_async, request)

        body = response.body
        if (body.total_count or 0) != 1 or not body.scaling_groups:
            raise NotFoundError(f"required scaling group id {group.scaling_group_id} not found")

        scaling_group = body.scaling_groups[0]
        return GroupStatus(
            stable=scaling_group.lifecycle_state == GroupLifecycleState.Active,
            current_count=scaling_group.total_capacity or 0,
        )

    async def list_instances(self, group: ScalingGroupRef) -> List[InstanceRecord]:
        request = ess_models.DescribeScalingInstancesRequest(
            region_id=group.region, scaling_group_id=group.scaling_group_id
        )
        response = await self.__call(
            "DescribeScalingInstances", self._client.describe_scaling_instances_async, request
        )

        return [
            InstanceRecord(
                instance_id=instance.instance_id,
                health_status=instance.health_status or "",
                lifecycle_state=instance.lifecycle_state or "",
            )
            for instance in response.body.scaling_instances or []
        ]

    async def resize(self, group: ScalingGroupRef, total_capacity: int) -> str:
        request = ess_models.ScaleWithAdjustmentRequest(
            scaling_group_id=group.scaling_group_id,
            adjustment_type=ADJUSTMENT_TYPE_TOTAL_CAPACITY,
            adjustment_value=total_capacity,
        )
        response = await self.__call("ScaleWithAdjustment", self._client.scale_with_adjustment_async, request)
        return self.__scaling_activity_id("ScaleWithAdjustment", response)

    async def delete_instances(self, group: ScalingGroupRef, instance_ids: List[str]) -> str:
        request = ess_models.RemoveInstancesRequest(
            scaling_group_id=group.scaling_group_id, instance_ids=list(instance_ids)
        )
        response = await self.__call("RemoveInstances", self._client.remove_instances_async, request)
        return self.__scaling_activity_id("RemoveInstances", response)

    async def scaling_activity_status(self, group: ScalingGroupRef, scaling_activity_id: str) -> bool:
        request = ess_models.DescribeScalingActivitiesRequest(
            region_id=group.region,
            scaling_group_id=group.scaling_group_id,
            scaling_activity_ids=[scaling_activity_id],
        )
        response = await self.__call(
            "DescribeScalingActivities", self._client.describe_scaling_activities_async, request
        )

        body = response.body
        if (body.total_count or 0) != 1 or not body.scaling_activities:
            raise NotFoundError(f"required scaling activity id {scaling_activity_id} not found")

        progress = body.scaling_activities[0].progress or 0
        logger.debug(f"scaling activity {scaling_activity_id} of {group} at {progress}%")
        return progress == ACTIVITY_PROGRESS_DONE

    @staticmethod
    async def __call(operation: str, method: Callable[[Any], Awaitable[R]], request: Any) -> R:
        try:
            return await method(request)
        except Exception as e:
            raise RemoteAPIError(f"{operation} failed: {e}") from e

    @staticmethod
    def __scaling_activity_id(operation: str, response: Any) -> str:
        scaling_activity_id = response.body.scaling_activity_id
        if not scaling_activity_id:
            raise RemoteAPIError(f"{operation} did not return a scaling activity id")
        return scaling_activity_id
