import logging
from typing import Callable, Dict, Optional

from ess_target.config import defaults
from ess_target.config.section.ess_target import ESSTargetConfig
from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.target.activity import ActivityPoller, ensure_scaling_activity_is_done
from ess_target.target.decision import calculate_direction
from ess_target.target.exception import ConfigInvalidError, TargetError, wrap_error
from ess_target.target.mixins import NodeLifecycleManager, ScalingGroupClient
from ess_target.target.scale_in import ScaleInCoordinator
from ess_target.target.types import (
    PLUGIN_NAME,
    PLUGIN_TYPE_TARGET,
    PluginInfo,
    ScaleDirection,
    ScalingAction,
    TargetStatus,
)

logger = logging.getLogger(__name__)

ScalingGroupClientFactory = Callable[[ESSTargetConfig], ScalingGroupClient]
NodeLifecycleManagerFactory = Callable[[Dict[str, str]], NodeLifecycleManager]


def _default_scaling_group_client(config: ESSTargetConfig) -> ScalingGroupClient:
    from ess_target.drivers.ess.scaling_group import ESSScalingGroupClient

    return ESSScalingGroupClient.from_config(config)


def _default_node_lifecycle_manager(config: Dict[str, str]) -> NodeLifecycleManager:
    from ess_target.cluster.nomad.lifecycle import NomadNodeLifecycleManager

    return NomadNodeLifecycleManager.from_config(config)


class ESSTargetPlugin:
    """
    Target adapter for ESS scaling groups.

    Each scale call reads the group, decides the direction and blocks until the resulting scaling activity
    completed. Calls for the same group are expected to be serialized by the caller.
    """

    def __init__(
        self,
        scaling_group_client_factory: ScalingGroupClientFactory = _default_scaling_group_client,
        node_lifecycle_manager_factory: NodeLifecycleManagerFactory = _default_node_lifecycle_manager,
        retry_interval_seconds: float = defaults.DEFAULT_RETRY_INTERVAL_SECONDS,
        retry_limit: int = defaults.DEFAULT_RETRY_LIMIT,
    ):
        self._scaling_group_client_factory = scaling_group_client_factory
        self._node_lifecycle_manager_factory = node_lifecycle_manager_factory
        self._poller = ActivityPoller(interval_seconds=retry_interval_seconds, retry_limit=retry_limit)

        self._config: Dict[str, str] = {}
        self._scaling_group_client: Optional[ScalingGroupClient] = None
        self._node_lifecycle_manager: Optional[NodeLifecycleManager] = None

    def set_config(self, config: Dict[str, str]) -> None:
        target_config = ESSTargetConfig.from_dict(config)

        self._config = dict(config)
        self._scaling_group_client = self._scaling_group_client_factory(target_config)
        self._node_lifecycle_manager = self._node_lifecycle_manager_factory(self._config)

    @staticmethod
    def plugin_info() -> PluginInfo:
        return PluginInfo(name=PLUGIN_NAME, plugin_type=PLUGIN_TYPE_TARGET)

    async def scale(self, action: ScalingAction, config: Dict[str, str]) -> None:
        # ESS has no dry-run mode
        if action.is_dry_run:
            return

        group = self._calculate_scaling_group(config)
        client = self.__get_scaling_group_client()

        try:
            status = await client.status(group)
        except TargetError as e:
            raise wrap_error("failed to describe ESS scaling group", e) from e

        num, direction = calculate_direction(status.current_count, action.count)

        try:
            if direction == ScaleDirection.IN:
                await self._scale_in(group, num, config)
            elif direction == ScaleDirection.OUT:
                await self._scale_out(group, num)
            else:
                logger.info(
                    f"scaling not required, ess_id={group.scaling_group_id} "
                    f"current_count={status.current_count} strategy_count={action.count}"
                )
        except TargetError as e:
            raise wrap_error("failed to perform scaling action", e) from e

    async def status(self, config: Dict[str, str]) -> TargetStatus:
        # an unready node pool makes the ESS call pointless, the outcome would not change
        try:
            ready = await self.__get_node_lifecycle_manager().is_pool_ready(self.__merged_config(config))
        except TargetError as e:
            raise wrap_error("failed to run Nomad node readiness check", e) from e

        if not ready:
            return TargetStatus(ready=False)

        group = self._calculate_scaling_group(config)
        try:
            status = await self.__get_scaling_group_client().status(group)
        except TargetError as e:
            raise wrap_error("failed to describe ESS scaling group", e) from e

        return TargetStatus(ready=status.stable, count=status.current_count)

    async def _scale_out(self, group: ScalingGroupRef, num: int) -> None:
        client = self.__get_scaling_group_client()

        try:
            scaling_activity_id = await client.resize(group, num)
        except TargetError as e:
            raise wrap_error("failed to scale out ESS scaling group", e) from e

        try:
            await ensure_scaling_activity_is_done(client, group, scaling_activity_id, self._poller)
        except TargetError as e:
            raise wrap_error("failed to confirm scale out ESS scaling group", e) from e

        logger.debug(f"scale_out {group}: scale out ESS scaling group confirmed")

    async def _scale_in(self, group: ScalingGroupRef, num: int, config: Dict[str, str]) -> None:
        coordinator = ScaleInCoordinator(
            self.__get_scaling_group_client(), self.__get_node_lifecycle_manager(), self._poller
        )
        await coordinator.scale_in(group, num, self.__merged_config(config))

    def _calculate_scaling_group(self, config: Dict[str, str]) -> ScalingGroupRef:
        return ScalingGroupRef.from_dict(self.__merged_config(config))

    def __merged_config(self, config: Dict[str, str]) -> Dict[str, str]:
        # per call values win over the plugin level ones
        return {**self._config, **config}

    def __get_scaling_group_client(self) -> ScalingGroupClient:
        if self._scaling_group_client is None:
            raise ConfigInvalidError("plugin is not configured, call set_config first")
        return self._scaling_group_client

    def __get_node_lifecycle_manager(self) -> NodeLifecycleManager:
        if self._node_lifecycle_manager is None:
            raise ConfigInvalidError("plugin is not configured, call set_config first")
        return self._node_lifecycle_manager
