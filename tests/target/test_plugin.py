import unittest
from unittest import mock

from ess_target.cluster.nomad.lifecycle import NomadNodeLifecycleManager
from ess_target.target.exception import (
    ActivityTimeoutError,
    ConfigInvalidError,
    NotFoundError,
    PreScaleInFailedError,
    RemoteAPIError,
)
from ess_target.target.plugin import ESSTargetPlugin
from ess_target.target.types import DRY_RUN_COUNT, InstanceRecord, PluginInfo, ScalingAction, TargetStatus
from ess_target.utility.logging.utility import setup_logger
from tests.target.fleet_simulator import RecordingNodeLifecycleManager, SimulatedScalingGroupClient, healthy_instances
from tests.utility.utility import logging_test_name

PLUGIN_CONFIG = {"accessKeyId": "ak", "accessKeySecret": "secret", "region": "cn-hangzhou"}
CALL_CONFIG = {"scalingGroupId": "asg-1", "node_class": "ess"}


class TestESSTargetPlugin(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        setup_logger()
        logging_test_name(self)

        self.call_log = []
        self.manager = RecordingNodeLifecycleManager(call_log=self.call_log)

    def _plugin(
        self, client: SimulatedScalingGroupClient, retry_interval_seconds: float = 0, retry_limit: int = 15
    ) -> ESSTargetPlugin:
        plugin = ESSTargetPlugin(
            scaling_group_client_factory=lambda _: client,
            node_lifecycle_manager_factory=lambda _: self.manager,
            retry_interval_seconds=retry_interval_seconds,
            retry_limit=retry_limit,
        )
        plugin.set_config(PLUGIN_CONFIG)
        return plugin

    async def test_scale_out(self):
        client = SimulatedScalingGroupClient(healthy_instances(3), call_log=self.call_log)

        await self._plugin(client).scale(ScalingAction(count=5), CALL_CONFIG)

        self.assertEqual(client.resize_calls, [5])
        self.assertEqual(client.status_checks, 2)
        self.assertEqual(self.call_log, ["status", "resize", "scaling_activity_status", "scaling_activity_status"])

    async def test_scale_in(self):
        client = SimulatedScalingGroupClient(healthy_instances(5), call_log=self.call_log)

        await self._plugin(client).scale(ScalingAction(count=2), CALL_CONFIG)

        self.assertEqual(self.manager.select_calls, [["i-0", "i-1", "i-2", "i-3", "i-4"]])
        self.assertEqual(client.delete_calls, [["i-0", "i-1", "i-2"]])
        self.assertEqual(len(self.manager.notified), 1)
        self.assertEqual([node.remote_resource_id for node in self.manager.notified[0]], ["i-0", "i-1", "i-2"])
        self.assertEqual(client.resize_calls, [])

    async def test_no_scaling_required(self):
        client = SimulatedScalingGroupClient(healthy_instances(4), call_log=self.call_log)

        await self._plugin(client).scale(ScalingAction(count=4), CALL_CONFIG)

        self.assertEqual(self.call_log, ["status"])
        self.assertEqual(client.mutation_calls(), [])

    async def test_scale_out_timeout(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), progress_step=0, call_log=self.call_log)
        plugin = self._plugin(client, retry_interval_seconds=10, retry_limit=15)

        with mock.patch("asyncio.sleep", new_callable=mock.AsyncMock) as sleep:
            with self.assertRaises(ActivityTimeoutError) as context:
                await plugin.scale(ScalingAction(count=2), CALL_CONFIG)

        self.assertEqual(client.status_checks, 15)
        self.assertEqual(sleep.await_count, 14)
        self.assertTrue(str(context.exception).startswith("failed to perform scaling action: "))
        self.assertIn("failed to confirm scale out ESS scaling group", str(context.exception))

    async def test_dry_run_is_a_no_op(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), call_log=self.call_log)
        plugin = self._plugin(client)

        await plugin.scale(ScalingAction(count=5, dry_run=True), CALL_CONFIG)
        await plugin.scale(ScalingAction(count=DRY_RUN_COUNT), CALL_CONFIG)
        # dry-run short-circuits before the scaling group config is even read
        await plugin.scale(ScalingAction(count=5, dry_run=True), {})

        self.assertEqual(self.call_log, [])

    async def test_per_call_config_wins(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), call_log=self.call_log)
        plugin = self._plugin(client)

        self.assertEqual(
            plugin._calculate_scaling_group({"region": "cn-beijing", "scalingGroupId": "asg-2"}).region, "cn-beijing"
        )
        self.assertEqual(plugin._calculate_scaling_group(CALL_CONFIG).region, "cn-hangzhou")

    async def test_missing_group_config_fails_before_remote_calls(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), call_log=self.call_log)
        plugin = self._plugin(client)

        with self.assertRaises(ConfigInvalidError) as context:
            await plugin.scale(ScalingAction(count=3), {})
        self.assertIn("scalingGroupId", str(context.exception))

        plugin.set_config({"accessKeyId": "ak", "accessKeySecret": "secret"})
        with self.assertRaises(ConfigInvalidError) as context:
            await plugin.scale(ScalingAction(count=3), CALL_CONFIG)
        self.assertIn("region", str(context.exception))

        self.assertEqual(self.call_log, [])

    def test_set_config_requires_credentials(self):
        plugin = ESSTargetPlugin(
            scaling_group_client_factory=lambda _: SimulatedScalingGroupClient([]),
            node_lifecycle_manager_factory=lambda _: self.manager,
        )

        with self.assertRaises(ConfigInvalidError):
            plugin.set_config({"accessKeyId": "ak"})
        with self.assertRaises(ConfigInvalidError):
            plugin.set_config({"accessKeySecret": "secret"})

    async def test_scale_before_set_config(self):
        with self.assertRaises(ConfigInvalidError):
            await ESSTargetPlugin().scale(ScalingAction(count=3), {**PLUGIN_CONFIG, **CALL_CONFIG})

    async def test_describe_failure_is_wrapped(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), call_log=self.call_log)
        client.fail_on = "status"

        with self.assertRaises(RemoteAPIError) as context:
            await self._plugin(client).scale(ScalingAction(count=3), CALL_CONFIG)

        self.assertIn("failed to describe ESS scaling group", str(context.exception))
        self.assertEqual(client.mutation_calls(), [])

    async def test_group_not_found_is_wrapped(self):
        client = SimulatedScalingGroupClient(healthy_instances(1), call_log=self.call_log)
        client.status = mock.AsyncMock(side_effect=NotFoundError("required scaling group id asg-1 not found"))

        with self.assertRaises(NotFoundError) as context:
            await self._plugin(client).scale(ScalingAction(count=3), CALL_CONFIG)

        self.assertEqual(
            str(context.exception), "failed to describe ESS scaling group: required scaling group id asg-1 not found"
        )

    async def test_scale_in_pre_task_failure(self):
        client = SimulatedScalingGroupClient(
            healthy_instances(2) + [InstanceRecord("i-sick", "Unhealthy", "InService")], call_log=self.call_log
        )

        with self.assertRaises(PreScaleInFailedError) as context:
            await self._plugin(client).scale(ScalingAction(count=0), CALL_CONFIG)

        self.assertIn("failed to perform scaling action", str(context.exception))
        self.assertEqual(client.mutation_calls(), [])

    async def test_status_ready(self):
        client = SimulatedScalingGroupClient(healthy_instances(4), call_log=self.call_log)

        status = await self._plugin(client).status(CALL_CONFIG)

        self.assertEqual(status, TargetStatus(ready=True, count=4))
        self.assertEqual(self.call_log, ["is_pool_ready", "status"])

    async def test_status_unstable_group(self):
        client = SimulatedScalingGroupClient(healthy_instances(2), stable=False, call_log=self.call_log)

        status = await self._plugin(client).status(CALL_CONFIG)

        self.assertFalse(status.ready)
        self.assertEqual(status.count, 2)

    async def test_status_pool_not_ready_skips_remote_call(self):
        client = SimulatedScalingGroupClient(healthy_instances(2), call_log=self.call_log)
        self.manager.ready = False

        status = await self._plugin(client).status(CALL_CONFIG)

        self.assertFalse(status.ready)
        self.assertEqual(self.call_log, ["is_pool_ready"])

    async def test_status_readiness_check_failure(self):
        client = SimulatedScalingGroupClient(healthy_instances(2), call_log=self.call_log)
        self.manager.is_pool_ready = mock.AsyncMock(side_effect=RemoteAPIError("Nomad GET /v1/nodes returned 500"))

        with self.assertRaises(RemoteAPIError) as context:
            await self._plugin(client).status(CALL_CONFIG)

        self.assertIn("failed to run Nomad node readiness check", str(context.exception))
        self.assertEqual(self.call_log, [])

    async def test_status_keeps_readiness_error_class(self):
        client = SimulatedScalingGroupClient(healthy_instances(2), call_log=self.call_log)
        plugin = ESSTargetPlugin(
            scaling_group_client_factory=lambda _: client,
            node_lifecycle_manager_factory=NomadNodeLifecycleManager.from_config,
        )
        plugin.set_config({**PLUGIN_CONFIG, "scalingGroupId": "asg-1"})

        # no node_class, datacenter or node_pool identifies the pool
        with self.assertRaises(ConfigInvalidError) as context:
            await plugin.status({})

        self.assertTrue(str(context.exception).startswith("failed to run Nomad node readiness check: "))
        self.assertEqual(self.call_log, [])

    def test_plugin_info(self):
        self.assertEqual(ESSTargetPlugin.plugin_info(), PluginInfo(name="acs-ess", plugin_type="target"))
