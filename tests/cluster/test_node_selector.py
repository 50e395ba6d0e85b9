import unittest

from ess_target.cluster.nomad.node_selector import allocated_resources, needs_allocations, select_nodes
from ess_target.config.section.nomad import NodeSelectorStrategy
from ess_target.utility.logging.utility import setup_logger
from tests.cluster.fake_nomad import make_allocation, make_node
from tests.utility.utility import logging_test_name


class TestNodeSelector(unittest.TestCase):
    def setUp(self) -> None:
        setup_logger()
        logging_test_name(self)

        self.nodes = [
            make_node("busy", "i-1", create_index=5),
            make_node("idle", "i-2", create_index=3),
            make_node("system-only", "i-3", create_index=9),
            make_node("finished", "i-4", create_index=1),
        ]
        self.allocations = {
            "busy": [make_allocation(cpu=1000, memory=1024)],
            "idle": [],
            "system-only": [make_allocation(cpu=100, memory=64, job_type="system")],
            "finished": [make_allocation(cpu=2000, memory=2048, client_status="complete")],
        }

    def _select(self, strategy: str, num: int):
        return [node["ID"] for node in select_nodes(strategy, self.nodes, self.allocations, num)]

    def test_allocated_resources_ignores_terminal_allocations(self):
        self.assertEqual(allocated_resources(self.allocations["busy"]), 2024)
        self.assertEqual(allocated_resources(self.allocations["finished"]), 0)
        self.assertEqual(allocated_resources([{"ClientStatus": "running"}]), 0)

    def test_least_busy(self):
        self.assertEqual(self._select(NodeSelectorStrategy.LEAST_BUSY, 3), ["idle", "finished", "system-only"])

    def test_newest_create_index(self):
        self.assertEqual(self._select(NodeSelectorStrategy.NEWEST_CREATE_INDEX, 2), ["system-only", "busy"])

    def test_empty(self):
        self.assertEqual(self._select(NodeSelectorStrategy.EMPTY, 4), ["idle", "finished"])

    def test_empty_ignore_system(self):
        self.assertEqual(
            self._select(NodeSelectorStrategy.EMPTY_IGNORE_SYSTEM, 4), ["idle", "system-only", "finished"]
        )

    def test_returns_fewer_nodes_when_not_enough_match(self):
        self.assertEqual(self._select(NodeSelectorStrategy.EMPTY, 3), ["idle", "finished"])
        self.assertEqual(self._select(NodeSelectorStrategy.LEAST_BUSY, 0), [])

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            select_nodes("random", self.nodes, self.allocations, 1)

    def test_needs_allocations(self):
        self.assertFalse(needs_allocations(NodeSelectorStrategy.NEWEST_CREATE_INDEX))
        self.assertTrue(needs_allocations(NodeSelectorStrategy.LEAST_BUSY))
        self.assertTrue(needs_allocations(NodeSelectorStrategy.EMPTY))
