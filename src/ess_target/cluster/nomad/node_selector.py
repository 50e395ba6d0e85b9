from typing import Any, Dict, List

from ess_target.config.section.nomad import NodeSelectorStrategy

ALLOC_TERMINAL_CLIENT_STATUSES = {"complete", "failed", "lost"}
JOB_TYPE_SYSTEM = "system"

Node = Dict[str, Any]
Allocation = Dict[str, Any]


def is_active_allocation(allocation: Allocation) -> bool:
    return allocation.get("ClientStatus") not in ALLOC_TERMINAL_CLIENT_STATUSES


def allocated_resources(allocations: List[Allocation]) -> int:
    """Sum of CPU shares and memory megabytes across the tasks of all active allocations."""
    total = 0
    for allocation in allocations:
        if not is_active_allocation(allocation):
            continue

        tasks = (allocation.get("AllocatedResources") or {}).get("Tasks") or {}
        for task in tasks.values():
            total += ((task.get("Cpu") or {}).get("CpuShares") or 0) + ((task.get("Memory") or {}).get("MemoryMB") or 0)

    return total


def _is_system_allocation(allocation: Allocation) -> bool:
    return (allocation.get("Job") or {}).get("Type") == JOB_TYPE_SYSTEM or allocation.get("JobType") == JOB_TYPE_SYSTEM


def select_nodes(
    strategy: str, nodes: List[Node], allocations: Dict[str, List[Allocation]], num: int
) -> List[Node]:
    """
    Picks up to num nodes for removal according to strategy.

    allocations maps node id to the allocations placed on it, it may be empty for strategies that ignore them.
    """
    if strategy == NodeSelectorStrategy.NEWEST_CREATE_INDEX:
        ranked = sorted(nodes, key=lambda node: node.get("CreateIndex", 0), reverse=True)

    elif strategy == NodeSelectorStrategy.LEAST_BUSY:
        ranked = sorted(nodes, key=lambda node: allocated_resources(allocations.get(node["ID"], [])))

    elif strategy == NodeSelectorStrategy.EMPTY:
        ranked = [
            node for node in nodes if not any(is_active_allocation(a) for a in allocations.get(node["ID"], []))
        ]

    elif strategy == NodeSelectorStrategy.EMPTY_IGNORE_SYSTEM:
        ranked = [
            node
            for node in nodes
            if not any(
                is_active_allocation(a) and not _is_system_allocation(a) for a in allocations.get(node["ID"], [])
            )
        ]

    else:
        raise ValueError(f"unknown node selector strategy: {strategy}")

    return ranked[:num]


def needs_allocations(strategy: str) -> bool:
    return strategy != NodeSelectorStrategy.NEWEST_CREATE_INDEX
