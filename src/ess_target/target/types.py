import dataclasses
import enum
from typing import Dict, List, NamedTuple

PLUGIN_NAME = "acs-ess"
PLUGIN_TYPE_TARGET = "target"

# the orchestrator sends this count when the strategy only evaluated in dry-run mode
DRY_RUN_COUNT = -1


class HealthStatus(str, enum.Enum):
    Healthy = "Healthy"
    Unhealthy = "Unhealthy"


class LifecycleState(str, enum.Enum):
    InService = "InService"
    Pending = "Pending"
    Protected = "Protected"
    Standby = "Standby"
    Removing = "Removing"
    Stopped = "Stopped"


class GroupLifecycleState(str, enum.Enum):
    Active = "Active"
    Inactive = "Inactive"
    Deleting = "Deleting"


class ScaleDirection(enum.Enum):
    NONE = "none"
    IN = "in"
    OUT = "out"

    def __str__(self):
        return self.value


class ScaleDecision(NamedTuple):
    magnitude: int
    direction: ScaleDirection


@dataclasses.dataclass(frozen=True)
class GroupStatus:
    stable: bool
    current_count: int


@dataclasses.dataclass(frozen=True)
class InstanceRecord:
    instance_id: str
    health_status: str
    lifecycle_state: str

    def is_removable(self) -> bool:
        return self.health_status == HealthStatus.Healthy and self.lifecycle_state == LifecycleState.InService


@dataclasses.dataclass(frozen=True)
class NodeResourceID:
    """Maps a cluster node to the remote instance backing it."""

    node_id: str
    remote_resource_id: str


NodeRemovalSelection = List[NodeResourceID]


@dataclasses.dataclass
class ScalingAction:
    count: int
    dry_run: bool = False
    reason: str = ""
    meta: Dict[str, str] = dataclasses.field(default_factory=dict)

    @property
    def is_dry_run(self) -> bool:
        return self.dry_run or self.count == DRY_RUN_COUNT


@dataclasses.dataclass
class TargetStatus:
    ready: bool
    count: int = 0
    meta: Dict[str, str] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class PluginInfo:
    name: str
    plugin_type: str
