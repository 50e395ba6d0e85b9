import dataclasses
import os
from typing import Optional

from ess_target.config import defaults
from ess_target.config.config_class import ConfigClass
from ess_target.config.types.duration import parse_duration
from ess_target.target.exception import ConfigInvalidError


class NodeSelectorStrategy:
    LEAST_BUSY = "least_busy"
    NEWEST_CREATE_INDEX = "newest_create_index"
    EMPTY = "empty"
    EMPTY_IGNORE_SYSTEM = "empty_ignore_system"

    @staticmethod
    def allowed_types():
        return (
            NodeSelectorStrategy.LEAST_BUSY,
            NodeSelectorStrategy.NEWEST_CREATE_INDEX,
            NodeSelectorStrategy.EMPTY,
            NodeSelectorStrategy.EMPTY_IGNORE_SYSTEM,
        )


@dataclasses.dataclass
class NomadConfig(ConfigClass):
    """Connection settings for the Nomad HTTP API."""

    address: str = dataclasses.field(
        default_factory=lambda: os.environ.get("NOMAD_ADDR", defaults.DEFAULT_NOMAD_ADDRESS),
        metadata=dict(key="nomad_address", help="address of the Nomad HTTP API"),
    )
    region: Optional[str] = dataclasses.field(default=None, metadata=dict(key="nomad_region"))
    namespace: Optional[str] = dataclasses.field(default=None, metadata=dict(key="nomad_namespace"))
    token: Optional[str] = dataclasses.field(
        default_factory=lambda: os.environ.get("NOMAD_TOKEN"), metadata=dict(key="nomad_token")
    )

    def __post_init__(self) -> None:
        if not self.address:
            raise ConfigInvalidError("nomad_address cannot be an empty string.")
        self.address = self.address.rstrip("/")

    def __repr__(self) -> str:
        return f"NomadConfig(address={self.address!r}, region={self.region!r}, namespace={self.namespace!r})"


@dataclasses.dataclass
class ClusterScalingConfig(ConfigClass):
    """Per call settings describing the Nomad node pool backing a scaling group and how to shrink it."""

    node_class: Optional[str] = dataclasses.field(default=None, metadata=dict(key="node_class"))
    datacenter: Optional[str] = dataclasses.field(default=None, metadata=dict(key="datacenter"))
    node_pool: Optional[str] = dataclasses.field(default=None, metadata=dict(key="node_pool"))

    node_drain_deadline_seconds: float = dataclasses.field(
        default=parse_duration(defaults.DEFAULT_NODE_DRAIN_DEADLINE),
        metadata=dict(key="node_drain_deadline", type=parse_duration),
    )
    node_drain_ignore_system_jobs: bool = dataclasses.field(
        default=False, metadata=dict(key="node_drain_ignore_system_jobs")
    )
    node_purge: bool = dataclasses.field(default=False, metadata=dict(key="node_purge"))
    node_selector_strategy: str = dataclasses.field(
        default=defaults.DEFAULT_NODE_SELECTOR_STRATEGY, metadata=dict(key="node_selector_strategy")
    )

    def __post_init__(self) -> None:
        if not (self.node_class or self.datacenter or self.node_pool):
            raise ConfigInvalidError(
                "required config param node_class, datacenter or node_pool not found, cannot identify node pool"
            )
        if self.node_drain_deadline_seconds <= 0:
            raise ConfigInvalidError("node_drain_deadline must be a positive duration.")
        if self.node_selector_strategy not in NodeSelectorStrategy.allowed_types():
            raise ConfigInvalidError(
                f"node_selector_strategy must be one of {', '.join(NodeSelectorStrategy.allowed_types())}, "
                f"got {self.node_selector_strategy!r}"
            )
