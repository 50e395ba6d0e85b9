import dataclasses

from ess_target.config.config_class import ConfigClass
from ess_target.target.exception import ConfigInvalidError


@dataclasses.dataclass(frozen=True)
class ScalingGroupRef(ConfigClass):
    """Identifies one ESS scaling group, resolved per invocation and never persisted."""

    region: str = dataclasses.field(metadata=dict(key="region", help="region of the scaling group"))
    scaling_group_id: str = dataclasses.field(metadata=dict(key="scalingGroupId", help="id of the scaling group"))

    def __post_init__(self) -> None:
        if not self.region:
            raise ConfigInvalidError("required config param region not found")
        if not self.scaling_group_id:
            raise ConfigInvalidError("required config param scalingGroupId not found")

    def __str__(self) -> str:
        return f"{self.region}/{self.scaling_group_id}"
