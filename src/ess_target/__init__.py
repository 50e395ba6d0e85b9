__all__ = [
    "ESSTargetPlugin",
    "ScalingAction",
    "TargetStatus",
    "PluginInfo",
    "ScalingGroupRef",
    "TargetError",
]

from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.target.exception import TargetError
from ess_target.target.plugin import ESSTargetPlugin
from ess_target.target.types import PluginInfo, ScalingAction, TargetStatus
