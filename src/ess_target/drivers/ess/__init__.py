"""
Alibaba Cloud ESS driver for the target adapter.

Architecture:
    ESSTargetPlugin → ESSScalingGroupClient → ESS 2022-02-22 API
                              ↓
              ScaleWithAdjustment / RemoveInstances return a scaling activity id
                              ↓
                DescribeScalingActivities polled until progress reaches 100

Components:
    - create_ess_client: builds the SDK client from the plugin configuration
    - ESSScalingGroupClient: the five scaling group operations, one SDK call each
"""

from ess_target.drivers.ess.client import create_ess_client
from ess_target.drivers.ess.scaling_group import ESSScalingGroupClient

__all__ = ["ESSScalingGroupClient", "create_ess_client"]
