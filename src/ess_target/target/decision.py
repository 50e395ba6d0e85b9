from ess_target.target.types import ScaleDecision, ScaleDirection


def calculate_direction(current: int, desired: int) -> ScaleDecision:
    """
    Scale in is expressed as the number of instances to remove, scale out as the new total capacity, since ESS
    resizes a group with an absolute TotalCapacity adjustment.
    """
    if desired < current:
        return ScaleDecision(current - desired, ScaleDirection.IN)

    if desired > current:
        return ScaleDecision(desired, ScaleDirection.OUT)

    return ScaleDecision(0, ScaleDirection.NONE)
