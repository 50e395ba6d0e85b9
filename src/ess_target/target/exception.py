class TargetError(Exception):
    """Base class for every error raised while executing a scaling action against a target."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigInvalidError(TargetError, ValueError):
    """A required configuration key is missing or malformed."""


class NotFoundError(TargetError):
    """A remote lookup did not resolve to exactly one record."""


class ActivityTimeoutError(TargetError, TimeoutError):
    """The retry budget ran out before the scaling activity completed."""


class PreScaleInFailedError(TargetError):
    """Nodes could not be selected or drained, no remote instance was removed."""


class PostScaleInFailedError(TargetError):
    """Post removal tasks failed, the instance removal itself is already committed."""


class RemoteAPIError(TargetError):
    """A remote API call failed at the transport or service level."""


class AttributeNotFoundError(TargetError):
    """A cluster node does not carry the attribute used to identify its remote instance."""


def wrap_error(operation: str, error: TargetError) -> TargetError:
    """Returns an error of the same class with the operation name prepended, chain it with ``from``."""
    return type(error)(f"{operation}: {error.message}")
