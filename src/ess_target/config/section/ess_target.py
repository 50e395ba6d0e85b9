import dataclasses

from ess_target.config import defaults
from ess_target.config.config_class import ConfigClass
from ess_target.target.exception import ConfigInvalidError


@dataclasses.dataclass
class ESSTargetConfig(ConfigClass):
    """Plugin level connection settings for the ESS API."""

    access_key_id: str = dataclasses.field(metadata=dict(key="accessKeyId", help="AccessKey ID", required=True))
    access_key_secret: str = dataclasses.field(
        metadata=dict(key="accessKeySecret", help="AccessKey secret", required=True)
    )
    endpoint: str = dataclasses.field(
        default=defaults.DEFAULT_ESS_ENDPOINT, metadata=dict(key="endpoint", help="ESS API endpoint override")
    )

    def __post_init__(self) -> None:
        if not self.access_key_id:
            raise ConfigInvalidError("accessKeyId cannot be an empty string.")
        if not self.access_key_secret:
            raise ConfigInvalidError("accessKeySecret cannot be an empty string.")
        if not self.endpoint:
            self.endpoint = defaults.DEFAULT_ESS_ENDPOINT

    def __repr__(self) -> str:
        return f"ESSTargetConfig(access_key_id={self.access_key_id!r}, endpoint={self.endpoint!r})"
