from alibabacloud_ess20220222.client import Client
from alibabacloud_tea_openapi import models as open_api_models

from ess_target.config.section.ess_target import ESSTargetConfig
from ess_target.target.exception import ConfigInvalidError


def create_ess_client(config: ESSTargetConfig) -> Client:
    """Builds the ESS 2022-02-22 SDK client, the SDK validates the endpoint and credentials eagerly."""
    sdk_config = open_api_models.Config(
        access_key_id=config.access_key_id,
        access_key_secret=config.access_key_secret,
        endpoint=config.endpoint,
    )

    try:
        return Client(sdk_config)
    except Exception as e:
        raise ConfigInvalidError(f"failed to create ESS sdk client: {e}") from e
