import asyncio
import logging
from typing import Awaitable, Callable

from ess_target.config import defaults
from ess_target.config.types.scaling_group import ScalingGroupRef
from ess_target.target.exception import ActivityTimeoutError
from ess_target.target.mixins import ScalingGroupClient

logger = logging.getLogger(__name__)

CompletionCheck = Callable[[], Awaitable[bool]]


class ActivityPoller:
    """Blocks the calling task until a completion check passes, with a fixed interval and attempt budget."""

    def __init__(
        self,
        interval_seconds: float = defaults.DEFAULT_RETRY_INTERVAL_SECONDS,
        retry_limit: int = defaults.DEFAULT_RETRY_LIMIT,
    ):
        if retry_limit <= 0:
            raise ValueError("retry_limit must be a positive integer.")
        if interval_seconds < 0:
            raise ValueError("interval_seconds cannot be negative.")

        self._interval_seconds = interval_seconds
        self._retry_limit = retry_limit

    async def wait_until_done(self, check: CompletionCheck, description: str = "activity") -> None:
        for attempt in range(1, self._retry_limit + 1):
            if await check():
                return

            if attempt == self._retry_limit:
                break

            logger.debug(f"waiting for {description} to be done, attempt {attempt}/{self._retry_limit}")
            await asyncio.sleep(self._interval_seconds)

        raise ActivityTimeoutError(f"reached retry limit of {self._retry_limit} waiting for {description}")


async def ensure_scaling_activity_is_done(
    client: ScalingGroupClient, group: ScalingGroupRef, scaling_activity_id: str, poller: ActivityPoller
) -> None:
    async def check() -> bool:
        return await client.scaling_activity_status(group, scaling_activity_id)

    await poller.wait_until_done(check, description=f"scaling activity {scaling_activity_id}")
