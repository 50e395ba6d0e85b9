import asyncio
import dataclasses
import json
import logging
import sys
from typing import Any, Awaitable, Dict, Optional

from ess_target.config.section.ess_target_cli import CLICommand, ESSTargetCLIConfig
from ess_target.target.exception import TargetError
from ess_target.target.plugin import ESSTargetPlugin
from ess_target.target.types import DRY_RUN_COUNT, ScalingAction
from ess_target.utility.logging.utility import setup_logger


async def _with_timeout(awaitable: Awaitable[Any], timeout_seconds: Optional[float]) -> Any:
    if timeout_seconds is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout_seconds)


async def run_command(plugin: ESSTargetPlugin, cli_config: ESSTargetCLIConfig, config: Dict[str, str]) -> Dict:
    if cli_config.command == CLICommand.INFO:
        return dataclasses.asdict(plugin.plugin_info())

    if cli_config.command == CLICommand.STATUS:
        status = await _with_timeout(plugin.status(config), cli_config.timeout_seconds)
        return dataclasses.asdict(status)

    count = cli_config.count if cli_config.count is not None else DRY_RUN_COUNT
    action = ScalingAction(count=count, dry_run=cli_config.dry_run, reason="requested from command line")
    await _with_timeout(plugin.scale(action, config), cli_config.timeout_seconds)
    return {"count": count, "dry_run": action.is_dry_run}


def main():
    cli_config = ESSTargetCLIConfig.parse("ESS Target Adapter", "ess_target")

    setup_logger(
        cli_config.logging_config.paths, cli_config.logging_config.config_file, cli_config.logging_config.level
    )

    config = cli_config.config_map()
    plugin = ESSTargetPlugin()

    try:
        if cli_config.command != CLICommand.INFO:
            plugin.set_config(config)
        result = asyncio.run(run_command(plugin, cli_config, config))
    except TargetError as e:
        logging.error(f"{cli_config.command} failed: {e}")
        sys.exit(1)
    except asyncio.TimeoutError:
        logging.error(f"{cli_config.command} did not finish within {cli_config.timeout_seconds}s")
        sys.exit(1)

    print(json.dumps(result))


if __name__ == "__main__":
    main()
