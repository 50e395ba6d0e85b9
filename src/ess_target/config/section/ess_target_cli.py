import dataclasses
from typing import Dict, List, Optional

from ess_target.config.common.logging import LoggingConfig
from ess_target.config.config_class import ConfigClass
from ess_target.target.types import DRY_RUN_COUNT


class CLICommand:
    STATUS = "status"
    SCALE = "scale"
    INFO = "info"

    @staticmethod
    def allowed_types():
        return CLICommand.STATUS, CLICommand.SCALE, CLICommand.INFO


@dataclasses.dataclass
class ESSTargetCLIConfig(ConfigClass):
    """Configuration for running a single target invocation from the command line."""

    command: str = dataclasses.field(
        metadata=dict(positional=True, choices=CLICommand.allowed_types(), help="target operation to run")
    )
    count: Optional[int] = dataclasses.field(
        default=None, metadata=dict(short="-n", help="desired number of instances, required for scale")
    )
    dry_run: bool = dataclasses.field(default=False, metadata=dict(help="evaluate the action without scaling"))
    config: List[str] = dataclasses.field(
        default_factory=list,
        metadata=dict(
            short="-c", action="append", help="configuration entry as key=value, may be given multiple times"
        ),
    )
    timeout_seconds: Optional[float] = dataclasses.field(
        default=None, metadata=dict(short="-t", help="abort the invocation after this many seconds")
    )
    logging_config: LoggingConfig = dataclasses.field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if self.command == CLICommand.SCALE and self.count is None and not self.dry_run:
            raise ValueError("count is required for scale.")
        if self.count is not None and self.count < 0 and self.count != DRY_RUN_COUNT:
            raise ValueError("count must be a non-negative integer.")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive number.")
        for entry in self.config:
            if "=" not in entry:
                raise ValueError(f"config entry {entry!r} must be in key=value form.")

    def config_map(self) -> Dict[str, str]:
        return dict(entry.split("=", 1) for entry in self.config)
