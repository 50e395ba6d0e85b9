import dataclasses
from typing import Optional, Tuple

from ess_target.config import defaults
from ess_target.config.config_class import ConfigClass


@dataclasses.dataclass
class LoggingConfig(ConfigClass):
    paths: Tuple[str, ...] = dataclasses.field(
        default=defaults.DEFAULT_LOGGING_PATHS,
        metadata=dict(
            short="-lp",
            type=lambda s: tuple(x for x in s.split(",") if x),
            help="comma-separated list of logging paths, /dev/stdout and /dev/stderr write to the console",
        ),
    )
    level: str = dataclasses.field(
        default=defaults.DEFAULT_LOGGING_LEVEL,
        metadata=dict(short="-ll", choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"), help="logging level"),
    )
    config_file: Optional[str] = dataclasses.field(
        default=None,
        metadata=dict(short="-lc", help="logging configuration file in logging.config.fileConfig format"),
    )
