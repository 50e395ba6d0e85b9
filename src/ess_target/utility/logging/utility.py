import logging
import logging.config
import logging.handlers
import sys
from typing import Optional, Tuple

from ess_target.config import defaults

DEFAULT_LOG_FORMAT = "[%(levelname)s]%(asctime)s: %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S%z"


def setup_logger(
    log_paths: Tuple[str, ...] = defaults.DEFAULT_LOGGING_PATHS,
    logging_config_file: Optional[str] = None,
    logging_level: str = defaults.DEFAULT_LOGGING_LEVEL,
) -> None:
    if logging_config_file is not None:
        logging.config.fileConfig(logging_config_file, disable_existing_loggers=False)
        return

    root = logging.getLogger()
    root.setLevel(logging_level)

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
    for log_path in log_paths:
        handler = _create_handler(log_path)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _create_handler(log_path: str) -> logging.Handler:
    if log_path == "/dev/stdout":
        return logging.StreamHandler(sys.stdout)

    if log_path == "/dev/stderr":
        return logging.StreamHandler(sys.stderr)

    return logging.handlers.WatchedFileHandler(log_path)
