"""Logging setup shared by the CLI and the API server."""

import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Union[str, int] = "WARNING", log_file: Optional[Path] = None) -> None:
    """Configure the ``tasktrack`` logger.

    Handlers are only attached once; later calls just adjust the level.

    Args:
        level: Level name or number
        log_file: Optional file to log to in addition to stderr
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    package_logger = logging.getLogger("tasktrack")
    package_logger.setLevel(level)

    if package_logger.handlers:
        for handler in package_logger.handlers:
            handler.setLevel(level)
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)
