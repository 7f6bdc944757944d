"""Logging Module.

One-time logging setup shared by the batch and orchestrator entry points.
Records go to the console and, when ``LOG_FILE`` is set, to that file.
"""

import logging
from typing import IO, Optional, Union

_CONFIGURED = False


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Install the root handlers for a batch or orchestrator process.

    Console output goes to ``stream`` (stderr by default); ``log_file`` adds a
    UTF-8 file handler. Later calls in the same process are no-ops.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(stream)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True,  # override any previous root logger config
    )

    _CONFIGURED = True
