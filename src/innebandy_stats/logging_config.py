"""Logging setup for the innebandy-stats command line.

Each CLI invocation gets its own log file named after the subcommand, e.g.
``data/logs/standings-2024-10-05-150000.log``. The console stays quiet
(WARNING+) unless ``--verbose`` is given; the file always records DEBUG+,
including the client's per-request lines and the aggregation run stats.
"""

import logging
from datetime import datetime
from pathlib import Path

CONSOLE_FORMAT = "%(asctime)s %(levelname)-5s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    data_dir: str = "data",
    console_level: int = logging.WARNING,
    name: str = "run",
) -> Path:
    """Route root logging to the console and to a per-command log file.

    Root handlers are replaced, so calling this twice in one process
    (tests, repeated ``async_main`` calls) does not duplicate output.

    Args:
        data_dir: Base data directory; logs go to ``{data_dir}/logs/``.
        console_level: Minimum level printed to the console.
        name: Log file prefix, normally the CLI subcommand.

    Returns:
        Path to the new log file.
    """
    log_dir = Path(data_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{name}-{datetime.now():%Y-%m-%d-%H%M%S}.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return log_file
