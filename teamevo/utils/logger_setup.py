"""
Logging setup for team generation runs.

One console sink, one rotating run log, and (optionally) a repairs log that
receives only the records ``RepairLog`` binds with a ``repair`` key.
"""

from datetime import datetime, timezone
import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<yellow>{line}</yellow> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
REPAIR_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[repair]: <22} | {message}"


def _is_repair(record) -> bool:
    return "repair" in record["extra"]


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    repairs_file: bool = True,
) -> str:
    """
    Route loguru output for a run.

    Args:
        log_dir: Directory for log files
        level: Level for the console and the run log
        rotation: Rotation policy for the run log (e.g. "50 MB", "1 day")
        retention: Retention policy for both files
        repairs_file: Also write every invariant repair, at any level, to
            ``repairs_<timestamp>.log``; repairs then stay off the console
            unless they reach WARNING

    Returns:
        Path to the run log
    """
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"teamevo_{timestamp}.log")

    logger.remove()

    def console_filter(record) -> bool:
        if repairs_file and _is_repair(record):
            return record["level"].no >= logger.level("WARNING").no
        return True

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=sys.stderr.isatty(),
        filter=console_filter,
        diagnose=False,
    )
    logger.add(
        log_file,
        level=level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        diagnose=False,
    )
    if repairs_file:
        logger.add(
            os.path.join(log_dir, f"repairs_{timestamp}.log"),
            level="DEBUG",
            format=REPAIR_FORMAT,
            filter=_is_repair,
            retention=retention,
            encoding="utf-8",
        )

    logger.info("[logger] Run log: {}", log_file)
    return log_file
