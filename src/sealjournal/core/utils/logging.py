"""
Loguru setup for sealjournal processes.

Library modules log through ``from loguru import logger`` and never configure
sinks; the CLI (or an embedding server) calls :func:`setup_logging` once.
Every sink installed here runs :func:`redact_secrets` so PEM key material
that slips into a log message never reaches stderr or disk.
"""

import re
import sys

from loguru import logger

_PEM_BLOCK = re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.DOTALL)
REDACTED = "[redacted private key]"

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def redact_secrets(record: dict) -> bool:
    """Loguru filter: blank out private keys in the message. Always keeps the record."""
    message = record["message"]
    if "PRIVATE KEY" in message:
        record["message"] = _PEM_BLOCK.sub(REDACTED, message)
    return True


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's default sink with sealjournal's.

    Args:
        level: Minimum level name (TRACE, DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL).
        log_file: Optional path for a rotating file sink. Empty means stderr only.
        rotation: Size or interval at which the file sink rotates.
        retention: How long rotated files are kept.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, filter=redact_secrets)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            filter=redact_secrets,
            rotation=rotation,
            retention=retention,
            enqueue=True,
        )
    logger.debug(f"Logging configured at {level}" + (f", file={log_file}" if log_file else ""))
