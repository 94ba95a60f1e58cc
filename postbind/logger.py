import sys
from typing import Optional

from loguru import logger as _loguru_logger

from postbind.config import get_settings


def _ensure_resource(record):
    """Patch function to ensure resource is always present in log records."""
    if "resource" not in record["extra"]:
        record["extra"]["resource"] = "-"
    return record


# Library logging stays silent until the application opts in
_patched_logger = _loguru_logger.patch(_ensure_resource)
_loguru_logger.disable("postbind")
_sink_id: Optional[int] = None


def setup_logging(level: Optional[str] = None, sink=None):
    """Enable postbind log output.

    Args:
        level: Minimum level written to the sink; defaults to POSTBIND_LOG_LEVEL.
        sink: Any loguru sink; defaults to stderr.

    Returns:
        The patched logger instance.
    """
    global _sink_id

    if _sink_id is not None:
        _loguru_logger.remove(_sink_id)

    level = level or get_settings().log_level
    _sink_id = _loguru_logger.add(
        sink or sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{extra[resource]:<12}</cyan> | <level>{message}</level>",
        level=level.upper(),
        filter="postbind",
        backtrace=False,
        diagnose=False,
    )
    _loguru_logger.enable("postbind")
    return _patched_logger


def disable_logging():
    """Silence postbind again and drop the sink added by setup_logging."""
    global _sink_id

    if _sink_id is not None:
        _loguru_logger.remove(_sink_id)
        _sink_id = None
    _loguru_logger.disable("postbind")


logger = _patched_logger
