"""
Logging setup for Clinical Document Evaluation

All modules log through loguru's global logger. Library code never adds
sinks on import; applications call configure_logging() once at startup.
"""

import sys
from typing import Optional, TextIO

from loguru import logger

from clinical_document_evaluation.core.constants import LOG_FORMAT


def configure_logging(level: str = "INFO", sink: Optional[TextIO] = None) -> int:
    """
    Replace loguru's default sink with a formatted one.

    Args:
        level: Minimum level to emit
        sink: Stream to write to (stderr by default)

    Returns:
        Handler id of the installed sink
    """
    logger.remove()
    return logger.add(sink or sys.stderr, level=level, format=LOG_FORMAT)
