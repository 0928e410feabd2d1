__all__ = [
    "Logger",
    "get_logger",
    "configure_logging",
]

from src.utils.logging.default import Logger
from src.utils.logging.base_logger import get_logger, configure_logging
