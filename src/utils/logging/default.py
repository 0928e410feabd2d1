import logging
from typing import Optional

from src.utils.logging.base_logger import get_logger


class Logger:
    """
    Logger that carries a request context into every record.

    Wraps a standard library logger and merges the context dict (repository,
    pull request number, event name) into the ``extra`` of each call so the
    formatter or an external handler can attach it to the log line.

    Args:
        name (str): The name of the logger instance
        request_context (dict, optional): Context merged into every log call
    """

    def __init__(self, name: str, request_context: Optional[dict] = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.request_context = request_context or {}

    def bind(self, **context) -> "Logger":
        """Return a new Logger whose context also contains ``context``."""
        merged = dict(self.request_context)
        merged.update(context)
        return Logger(self.base_logger.name, merged)

    def __merge_extra(self, extra: Optional[dict]) -> dict:
        if not extra:
            return dict(self.request_context)
        merged = dict(extra)
        merged.update(self.request_context)
        return merged

    def __prefix(self, message) -> str:
        if not self.request_context:
            return str(message)
        ctx = " ".join(f"{k}={v}" for k, v in self.request_context.items())
        return f"[{ctx}] {message}"

    def debug(self, message, extra=None):
        self.base_logger.debug(self.__prefix(message), extra=self.__merge_extra(extra))

    def info(self, message, extra=None):
        self.base_logger.info(self.__prefix(message), extra=self.__merge_extra(extra))

    def warning(self, message, extra=None):
        self.base_logger.warning(self.__prefix(message), extra=self.__merge_extra(extra))

    def error(self, message, extra=None, exc_info=False):
        self.base_logger.error(
            self.__prefix(message), extra=self.__merge_extra(extra), exc_info=exc_info
        )

    def critical(self, message, extra=None):
        self.base_logger.critical(self.__prefix(message), extra=self.__merge_extra(extra))
