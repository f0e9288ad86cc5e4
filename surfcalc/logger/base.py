"""Abstract logger interface.

Any object implementing these five methods can be dropped in wherever the
application expects a Logger.
"""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Logger accepting a message plus arbitrary structured fields."""

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        pass

    @abstractmethod
    def critical(self, message: str, **kwargs: Any) -> None:
        pass
