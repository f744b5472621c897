from abc import ABC, abstractmethod

class Logger(ABC):
    """Structured event logger: an event name plus keyword fields."""

    @abstractmethod
    def info(self, event: str, **data): ...

    @abstractmethod
    def debug(self, event: str, **data): ...

    @abstractmethod
    def warning(self, event: str, **data): ...

    @abstractmethod
    def error(self, event: str, **data): ...
