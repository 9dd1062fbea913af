import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from copctl.model import ProgressEvent, ProgressEventType
from copctl.progress.events import get_bus

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class LoggingConfig:
    """Logging setup that plays well with a given reporter."""

    format: str = DEFAULT_LOG_FORMAT
    handlers: list[logging.Handler] | None = field(default=None)


class ProgressReporter(ABC):
    """Base class for progress reporters.

    Reporters listen on the event bus between `start()` and `stop()`, translating
    progress events into calls to the abstract task methods.
    """

    @classmethod
    def logging_config(cls) -> LoggingConfig:
        return LoggingConfig()

    def start(self, total_items: int = 0) -> None:
        get_bus().subscribe(self.handle)

    def stop(self) -> None:
        get_bus().unsubscribe(self.handle)

    def handle(self, event: ProgressEvent) -> None:
        data = event.data
        if event.type == ProgressEventType.TASK_CREATED:
            self.add_task(event.task_id, data.get("description", ""))
        elif event.type == ProgressEventType.TASK_DURATION:
            self.set_task_duration(event.task_id, data["duration"])
        elif event.type == ProgressEventType.TASK_PROGRESS:
            self.update_progress(event.task_id, advance=data.get("advance"), description=data.get("description"))
        elif event.type == ProgressEventType.TASK_COMPLETED:
            self.end_task(event.task_id, success=data.get("success", False), description=data.get("description"))

    @abstractmethod
    def add_task(self, item_id: str, description: str) -> Any: ...

    @abstractmethod
    def set_task_duration(self, item_id: str, total: int) -> None: ...

    @abstractmethod
    def update_progress(self, item_id: str, advance: int | None = None, description: str | None = None) -> None: ...

    @abstractmethod
    def end_task(self, item_id: str, success: bool, description: str | None = None) -> None: ...


class EmptyProgressReporter(ProgressReporter):
    """
    Empty reporter to avoid continuos checks against None
    """

    def start(self, total_items: int = 0) -> None:
        pass

    def stop(self) -> None:
        pass

    def add_task(self, item_id: str, description: str) -> Any:
        pass

    def set_task_duration(self, item_id: str, total: int) -> None:
        pass

    def update_progress(self, item_id: str, advance: int | None = None, description: str | None = None) -> None:
        pass

    def end_task(self, item_id: str, success: bool, description: str | None = None) -> None:
        pass
