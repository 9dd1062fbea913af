"""Progress reporting for long running operations (product downloads).

- EmptyProgressReporter: No-op reporter for silent operation
- SimpleProgressReporter: Basic log-based progress output
- RichProgressReporter: Terminal progress bars, requires the `console` extra

Reporters listen to the events emitted through `copctl.progress.events`.
"""

from typing import Any

from copctl.progress.base import EmptyProgressReporter, LoggingConfig, ProgressReporter
from copctl.progress.rich import RichProgressReporter
from copctl.progress.simple import SimpleProgressReporter
from copctl.registry import Registry

registry = Registry[ProgressReporter]("reporter")
registry.register("empty", EmptyProgressReporter)
registry.register("simple", SimpleProgressReporter)
registry.register("rich", RichProgressReporter)

__all__ = [
    "ProgressReporter",
    "EmptyProgressReporter",
    "SimpleProgressReporter",
    "RichProgressReporter",
    "LoggingConfig",
    "create_reporter",
]


def create_reporter(reporter_name: str, **kwargs: Any) -> ProgressReporter:
    return registry.create(reporter_name, **kwargs)
