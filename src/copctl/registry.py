"""Name to class mapping for interchangeable implementations.

Example:
    >>> from copctl.registry import Registry
    >>> from copctl.progress import ProgressReporter, SimpleProgressReporter
    >>>
    >>> reporters = Registry[ProgressReporter]("reporter")
    >>> reporters.register("simple", SimpleProgressReporter)
    >>> reporter = reporters.create("simple")
"""

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class Registry(Generic[T]):
    def __init__(self, kind: str):
        self.kind = kind
        self._classes: dict[str, type[T]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._classes

    def __iter__(self) -> Iterator[str]:
        return iter(self._classes)

    def register(self, name: str, cls: type[T]) -> None:
        if name in self._classes:
            raise ValueError(f"A {self.kind} named '{name}' is already registered")
        self._classes[name] = cls

    def get(self, name: str) -> type[T]:
        try:
            return self._classes[name]
        except KeyError:
            choices = ", ".join(self._classes)
            raise ValueError(f"Unknown {self.kind} '{name}', choose one of: {choices}") from None

    def create(self, name: str, **kwargs) -> T:
        return self.get(name)(**kwargs)

    def names(self) -> list[str]:
        return list(self._classes)
