from typing import Any

from copctl.progress.base import LoggingConfig, ProgressReporter


class RichProgressReporter(ProgressReporter):
    """Terminal bars, one per product archive, numbered against the expected total."""

    def __init__(self):
        try:
            from rich.progress import (
                BarColumn,
                DownloadColumn,
                Progress,
                SpinnerColumn,
                TextColumn,
                TimeRemainingColumn,
                TransferSpeedColumn,
            )
        except ImportError as e:
            raise ImportError(
                "rich is not installed, please ensure to install it manually or include the extra `copctl[console]`"
            ) from e

        self.progress = Progress(
            SpinnerColumn(finished_text=" "),
            TextColumn("{task.description}"),
            BarColumn(bar_width=None),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
        )
        self.total_items = 0
        self._seen = 0
        self._tasks: dict[str, Any] = {}
        self._labels: dict[str, str] = {}

    @classmethod
    def logging_config(cls) -> LoggingConfig:
        from rich.logging import RichHandler

        # log lines are printed above the live bars
        return LoggingConfig(format="%(message)s", handlers=[RichHandler(rich_tracebacks=True)])

    def start(self, total_items: int = 0) -> None:
        super().start(total_items)
        self.total_items = total_items
        self._seen = 0
        self._tasks.clear()
        self._labels.clear()
        self.progress.start()

    def add_task(self, item_id: str, description: str) -> Any:
        from rich.markup import escape

        self._seen += 1
        label = f"[{self._seen}/{self.total_items}] {description}" if self.total_items else description
        # total stays unknown until Content-Length arrives
        task_id = self.progress.add_task(escape(label), total=None)
        self._tasks[item_id] = task_id
        self._labels[item_id] = label
        return task_id

    def set_task_duration(self, item_id: str, total: int) -> None:
        if item_id in self._tasks:
            self.progress.update(self._tasks[item_id], total=total)

    def update_progress(self, item_id: str, advance: int | None = None, description: str | None = None) -> None:
        if item_id in self._tasks:
            self.progress.update(self._tasks[item_id], advance=advance, description=description)

    def end_task(self, item_id: str, success: bool, description: str | None = None) -> None:
        task_id = self._tasks.pop(item_id, None)
        if task_id is None:
            return
        from rich.markup import escape

        label = escape(self._labels.pop(item_id))
        if success:
            text = f"[green]✓[/green] {label}"
        else:
            text = f"[red]✗[/red] {label}" + (f" [red]{escape(description)}[/red]" if description else "")
        self.progress.update(task_id, description=text)
        self.progress.stop_task(task_id)

    def stop(self) -> None:
        super().stop()
        self.progress.stop()
