import logging
from dataclasses import dataclass

from copctl.progress.base import ProgressReporter

log = logging.getLogger(__name__)

# log a line each time a download crosses one of these fractions
MILESTONES = (0.25, 0.5, 0.75)


@dataclass
class _Transfer:
    name: str
    received: int = 0
    expected: int | None = None
    next_milestone: int = 0


class SimpleProgressReporter(ProgressReporter):
    """Log lines instead of bars: start, quarter milestones and outcome of every download."""

    def __init__(self):
        self.total_items = 0
        self.completed = 0
        self.failed = 0
        self._transfers: dict[str, _Transfer] = {}

    def start(self, total_items: int = 0) -> None:
        super().start(total_items)
        self.total_items = total_items
        self.completed = 0
        self.failed = 0
        self._transfers.clear()
        log.info("Downloading %d products", total_items)

    def received(self, item_id: str) -> int:
        transfer = self._transfers.get(item_id)
        return transfer.received if transfer else 0

    def add_task(self, item_id: str, description: str) -> _Transfer:
        transfer = _Transfer(name=description)
        self._transfers[item_id] = transfer
        log.info("Downloading %s", description)
        return transfer

    def set_task_duration(self, item_id: str, total: int) -> None:
        if item_id in self._transfers:
            self._transfers[item_id].expected = total
            log.info("%s - expecting %d bytes", self._transfers[item_id].name, total)

    def update_progress(self, item_id: str, advance: int | None = None, description: str | None = None) -> None:
        transfer = self._transfers.get(item_id)
        if transfer is None:
            return
        transfer.received += advance or 0
        if not transfer.expected:
            return
        while transfer.next_milestone < len(MILESTONES):
            fraction = MILESTONES[transfer.next_milestone]
            if transfer.received < fraction * transfer.expected:
                break
            log.info("%s - %d%%", transfer.name, int(fraction * 100))
            transfer.next_milestone += 1

    def end_task(self, item_id: str, success: bool, description: str | None = None) -> None:
        transfer = self._transfers.get(item_id) or _Transfer(name=item_id)
        if success:
            self.completed += 1
            log.info("✓ %s (%d bytes)", transfer.name, transfer.received)
        else:
            self.failed += 1
            log.warning("✗ %s after %d bytes: %s", transfer.name, transfer.received, description or "failed")
        log.info("%d/%d products processed", self.completed + self.failed, self.total_items)

    def stop(self) -> None:
        super().stop()
        log.info("Downloads finished: %d successful, %d failed", self.completed, self.failed)
