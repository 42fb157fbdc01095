"""
Import progress reporting.

The reporter owns the only mutable state of an import run: the
``{total, processed, success, errors}`` counters. After every change it
publishes an immutable :class:`ImportProgress` snapshot to the observer the
caller injected (a UI callback, a task store, a test list...).
"""
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class ImportProgress:
    total: int = 0
    processed: int = 0
    success: int = 0
    errors: int = 0

    @property
    def ratio(self) -> float:
        """Fraction of rows consumed, for progress bars."""
        return self.processed / self.total if self.total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


ProgressObserver = Callable[[ImportProgress], None]


class ProgressReporter:
    """Accumulates counters for one import run and pushes each snapshot to ``observer``."""

    def __init__(self, observer: Optional[ProgressObserver] = None):
        self._observer = observer
        self._snapshot = ImportProgress()

    @property
    def snapshot(self) -> ImportProgress:
        return self._snapshot

    def _publish(self, **changes: int) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        if self._observer is not None:
            self._observer(self._snapshot)

    def start(self, total: int) -> None:
        self._publish(total=total, processed=0, success=0, errors=0)

    def row_processed(self) -> None:
        self._publish(processed=self._snapshot.processed + 1)

    def aggregate_stored(self) -> None:
        self._publish(success=self._snapshot.success + 1)

    def aggregate_failed(self) -> None:
        self._publish(errors=self._snapshot.errors + 1)
