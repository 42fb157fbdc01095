"""
Persist reconciled family aggregates one at a time.

Each aggregate is written with ``CaseRepository.replace_family``. A family
the database rejects is logged, counted and skipped; the loop always runs to
the end. Uploads are strictly sequential so the progress counters need no
locking and the backend never sees more than one write per import.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.imports.progress import ProgressReporter
from famcare.domain.models import FamilyAggregate

logger = logging.getLogger(__name__)


@dataclass
class UpsertOutcome:
    success: int = 0
    errors: int = 0
    stored_ids: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (synthetic id, message)

    @property
    def failed(self) -> bool:
        """True when not a single family made it to the database."""
        return self.success == 0


def upsert_aggregates(
    aggregates: Dict[str, FamilyAggregate],
    *,
    account_id: str,
    repository: CaseRepository,
    progress: Optional[ProgressReporter] = None,
) -> UpsertOutcome:
    outcome = UpsertOutcome()

    for family_id, aggregate in aggregates.items():
        try:
            repository.replace_family(account_id, aggregate.family, aggregate.members)
        except PersistenceError as e:
            outcome.errors += 1
            outcome.failures.append((family_id, e.message))
            logger.warning(
                "Failed to import family %s (record %s): %s",
                family_id,
                aggregate.family.record_number or "-",
                e.message,
            )
            if progress is not None:
                progress.aggregate_failed()
            continue

        outcome.success += 1
        outcome.stored_ids.append(family_id)
        if progress is not None:
            progress.aggregate_stored()

    logger.info("Stored %d families, %d failed", outcome.success, outcome.errors)
    return outcome
