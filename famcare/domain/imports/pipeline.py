"""
Bulk family import: parse, reconcile, then persist.

The three stages run strictly one after another and hand their output
along as plain values:

1. ``parse_file`` reads the upload into FAMILY/MEMBER rows.
2. ``reconcile_rows`` groups them into family aggregates.
3. ``upsert_aggregates`` writes each aggregate through the repository.

Failures before stage 3 (no account, unreadable file, nothing to import)
raise and leave the database untouched. Failures inside stage 3 are
per-family and only show up in the counts.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from famcare.db.repository import CaseRepository
from famcare.domain.imports.coordinator import upsert_aggregates
from famcare.domain.imports.errors import AuthenticationError
from famcare.domain.imports.processors.tabular_processor import parse_file
from famcare.domain.imports.progress import ImportProgress, ProgressObserver, ProgressReporter
from famcare.domain.imports.reconciler import reconcile_rows

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    file_name: str
    progress: ImportProgress
    families_found: int = 0
    members_found: int = 0
    orphan_member_rows: List[int] = field(default_factory=list)
    stored_family_ids: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.progress.success > 0

    @property
    def status(self) -> str:
        return "completed" if self.succeeded else "failed"

    @property
    def message(self) -> str:
        if not self.succeeded:
            return "No family was imported. Check the file format."
        message = f"Import finished: {self.progress.success} family(ies) imported successfully."
        if self.progress.errors:
            message += f" {self.progress.errors} error(s)."
        return message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "status": self.status,
            "message": self.message,
            "progress": self.progress.to_dict(),
            "families_found": self.families_found,
            "members_found": self.members_found,
            "orphan_member_rows": self.orphan_member_rows,
            "stored_family_ids": self.stored_family_ids,
            "failures": [
                {"family_id": family_id, "error": error} for family_id, error in self.failures
            ],
        }


def require_account_id(account_id: Optional[str]) -> str:
    if not account_id or not str(account_id).strip():
        raise AuthenticationError()
    return str(account_id)


def import_file(
    file_name: str,
    file_content: bytes,
    *,
    account_id: Optional[str],
    repository: CaseRepository,
    on_progress: Optional[ProgressObserver] = None,
    clock: Callable[[], float] = time.time,
    today: Optional[date] = None,
) -> ImportSummary:
    """
    Import every family in an uploaded registration sheet.

    Args:
        file_name: Original file name; its extension picks the reader
        file_content: Raw file bytes
        account_id: Authenticated account the rows will belong to
        repository: Persistence gateway
        on_progress: Receives an ImportProgress snapshot after every row and family

    Returns:
        ImportSummary with final counts. ``status == "failed"`` when no family
        could be stored, even though nothing was raised.

    Raises:
        AuthenticationError: No account id was supplied
        ParseError: The file could not be read
        EmptyImportError: The file has no FAMILY/MEMBER rows
    """
    account_id = require_account_id(account_id)
    logger.info("Starting import of '%s' (%d bytes)", file_name, len(file_content))

    rows = list(parse_file(file_name, file_content))

    reporter = ProgressReporter(on_progress)
    reporter.start(len(rows))

    reconciled = reconcile_rows(rows, progress=reporter, clock=clock, today=today)
    outcome = upsert_aggregates(
        reconciled.aggregates,
        account_id=account_id,
        repository=repository,
        progress=reporter,
    )

    summary = ImportSummary(
        file_name=file_name,
        progress=reporter.snapshot,
        families_found=len(reconciled.aggregates),
        members_found=reconciled.member_count,
        orphan_member_rows=reconciled.orphan_member_rows,
        stored_family_ids=outcome.stored_ids,
        failures=outcome.failures,
    )
    if summary.succeeded:
        logger.info("Import of '%s' finished: %s", file_name, summary.message)
    else:
        logger.warning("Import of '%s' stored no families (%d errors)", file_name, outcome.errors)
    return summary
