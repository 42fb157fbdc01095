"""
Group FAMILY/MEMBER rows into family aggregates.

Rows are consumed once, in order. A FAMILY row opens a new aggregate (and
closes the previous one); MEMBER rows attach to the open aggregate. A MEMBER
row seen before any FAMILY row has no owner and is dropped.

Every aggregate gets a freshly minted id, so importing the same sheet twice
creates two copies of each family rather than updating the first.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from famcare.domain.families import reconcile_household_counts
from famcare.domain.imports.columns import (
    RELATIONSHIP_VALUES,
    STATUS_VALUES,
    Column,
    RecordType,
    fold_text,
    record_type_of,
)
from famcare.domain.imports.processors.tabular_processor import Row
from famcare.domain.imports.progress import ProgressReporter
from famcare.domain.models import HEAD_RELATIONSHIP, Family, FamilyAggregate, Member
from famcare.utils.date import compute_age, to_iso_date
from famcare.utils.documents import clean_identifier
from famcare.utils.phone import clean_phone
from famcare.utils.text import clean_text, parse_boolean, parse_int

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """Aggregates keyed by synthetic family id, in sheet order."""
    aggregates: Dict[str, FamilyAggregate] = field(default_factory=dict)
    orphan_member_rows: List[int] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return sum(len(aggregate.members) for aggregate in self.aggregates.values())


class _IdFactory:
    """Mints ``import-<record number>-<epoch ms>-<row index>-<run token>`` ids."""

    def __init__(self, clock: Callable[[], float]):
        self._clock = clock
        self._run_token = uuid.uuid4().hex[:6]

    def family_id(self, record_number: str, row_index: int) -> str:
        timestamp_ms = int(self._clock() * 1000)
        return f"import-{record_number}-{timestamp_ms}-{row_index}-{self._run_token}"


def _cell(row: Row, column: Column) -> str:
    return clean_text(row.get(column))


def _age(birth_date: str, row: Row, today: Optional[date]) -> int:
    computed = compute_age(birth_date, today=today) if birth_date else None
    if computed is not None:
        return computed
    return max(0, parse_int(row.get(Column.AGE), default=0))


def _status(row: Row) -> str:
    raw = _cell(row, Column.STATUS)
    if not raw:
        return "Active"
    status = STATUS_VALUES.get(fold_text(raw))
    if status is None:
        logger.warning("Unknown family status '%s'; importing as Pending", raw)
        return "Pending"
    return status


def _relationship(row: Row) -> str:
    raw = _cell(row, Column.RELATIONSHIP)
    return RELATIONSHIP_VALUES.get(fold_text(raw), raw)


def family_from_row(row: Row, family_id: str, today: Optional[date] = None) -> Family:
    birth_date = to_iso_date(_cell(row, Column.BIRTH_DATE))
    child_count = max(0, parse_int(row.get(Column.CHILD_COUNT), default=0))
    return Family(
        id=family_id,
        record_number=_cell(row, Column.RECORD_NUMBER),
        registered_at=to_iso_date(_cell(row, Column.REGISTRATION_DATE)),
        name=_cell(row, Column.NAME),
        marital_status=_cell(row, Column.MARITAL_STATUS),
        birth_date=birth_date,
        age=_age(birth_date, row, today),
        address=_cell(row, Column.ADDRESS),
        neighborhood=_cell(row, Column.NEIGHBORHOOD),
        phone=clean_phone(_cell(row, Column.PHONE)),
        has_whatsapp=parse_boolean(row.get(Column.HAS_WHATSAPP)),
        national_id=clean_identifier(_cell(row, Column.NATIONAL_ID)),
        state_id=clean_identifier(_cell(row, Column.STATE_ID)),
        has_children=parse_boolean(row.get(Column.HAS_CHILDREN)) or child_count > 0,
        child_count=child_count,
        household_size=max(1, parse_int(row.get(Column.HOUSEHOLD_SIZE), default=1)),
        # Sheet income is stored as written; the cents mask only applies to form input.
        income=_cell(row, Column.INCOME),
        health_condition=_cell(row, Column.HEALTH_CONDITION),
        housing_situation=_cell(row, Column.HOUSING_SITUATION),
        note=_cell(row, Column.NOTE),
        status=_status(row),
    )


def head_member(family: Family, row: Row) -> Member:
    """The head of household mirrors the family's own fields."""
    return Member(
        id=f"{family.id}-head",
        family_id=family.id,
        name=family.name,
        relationship=HEAD_RELATIONSHIP,
        birth_date=family.birth_date,
        birth_date_unknown=not family.birth_date,
        age=family.age,
        occupation=_cell(row, Column.OCCUPATION),
        occupation_note=_cell(row, Column.OCCUPATION_NOTE),
        income=family.income,
        health_condition=family.health_condition,
    )


def member_from_row(row: Row, family_id: str, position: int, today: Optional[date] = None) -> Member:
    birth_date = to_iso_date(_cell(row, Column.BIRTH_DATE))
    return Member(
        id=f"{family_id}-member-{position}",
        family_id=family_id,
        name=_cell(row, Column.NAME),
        relationship=_relationship(row),
        birth_date=birth_date,
        birth_date_unknown=not birth_date,
        age=_age(birth_date, row, today),
        occupation=_cell(row, Column.OCCUPATION),
        occupation_note=_cell(row, Column.OCCUPATION_NOTE),
        income=_cell(row, Column.INCOME),
        health_condition=_cell(row, Column.HEALTH_CONDITION),
    )


def _close(current: FamilyAggregate) -> FamilyAggregate:
    family = reconcile_household_counts(current.family, current.members)
    if family is current.family:
        return current
    return FamilyAggregate(family=family, members=current.members)


def reconcile_rows(
    rows: Iterable[Row],
    *,
    progress: Optional[ProgressReporter] = None,
    clock: Callable[[], float] = time.time,
    today: Optional[date] = None,
) -> ReconciliationResult:
    """
    Build one aggregate per FAMILY row with the MEMBER rows that follow it.

    Args:
        rows: FAMILY/MEMBER rows in sheet order
        progress: Advanced by one for every row consumed
        clock: Epoch-seconds source for synthetic ids
        today: Reference date for age computation (defaults to today)
    """
    ids = _IdFactory(clock)
    result = ReconciliationResult()
    current: Optional[FamilyAggregate] = None

    for index, row in enumerate(rows):
        record_type = record_type_of(row.get(Column.RECORD_TYPE))

        if record_type is RecordType.FAMILY:
            if current is not None:
                result.aggregates[current.family.id] = _close(current)

            family_id = ids.family_id(_cell(row, Column.RECORD_NUMBER), index)
            family = family_from_row(row, family_id, today=today)
            current = FamilyAggregate(family=family, members=[head_member(family, row)])

        elif record_type is RecordType.MEMBER:
            if current is None:
                logger.debug("Dropping MEMBER row %d: no FAMILY row precedes it", index)
                result.orphan_member_rows.append(index)
            else:
                position = len(current.members)
                current.members.append(
                    member_from_row(row, current.family.id, position, today=today)
                )

        if progress is not None:
            progress.row_processed()

    if current is not None:
        result.aggregates[current.family.id] = _close(current)

    logger.info(
        "Reconciled %d families with %d members (%d orphan member rows dropped)",
        len(result.aggregates),
        result.member_count,
        len(result.orphan_member_rows),
    )
    return result
