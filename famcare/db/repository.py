"""
Case repository: the single gateway between the service and the database.

A ``CaseRepository`` is constructed explicitly around an engine and passed
to whoever needs it (routers receive it through a FastAPI dependency, the
import pipeline as an argument). Every operation is scoped to an account id
and every database failure surfaces as ``PersistenceError`` carrying the
backend's own message.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from famcare.db import tables
from famcare.domain.families import (
    next_record_number,
    with_member_added,
    with_member_removed,
)
from famcare.domain.models import Delivery, Family, Member, Visit

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PersistenceError(Exception):
    """Raised when the database rejects or fails an operation."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(message)


def _error_message(exc: SQLAlchemyError) -> str:
    origin = getattr(exc, "orig", None)
    return str(origin) if origin is not None else str(exc)


def _to_row(model: BaseModel, account_id: str) -> Dict[str, Any]:
    row = model.model_dump()
    row["user_id"] = account_id
    return row


def _to_model(model_cls: Type[ModelT], row: Any) -> ModelT:
    mapping = row._mapping
    return model_cls(**{name: mapping[name] for name in model_cls.model_fields if name in mapping})


class CaseRepository:
    """Account-scoped CRUD over families, members, visits and deliveries."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except SQLAlchemyError as exc:
            message = _error_message(exc)
            logger.error("Database operation '%s' failed: %s", operation, message)
            raise PersistenceError(message, operation=operation) from exc

    # ------------------------------------------------------------------
    # Families and members
    # ------------------------------------------------------------------

    def list_families(self, account_id: str) -> List[Family]:
        query = (
            select(tables.families)
            .where(tables.families.c.user_id == account_id)
            .order_by(tables.families.c.record_number)
        )
        with self._transaction("list_families") as conn:
            return [_to_model(Family, row) for row in conn.execute(query)]

    def get_family(self, account_id: str, family_id: str) -> Optional[Family]:
        query = select(tables.families).where(
            and_(tables.families.c.user_id == account_id, tables.families.c.id == family_id)
        )
        with self._transaction("get_family") as conn:
            row = conn.execute(query).first()
        return _to_model(Family, row) if row is not None else None

    def list_members(self, account_id: str, family_id: Optional[str] = None) -> List[Member]:
        conditions = [tables.members.c.user_id == account_id]
        if family_id is not None:
            conditions.append(tables.members.c.family_id == family_id)
        query = select(tables.members).where(and_(*conditions))
        with self._transaction("list_members") as conn:
            return [_to_model(Member, row) for row in conn.execute(query)]

    def next_record_number(self, account_id: str) -> str:
        query = select(tables.families.c.record_number).where(tables.families.c.user_id == account_id)
        with self._transaction("next_record_number") as conn:
            numbers = [row.record_number for row in conn.execute(query)]
        return next_record_number(numbers)

    def _upsert_family(self, conn: Connection, account_id: str, family: Family) -> None:
        families = tables.families
        existing = conn.execute(
            select(families.c.id).where(
                and_(families.c.id == family.id, families.c.user_id == account_id)
            )
        ).first()
        row = _to_row(family, account_id)
        if existing is None:
            conn.execute(insert(families).values(**row))
        else:
            conn.execute(
                update(families)
                .where(and_(families.c.id == family.id, families.c.user_id == account_id))
                .values(**row)
            )

    def replace_family(self, account_id: str, family: Family, members: List[Member]) -> None:
        """
        Upsert the family row, then replace its whole member set.

        The three steps share one transaction, so a failure in any of them
        leaves the previously stored family and members untouched.
        """
        with self._transaction("replace_family") as conn:
            self._upsert_family(conn, account_id, family)
            conn.execute(
                delete(tables.members).where(
                    and_(
                        tables.members.c.user_id == account_id,
                        tables.members.c.family_id == family.id,
                    )
                )
            )
            if members:
                conn.execute(
                    insert(tables.members),
                    [_to_row(member, account_id) for member in members],
                )
        logger.debug("Stored family %s with %d members", family.id, len(members))

    def update_family(self, account_id: str, family: Family) -> bool:
        families = tables.families
        with self._transaction("update_family") as conn:
            result = conn.execute(
                update(families)
                .where(and_(families.c.id == family.id, families.c.user_id == account_id))
                .values(**_to_row(family, account_id))
            )
        return result.rowcount > 0

    def delete_family(self, account_id: str, family_id: str) -> bool:
        """Delete a family and, explicitly, its members."""
        with self._transaction("delete_family") as conn:
            conn.execute(
                delete(tables.members).where(
                    and_(
                        tables.members.c.user_id == account_id,
                        tables.members.c.family_id == family_id,
                    )
                )
            )
            result = conn.execute(
                delete(tables.families).where(
                    and_(tables.families.c.user_id == account_id, tables.families.c.id == family_id)
                )
            )
        return result.rowcount > 0

    def add_member(self, account_id: str, family: Family, member: Member) -> Family:
        """Insert ``member`` and bump the family's household counts; returns the updated family."""
        updated = with_member_added(family, member)
        families = tables.families
        with self._transaction("add_member") as conn:
            conn.execute(
                update(families)
                .where(and_(families.c.id == family.id, families.c.user_id == account_id))
                .values(**_to_row(updated, account_id))
            )
            conn.execute(insert(tables.members).values(**_to_row(member, account_id)))
        return updated

    def remove_member(self, account_id: str, family: Family, member: Member) -> Family:
        updated = with_member_removed(family, member)
        families = tables.families
        with self._transaction("remove_member") as conn:
            conn.execute(
                delete(tables.members).where(
                    and_(tables.members.c.user_id == account_id, tables.members.c.id == member.id)
                )
            )
            conn.execute(
                update(families)
                .where(and_(families.c.id == family.id, families.c.user_id == account_id))
                .values(**_to_row(updated, account_id))
            )
        return updated

    # ------------------------------------------------------------------
    # Visits
    # ------------------------------------------------------------------

    def list_visits(self, account_id: str) -> List[Visit]:
        query = (
            select(tables.visits)
            .where(tables.visits.c.user_id == account_id)
            .order_by(tables.visits.c.date.desc())
        )
        with self._transaction("list_visits") as conn:
            return [_to_model(Visit, row) for row in conn.execute(query)]

    def add_visit(self, account_id: str, visit: Visit) -> None:
        with self._transaction("add_visit") as conn:
            conn.execute(insert(tables.visits).values(**_to_row(visit, account_id)))

    def update_visit(self, account_id: str, visit: Visit) -> bool:
        visits = tables.visits
        with self._transaction("update_visit") as conn:
            result = conn.execute(
                update(visits)
                .where(and_(visits.c.id == visit.id, visits.c.user_id == account_id))
                .values(**_to_row(visit, account_id))
            )
        return result.rowcount > 0

    def delete_visit(self, account_id: str, visit_id: str) -> bool:
        visits = tables.visits
        with self._transaction("delete_visit") as conn:
            result = conn.execute(
                delete(visits).where(and_(visits.c.id == visit_id, visits.c.user_id == account_id))
            )
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    def list_deliveries(self, account_id: str) -> List[Delivery]:
        query = (
            select(tables.deliveries)
            .where(tables.deliveries.c.user_id == account_id)
            .order_by(tables.deliveries.c.date.desc())
        )
        with self._transaction("list_deliveries") as conn:
            return [_to_model(Delivery, row) for row in conn.execute(query)]

    def add_delivery(self, account_id: str, delivery: Delivery) -> None:
        with self._transaction("add_delivery") as conn:
            conn.execute(insert(tables.deliveries).values(**_to_row(delivery, account_id)))

    def delete_deliveries_for_family_on(self, account_id: str, family_id: str, date: str) -> int:
        """Delete every delivery recorded for ``family_id`` on ``date``; returns how many went."""
        deliveries = tables.deliveries
        with self._transaction("delete_deliveries_for_family_on") as conn:
            result = conn.execute(
                delete(deliveries).where(
                    and_(
                        deliveries.c.user_id == account_id,
                        deliveries.c.family_id == family_id,
                        deliveries.c.date == date,
                    )
                )
            )
        return result.rowcount
