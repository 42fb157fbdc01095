"""
Shared dependencies, state, and helpers for the API routers.
"""
import logging
import threading
import uuid
from collections import OrderedDict
from datetime import date
from typing import List, Optional, Tuple

from fastapi import HTTPException, Request

from famcare.api.schemas.shared import FamilyFields, FamilyPatchFields, ImportTaskStatus, MemberFields
from famcare.core.config import settings
from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.models import Family, Member
from famcare.utils.currency import format_currency
from famcare.utils.date import compute_age, to_iso_date
from famcare.utils.documents import clean_identifier
from famcare.utils.phone import clean_phone

logger = logging.getLogger(__name__)


class ImportTaskStore:
    """
    Background import statuses, keyed by task id and scoped to the owning account.

    At most ``capacity`` tasks are kept. When a new task would exceed it, the
    oldest finished task is evicted first; running tasks go only when every
    kept task is still running.
    """

    FINISHED = ("completed", "failed")

    def __init__(self, capacity: int):
        self.capacity = max(1, capacity)
        self._tasks: "OrderedDict[str, Tuple[str, ImportTaskStatus]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tasks)

    def create(self, owner: str, status: ImportTaskStatus) -> None:
        with self._lock:
            self._tasks[status.task_id] = (owner, status)
            while len(self._tasks) > self.capacity:
                self._evict_one()

    def update(self, status: ImportTaskStatus) -> None:
        with self._lock:
            entry = self._tasks.get(status.task_id)
            if entry is None:
                logger.debug("Dropping update for evicted import task %s", status.task_id)
                return
            self._tasks[status.task_id] = (entry[0], status)

    def get(self, task_id: str, owner: str) -> Optional[ImportTaskStatus]:
        entry = self._tasks.get(task_id)
        if entry is None or entry[0] != owner:
            return None
        return entry[1]

    def clear(self) -> None:
        with self._lock:
            self._tasks.clear()

    def _evict_one(self) -> None:
        victim = next(
            (task_id for task_id, (_, status) in self._tasks.items() if status.status in self.FINISHED),
            next(iter(self._tasks)),
        )
        del self._tasks[victim]
        logger.debug("Evicted import task %s", victim)


import_task_store = ImportTaskStore(settings.import_task_history)


def get_repository(request: Request) -> CaseRepository:
    """The repository built by the application lifespan."""
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    return repository


def persistence_failure(e: PersistenceError) -> HTTPException:
    """Surface a backend failure with the backend's own message."""
    return HTTPException(status_code=502, detail=e.message)


def _age_for(birth_date: str, supplied_age: Optional[int], today: Optional[date] = None) -> int:
    # A known birth date wins; otherwise keep the manually entered age.
    if birth_date:
        computed = compute_age(birth_date, today=today)
        if computed is not None:
            return computed
    return max(0, supplied_age or 0)


def build_family(fields: FamilyFields, family_id: Optional[str] = None) -> Family:
    data = fields.model_dump()
    data["id"] = family_id or fields.id or str(uuid.uuid4())
    data["birth_date"] = to_iso_date(fields.birth_date)
    data["registered_at"] = to_iso_date(fields.registered_at) or date.today().isoformat()
    data["age"] = _age_for(data["birth_date"], fields.age)
    data["phone"] = clean_phone(fields.phone)
    data["national_id"] = clean_identifier(fields.national_id)
    data["state_id"] = clean_identifier(fields.state_id)
    data["income"] = format_currency(fields.income) if fields.income.strip() else ""
    data["has_children"] = fields.has_children or fields.child_count > 0
    return Family(**data)


def merge_family(stored: Family, fields: FamilyPatchFields) -> Family:
    """Apply the fields sent in a PATCH over the stored family, normalised like a full save."""
    sent = {key: value for key, value in fields.model_dump(exclude_unset=True).items() if value is not None}
    if "birth_date" in sent:
        sent["birth_date"] = to_iso_date(sent["birth_date"])
    if "registered_at" in sent:
        sent["registered_at"] = to_iso_date(sent["registered_at"]) or stored.registered_at
    if "phone" in sent:
        sent["phone"] = clean_phone(sent["phone"])
    for key in ("national_id", "state_id"):
        if key in sent:
            sent[key] = clean_identifier(sent[key])
    if "income" in sent:
        sent["income"] = format_currency(sent["income"]) if sent["income"].strip() else ""
    if "birth_date" in sent or "age" in sent:
        birth_date = sent.get("birth_date", stored.birth_date)
        sent["age"] = _age_for(birth_date, sent.get("age", stored.age))

    merged = stored.model_copy(update=sent)
    if merged.child_count > 0 and not merged.has_children:
        merged = merged.model_copy(update={"has_children": True})
    return merged


def build_member(fields: MemberFields, family_id: str) -> Member:
    data = fields.model_dump()
    birth_date = "" if fields.birth_date_unknown else to_iso_date(fields.birth_date)
    data["id"] = fields.id or f"m_{uuid.uuid4().hex}"
    data["family_id"] = family_id
    data["birth_date"] = birth_date
    data["birth_date_unknown"] = not birth_date
    data["age"] = _age_for(birth_date, fields.age)
    data["income"] = format_currency(fields.income) if fields.income.strip() else ""
    return Member(**data)


def build_members(fields: List[MemberFields], family_id: str) -> List[Member]:
    return [build_member(member, family_id) for member in fields]
