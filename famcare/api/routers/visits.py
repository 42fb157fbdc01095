"""
Home visit log endpoints.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from famcare.api.dependencies import get_repository, persistence_failure
from famcare.api.schemas.shared import DeleteResponse, VisitFields, VisitListResponse, VisitResponse
from famcare.core.security import get_current_account
from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.models import Visit
from famcare.utils.date import to_iso_date

router = APIRouter(prefix="/visits", tags=["visits"])


def _build_visit(fields: VisitFields, visit_id: str) -> Visit:
    data = fields.model_dump()
    data["id"] = visit_id
    data["date"] = to_iso_date(fields.date)
    data["attendees"] = [name.strip() for name in fields.attendees if name.strip()]
    return Visit(**data)


@router.get("", response_model=VisitListResponse)
def list_visits_endpoint(
    family_id: Optional[str] = None,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """All visits, newest first; pass ``family_id`` to see one family's history."""
    try:
        visits = repository.list_visits(account_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    if family_id:
        visits = [visit for visit in visits if visit.family_id == family_id]
    return VisitListResponse(success=True, visits=visits, total_count=len(visits))


@router.post("", response_model=VisitResponse, status_code=201)
def add_visit_endpoint(
    fields: VisitFields,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    visit = _build_visit(fields, f"v_{uuid.uuid4().hex}")
    try:
        repository.add_visit(account_id, visit)
    except PersistenceError as e:
        raise persistence_failure(e)
    return VisitResponse(success=True, visit=visit)


@router.put("/{visit_id}", response_model=VisitResponse)
def update_visit_endpoint(
    visit_id: str,
    fields: VisitFields,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    visit = _build_visit(fields, visit_id)
    try:
        updated = repository.update_visit(account_id, visit)
    except PersistenceError as e:
        raise persistence_failure(e)
    if not updated:
        raise HTTPException(status_code=404, detail="Visit not found")
    return VisitResponse(success=True, visit=visit)


@router.delete("/{visit_id}", response_model=DeleteResponse)
def delete_visit_endpoint(
    visit_id: str,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        deleted = repository.delete_visit(account_id, visit_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Visit not found")
    return DeleteResponse(success=True)
