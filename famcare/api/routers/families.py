"""
Family registry endpoints: families and the members they own.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from famcare.api.dependencies import (
    build_family,
    build_member,
    build_members,
    get_repository,
    merge_family,
    persistence_failure,
)
from famcare.api.schemas.shared import (
    DeleteResponse,
    FamilyListResponse,
    FamilyPatchFields,
    FamilyResponse,
    FamilyWithMembersRequest,
    MemberFields,
    NextRecordNumberResponse,
)
from famcare.core.security import get_current_account
from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.families import reconcile_household_counts
from famcare.domain.models import HEAD_RELATIONSHIP, Family

router = APIRouter(prefix="/families", tags=["families"])

logger = logging.getLogger(__name__)


def _require_family(repository: CaseRepository, account_id: str, family_id: str) -> Family:
    family = repository.get_family(account_id, family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="Family not found")
    return family


@router.get("", response_model=FamilyListResponse)
def list_families_endpoint(
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        families = repository.list_families(account_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    return FamilyListResponse(success=True, families=families, total_count=len(families))


@router.get("/next-record-number", response_model=NextRecordNumberResponse)
def next_record_number_endpoint(
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """Suggested record number for the next family registration."""
    try:
        return NextRecordNumberResponse(
            success=True, record_number=repository.next_record_number(account_id)
        )
    except PersistenceError as e:
        raise persistence_failure(e)


@router.get("/{family_id}", response_model=FamilyResponse)
def get_family_endpoint(
    family_id: str,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        family = _require_family(repository, account_id, family_id)
        members = repository.list_members(account_id, family_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    members.sort(key=lambda member: (not member.is_head, member.id))
    return FamilyResponse(success=True, family=family, members=members)


def _save_family(
    request: FamilyWithMembersRequest,
    account_id: str,
    repository: CaseRepository,
    family_id: Optional[str] = None,
) -> FamilyResponse:
    family = build_family(request.family, family_id=family_id)
    members = build_members(request.members, family.id)
    heads = sum(1 for member in members if member.is_head)
    if heads > 1:
        raise HTTPException(status_code=400, detail="A family has exactly one head of household")
    if heads == 0:
        head = MemberFields(
            name=family.name,
            relationship=HEAD_RELATIONSHIP,
            birth_date=family.birth_date,
            age=family.age,
            income=family.income,
            health_condition=family.health_condition,
        )
        members.insert(0, build_member(head, family.id))
    family = reconcile_household_counts(family, members)

    try:
        repository.replace_family(account_id, family, members)
    except PersistenceError as e:
        raise persistence_failure(e)
    logger.info("Saved family %s with %d members", family.id, len(members))
    return FamilyResponse(success=True, family=family, members=members)


@router.post("", response_model=FamilyResponse, status_code=201)
def create_family_endpoint(
    request: FamilyWithMembersRequest,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """
    Register a family together with its members.

    A head-of-household member mirroring the family fields is added when the
    payload does not include one; more than one head is rejected.
    """
    return _save_family(request, account_id, repository)


@router.put("/{family_id}", response_model=FamilyResponse)
def replace_family_endpoint(
    family_id: str,
    request: FamilyWithMembersRequest,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """Overwrite a family and replace its full member list."""
    return _save_family(request, account_id, repository, family_id=family_id)


@router.patch("/{family_id}", response_model=FamilyResponse)
def update_family_endpoint(
    family_id: str,
    fields: FamilyPatchFields,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """
    Update the family row only; members are left as they are.

    Omitted fields keep their stored values. The household size is raised
    again if the new value no longer covers the stored members.
    """
    try:
        stored = _require_family(repository, account_id, family_id)
        members = repository.list_members(account_id, family_id)
        family = reconcile_household_counts(merge_family(stored, fields), members)
        if not repository.update_family(account_id, family):
            raise HTTPException(status_code=404, detail="Family not found")
    except PersistenceError as e:
        raise persistence_failure(e)
    return FamilyResponse(success=True, family=family, members=members)


@router.delete("/{family_id}", response_model=DeleteResponse)
def delete_family_endpoint(
    family_id: str,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        deleted = repository.delete_family(account_id, family_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Family not found")
    logger.info("Deleted family %s", family_id)
    return DeleteResponse(success=True)


@router.post("/{family_id}/members", response_model=FamilyResponse, status_code=201)
def add_member_endpoint(
    family_id: str,
    fields: MemberFields,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """Add one member; the household size (and child count for children) grows with it."""
    try:
        family = _require_family(repository, account_id, family_id)
        member = build_member(fields, family_id)
        if member.is_head and any(m.is_head for m in repository.list_members(account_id, family_id)):
            raise HTTPException(status_code=400, detail="The family already has a head of household")
        family = repository.add_member(account_id, family, member)
        members = repository.list_members(account_id, family_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    return FamilyResponse(success=True, family=family, members=members)


@router.delete("/{family_id}/members/{member_id}", response_model=FamilyResponse)
def remove_member_endpoint(
    family_id: str,
    member_id: str,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        family = _require_family(repository, account_id, family_id)
        members = repository.list_members(account_id, family_id)
        member = next((m for m in members if m.id == member_id), None)
        if member is None:
            raise HTTPException(status_code=404, detail="Member not found")
        if member.is_head:
            raise HTTPException(status_code=400, detail="The head of household cannot be removed")
        family = repository.remove_member(account_id, family, member)
    except PersistenceError as e:
        raise persistence_failure(e)
    remaining = [m for m in members if m.id != member_id]
    return FamilyResponse(success=True, family=family, members=remaining)
