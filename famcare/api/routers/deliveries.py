"""
Food and supply delivery endpoints.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from famcare.api.dependencies import get_repository, persistence_failure
from famcare.api.schemas.shared import (
    DeleteResponse,
    DeliveryFields,
    DeliveryListResponse,
    DeliveryResponse,
)
from famcare.core.security import get_current_account
from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.models import Delivery
from famcare.utils.date import to_iso_date

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("", response_model=DeliveryListResponse)
def list_deliveries_endpoint(
    family_id: Optional[str] = None,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        deliveries = repository.list_deliveries(account_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    if family_id:
        deliveries = [delivery for delivery in deliveries if delivery.family_id == family_id]
    return DeliveryListResponse(success=True, deliveries=deliveries, total_count=len(deliveries))


@router.post("", response_model=DeliveryResponse, status_code=201)
def add_delivery_endpoint(
    fields: DeliveryFields,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    data = fields.model_dump()
    data["id"] = f"d_{uuid.uuid4().hex}"
    data["date"] = to_iso_date(fields.date)
    if fields.outcome != "Delivered":
        # Collection details only apply to delivered items.
        data["collected_by"] = None
        data["collected_by_detail"] = ""
    delivery = Delivery(**data)
    try:
        repository.add_delivery(account_id, delivery)
    except PersistenceError as e:
        raise persistence_failure(e)
    return DeliveryResponse(success=True, delivery=delivery)


@router.delete("", response_model=DeleteResponse)
def delete_deliveries_endpoint(
    family_id: str,
    date: str,
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    """Undo the deliveries recorded for a family on one day."""
    try:
        deleted = repository.delete_deliveries_for_family_on(account_id, family_id, to_iso_date(date))
    except PersistenceError as e:
        raise persistence_failure(e)
    if deleted == 0:
        raise HTTPException(status_code=404, detail="No delivery found for that family and date")
    return DeleteResponse(success=True, deleted=deleted)
