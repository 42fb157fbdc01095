"""
Dashboard summary endpoint.
"""
from typing import Literal

from fastapi import APIRouter, Depends

from famcare.api.dependencies import get_repository, persistence_failure
from famcare.api.schemas.shared import DashboardResponse
from famcare.core.security import get_current_account
from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.dashboard.stats import summarize

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
def dashboard_endpoint(
    period: Literal["6months", "year"] = "6months",
    account_id: str = Depends(get_current_account),
    repository: CaseRepository = Depends(get_repository),
):
    try:
        families = repository.list_families(account_id)
        visits = repository.list_visits(account_id)
        deliveries = repository.list_deliveries(account_id)
    except PersistenceError as e:
        raise persistence_failure(e)
    return DashboardResponse(success=True, summary=summarize(families, visits, deliveries, period=period))
