from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from famcare.domain.models import (
    CollectedBy,
    Delivery,
    DeliveryOutcome,
    Family,
    FamilyStatus,
    Member,
    Visit,
)


class FamilyFields(BaseModel):
    """Family payload as sent by the registration form; the id is optional on create."""
    id: Optional[str] = None
    record_number: str = ""
    registered_at: str = ""
    name: str
    marital_status: str = ""
    birth_date: str = ""
    age: int = 0
    address: str = ""
    neighborhood: str = ""
    phone: str = ""
    has_whatsapp: bool = False
    national_id: str = ""
    state_id: str = ""
    has_children: bool = False
    child_count: int = Field(default=0, ge=0)
    household_size: int = Field(default=1, ge=1)
    income: str = ""
    health_condition: str = ""
    housing_situation: str = ""
    note: str = ""
    status: FamilyStatus = "Active"


class FamilyPatchFields(BaseModel):
    """Partial family update; only the fields present in the payload are applied."""
    record_number: Optional[str] = None
    registered_at: Optional[str] = None
    name: Optional[str] = None
    marital_status: Optional[str] = None
    birth_date: Optional[str] = None
    age: Optional[int] = None
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    phone: Optional[str] = None
    has_whatsapp: Optional[bool] = None
    national_id: Optional[str] = None
    state_id: Optional[str] = None
    has_children: Optional[bool] = None
    child_count: Optional[int] = Field(default=None, ge=0)
    household_size: Optional[int] = Field(default=None, ge=1)
    income: Optional[str] = None
    health_condition: Optional[str] = None
    housing_situation: Optional[str] = None
    note: Optional[str] = None
    status: Optional[FamilyStatus] = None


class MemberFields(BaseModel):
    id: Optional[str] = None
    name: str
    relationship: str = ""
    birth_date: str = ""
    birth_date_unknown: bool = False
    age: Optional[int] = None  # Required when the birth date is unknown
    occupation: str = ""
    occupation_note: str = ""
    income: str = ""
    health_condition: str = ""
    education: str = ""
    work: str = ""


class FamilyWithMembersRequest(BaseModel):
    family: FamilyFields
    members: List[MemberFields] = Field(default_factory=list)


class FamilyResponse(BaseModel):
    success: bool
    family: Family
    members: List[Member] = Field(default_factory=list)


class FamilyListResponse(BaseModel):
    success: bool
    families: List[Family]
    total_count: int


class NextRecordNumberResponse(BaseModel):
    success: bool
    record_number: str


class VisitFields(BaseModel):
    family_id: str
    date: str
    attendees: List[str] = Field(default_factory=list)
    reason: str = ""
    narrative: str = ""
    identified_needs: List[str] = Field(default_factory=list)


class VisitListResponse(BaseModel):
    success: bool
    visits: List[Visit]
    total_count: int


class VisitResponse(BaseModel):
    success: bool
    visit: Visit


class DeliveryFields(BaseModel):
    family_id: str
    date: str
    kind: str
    responsible: str = ""
    notes: str = ""
    outcome: DeliveryOutcome = "Delivered"
    collected_by: Optional[CollectedBy] = None
    collected_by_detail: str = ""


class DeliveryListResponse(BaseModel):
    success: bool
    deliveries: List[Delivery]
    total_count: int


class DeliveryResponse(BaseModel):
    success: bool
    delivery: Delivery


class DeleteResponse(BaseModel):
    success: bool
    deleted: int = 1


class ImportProgressModel(BaseModel):
    total: int = 0
    processed: int = 0
    success: int = 0
    errors: int = 0


class ImportFailure(BaseModel):
    family_id: str
    error: str


class ImportSummaryResponse(BaseModel):
    success: bool
    file_name: str
    status: Literal["completed", "failed"]
    message: str
    progress: ImportProgressModel
    families_found: int = 0
    members_found: int = 0
    orphan_member_rows: List[int] = Field(default_factory=list)
    stored_family_ids: List[str] = Field(default_factory=list)
    failures: List[ImportFailure] = Field(default_factory=list)


class ImportTaskStatus(BaseModel):
    """State of a background import, polled by the upload screen."""
    task_id: str
    status: Literal["pending", "processing", "completed", "failed"]
    message: Optional[str] = None
    progress: ImportProgressModel = Field(default_factory=ImportProgressModel)
    result: Optional[ImportSummaryResponse] = None


class DashboardResponse(BaseModel):
    success: bool
    summary: Dict[str, Any]
