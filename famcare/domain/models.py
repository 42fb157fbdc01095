"""
Case records: families, their members, home visits and deliveries.

Field names match the database columns. Dates are ISO ``YYYY-MM-DD``
strings (empty when unknown) because that is how the registration sheets
and the hosted backend exchange them.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

FamilyStatus = Literal["Active", "Inactive", "Pending"]
DeliveryOutcome = Literal["Delivered", "Not Delivered"]
CollectedBy = Literal["Self", "Other"]

HEAD_RELATIONSHIP = "Self"
CHILD_RELATIONSHIP = "Child"


class Family(BaseModel):
    """Household registered with the organization. Its head is also stored as a Member."""
    id: str
    record_number: str = ""
    registered_at: str = ""
    name: str = ""
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


class Member(BaseModel):
    id: str
    family_id: str
    name: str = ""
    relationship: str = ""
    birth_date: str = ""
    birth_date_unknown: bool = False
    age: int = 0
    occupation: str = ""
    occupation_note: str = ""
    income: str = ""
    health_condition: str = ""
    education: str = ""
    work: str = ""

    @property
    def is_head(self) -> bool:
        return self.relationship == HEAD_RELATIONSHIP


class Visit(BaseModel):
    id: str
    family_id: str
    date: str
    attendees: List[str] = Field(default_factory=list)
    reason: str = ""
    narrative: str = ""
    identified_needs: List[str] = Field(default_factory=list)


class Delivery(BaseModel):
    id: str
    family_id: str
    date: str
    kind: str
    responsible: str = ""
    notes: str = ""
    outcome: DeliveryOutcome = "Delivered"
    collected_by: Optional[CollectedBy] = None
    collected_by_detail: str = ""


class FamilyAggregate(BaseModel):
    """One reconciled family plus its full ordered member list (head first)."""
    family: Family
    members: List[Member] = Field(default_factory=list)
