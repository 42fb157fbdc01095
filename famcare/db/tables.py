"""
Table definitions for case records.

Every table carries ``user_id``: rows belong to the authenticated account
that wrote them, and every repository query filters on it.
"""
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.engine import Engine

metadata = MetaData()

families = Table(
    "families",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("record_number", String(50), nullable=False, default=""),
    Column("registered_at", String(10), nullable=False, default=""),
    Column("name", String(255), nullable=False, default=""),
    Column("marital_status", String(50), nullable=False, default=""),
    Column("birth_date", String(10), nullable=False, default=""),
    Column("age", Integer, nullable=False, default=0),
    Column("address", String(255), nullable=False, default=""),
    Column("neighborhood", String(255), nullable=False, default=""),
    Column("phone", String(30), nullable=False, default=""),
    Column("has_whatsapp", Boolean, nullable=False, default=False),
    Column("national_id", String(30), nullable=False, default=""),
    Column("state_id", String(30), nullable=False, default=""),
    Column("has_children", Boolean, nullable=False, default=False),
    Column("child_count", Integer, nullable=False, default=0),
    Column("household_size", Integer, nullable=False, default=1),
    Column("income", String(50), nullable=False, default=""),
    Column("health_condition", Text, nullable=False, default=""),
    Column("housing_situation", String(100), nullable=False, default=""),
    Column("note", Text, nullable=False, default=""),
    Column("status", String(20), nullable=False, default="Active"),
)

members = Table(
    "members",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column(
        "family_id",
        String(255),
        ForeignKey("families.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String(255), nullable=False, default=""),
    Column("relationship", String(100), nullable=False, default=""),
    Column("birth_date", String(10), nullable=False, default=""),
    Column("birth_date_unknown", Boolean, nullable=False, default=False),
    Column("age", Integer, nullable=False, default=0),
    Column("occupation", String(100), nullable=False, default=""),
    Column("occupation_note", Text, nullable=False, default=""),
    Column("income", String(50), nullable=False, default=""),
    Column("health_condition", Text, nullable=False, default=""),
    Column("education", String(100), nullable=False, default=""),
    Column("work", String(255), nullable=False, default=""),
    Index("idx_members_user_family", "user_id", "family_id"),
)

visits = Table(
    "visits",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("family_id", String(255), nullable=False, index=True),
    Column("date", String(10), nullable=False),
    Column("attendees", JSON, nullable=False),
    Column("reason", String(255), nullable=False, default=""),
    Column("narrative", Text, nullable=False, default=""),
    Column("identified_needs", JSON, nullable=False),
)

deliveries = Table(
    "deliveries",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("family_id", String(255), nullable=False, index=True),
    Column("date", String(10), nullable=False),
    Column("kind", String(255), nullable=False),
    Column("responsible", String(255), nullable=False, default=""),
    Column("notes", Text, nullable=False, default=""),
    Column("outcome", String(20), nullable=False, default="Delivered"),
    Column("collected_by", String(10), nullable=True),
    Column("collected_by_detail", String(255), nullable=False, default=""),
)


def create_case_tables(engine: Engine) -> None:
    """Create the case tables if they don't exist."""
    metadata.create_all(engine, checkfirst=True)
