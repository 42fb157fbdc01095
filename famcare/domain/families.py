"""
Household bookkeeping rules shared by manual edits and bulk imports.
"""
from typing import Iterable, List

from famcare.domain.models import CHILD_RELATIONSHIP, Family, Member


def _is_child(member: Member) -> bool:
    return member.relationship.strip().lower() == CHILD_RELATIONSHIP.lower()


def with_member_added(family: Family, member: Member) -> Family:
    """Return ``family`` with household and child counts updated for a new member."""
    child_count = max(0, family.child_count + (1 if _is_child(member) else 0))
    return family.model_copy(
        update={
            "household_size": max(1, family.household_size + 1),
            "child_count": child_count,
            "has_children": child_count > 0,
        }
    )


def with_member_removed(family: Family, member: Member) -> Family:
    """Inverse of :func:`with_member_added`; counts never drop below 1 resident / 0 children."""
    child_count = max(0, family.child_count - (1 if _is_child(member) else 0))
    return family.model_copy(
        update={
            "household_size": max(1, family.household_size - 1),
            "child_count": child_count,
            "has_children": child_count > 0,
        }
    )


def reconcile_household_counts(family: Family, members: List[Member]) -> Family:
    """
    Raise ``household_size`` so it covers the head plus every stored member,
    and leaves room for the declared children.
    """
    non_head = sum(1 for member in members if not member.is_head)
    household_size = max(family.household_size, 1 + non_head, family.child_count + 1)
    if household_size == family.household_size:
        return family
    return family.model_copy(update={"household_size": household_size})


def next_record_number(record_numbers: Iterable[str]) -> str:
    """Suggest the record number for a new family: highest numeric one plus one."""
    highest = 0
    for value in record_numbers:
        try:
            highest = max(highest, int(str(value).strip()))
        except ValueError:
            continue
    return str(highest + 1)
