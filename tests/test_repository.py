"""
Tests for the case repository on sqlite.
"""
import pytest

from famcare.db.repository import PersistenceError
from famcare.domain.models import Delivery, Family, Member, Visit
from tests.utils.sheets import ACCOUNT_ID, OTHER_ACCOUNT_ID


def _family(family_id="fam-1", **fields):
    data = {"id": family_id, "record_number": "1", "name": "Maria Souza", "household_size": 1}
    data.update(fields)
    return Family(**data)


def _member(member_id, family_id="fam-1", relationship="Child", name=None):
    return Member(id=member_id, family_id=family_id, name=name or member_id, relationship=relationship)


class TestReplaceFamily:
    def test_insert_then_replace_members(self, repository):
        family = _family()
        repository.replace_family(ACCOUNT_ID, family, [_member("head", relationship="Self"), _member("m1")])
        repository.replace_family(
            ACCOUNT_ID,
            family.model_copy(update={"name": "Maria S."}),
            [_member("head", relationship="Self"), _member("m2")],
        )

        assert repository.get_family(ACCOUNT_ID, "fam-1").name == "Maria S."
        member_ids = sorted(m.id for m in repository.list_members(ACCOUNT_ID, "fam-1"))
        assert member_ids == ["head", "m2"]

    def test_failed_replacement_keeps_previous_state(self, repository):
        family = _family()
        repository.replace_family(ACCOUNT_ID, family, [_member("head", relationship="Self")])

        with pytest.raises(PersistenceError) as exc_info:
            repository.replace_family(
                ACCOUNT_ID,
                family.model_copy(update={"name": "Changed"}),
                [_member("dup"), _member("dup")],
            )

        assert exc_info.value.operation == "replace_family"
        assert repository.get_family(ACCOUNT_ID, "fam-1").name == "Maria Souza"
        assert [m.id for m in repository.list_members(ACCOUNT_ID, "fam-1")] == ["head"]

    def test_empty_member_list_clears_members(self, repository):
        repository.replace_family(ACCOUNT_ID, _family(), [_member("m1")])
        repository.replace_family(ACCOUNT_ID, _family(), [])

        assert repository.list_members(ACCOUNT_ID, "fam-1") == []


class TestFamilies:
    def test_account_scoping(self, repository):
        repository.replace_family(ACCOUNT_ID, _family(), [])

        assert repository.list_families(OTHER_ACCOUNT_ID) == []
        assert repository.get_family(OTHER_ACCOUNT_ID, "fam-1") is None
        assert repository.delete_family(OTHER_ACCOUNT_ID, "fam-1") is False
        assert repository.get_family(ACCOUNT_ID, "fam-1") is not None

    def test_update_missing_family(self, repository):
        assert repository.update_family(ACCOUNT_ID, _family("nope")) is False

    def test_delete_removes_members(self, repository):
        repository.replace_family(ACCOUNT_ID, _family(), [_member("m1"), _member("m2")])

        assert repository.delete_family(ACCOUNT_ID, "fam-1") is True
        assert repository.get_family(ACCOUNT_ID, "fam-1") is None
        assert repository.list_members(ACCOUNT_ID) == []

    def test_next_record_number(self, repository):
        assert repository.next_record_number(ACCOUNT_ID) == "1"
        repository.replace_family(ACCOUNT_ID, _family("a", record_number="7"), [])
        repository.replace_family(ACCOUNT_ID, _family("b", record_number="12"), [])
        repository.replace_family(ACCOUNT_ID, _family("c", record_number="A-3"), [])

        assert repository.next_record_number(ACCOUNT_ID) == "13"
        assert repository.next_record_number(OTHER_ACCOUNT_ID) == "1"

    def test_list_ordered_by_record_number(self, repository):
        repository.replace_family(ACCOUNT_ID, _family("b", record_number="2"), [])
        repository.replace_family(ACCOUNT_ID, _family("a", record_number="1"), [])

        assert [f.id for f in repository.list_families(ACCOUNT_ID)] == ["a", "b"]


class TestMemberBookkeeping:
    def test_adding_a_child(self, repository):
        family = _family()
        repository.replace_family(ACCOUNT_ID, family, [_member("head", relationship="Self")])

        updated = repository.add_member(ACCOUNT_ID, family, _member("kid"))

        assert updated.household_size == 2
        assert updated.child_count == 1
        assert updated.has_children is True
        stored = repository.get_family(ACCOUNT_ID, "fam-1")
        assert stored.household_size == 2
        assert len(repository.list_members(ACCOUNT_ID, "fam-1")) == 2

    def test_removing_a_child(self, repository):
        family = _family(household_size=2, child_count=1, has_children=True)
        kid = _member("kid")
        repository.replace_family(ACCOUNT_ID, family, [_member("head", relationship="Self"), kid])

        updated = repository.remove_member(ACCOUNT_ID, family, kid)

        assert updated.household_size == 1
        assert updated.child_count == 0
        assert updated.has_children is False
        assert [m.id for m in repository.list_members(ACCOUNT_ID, "fam-1")] == ["head"]

    def test_adding_a_non_child(self, repository):
        family = _family()
        repository.replace_family(ACCOUNT_ID, family, [])

        updated = repository.add_member(ACCOUNT_ID, family, _member("spouse", relationship="Spouse"))

        assert updated.household_size == 2
        assert updated.child_count == 0


class TestVisitsAndDeliveries:
    def test_visits_newest_first(self, repository):
        repository.add_visit(ACCOUNT_ID, Visit(id="v1", family_id="fam-1", date="2024-01-05", attendees=["Ana"]))
        repository.add_visit(ACCOUNT_ID, Visit(id="v2", family_id="fam-1", date="2024-03-01"))

        visits = repository.list_visits(ACCOUNT_ID)
        assert [v.id for v in visits] == ["v2", "v1"]
        assert visits[1].attendees == ["Ana"]

    def test_update_and_delete_visit(self, repository):
        visit = Visit(id="v1", family_id="fam-1", date="2024-01-05")
        repository.add_visit(ACCOUNT_ID, visit)

        assert repository.update_visit(ACCOUNT_ID, visit.model_copy(update={"reason": "Follow-up"})) is True
        assert repository.list_visits(ACCOUNT_ID)[0].reason == "Follow-up"
        assert repository.delete_visit(OTHER_ACCOUNT_ID, "v1") is False
        assert repository.delete_visit(ACCOUNT_ID, "v1") is True
        assert repository.list_visits(ACCOUNT_ID) == []

    def test_delete_deliveries_for_family_on_date(self, repository):
        for delivery_id, day in (("d1", "2024-02-01"), ("d2", "2024-02-01"), ("d3", "2024-03-01")):
            repository.add_delivery(
                ACCOUNT_ID, Delivery(id=delivery_id, family_id="fam-1", date=day, kind="Food basket")
            )

        assert repository.delete_deliveries_for_family_on(ACCOUNT_ID, "fam-1", "2024-02-01") == 2
        assert [d.id for d in repository.list_deliveries(ACCOUNT_ID)] == ["d3"]

    def test_duplicate_delivery_id(self, repository):
        delivery = Delivery(id="d1", family_id="fam-1", date="2024-02-01", kind="Food basket")
        repository.add_delivery(ACCOUNT_ID, delivery)

        with pytest.raises(PersistenceError):
            repository.add_delivery(ACCOUNT_ID, delivery)
