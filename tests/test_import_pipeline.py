"""
End-to-end tests for the import pipeline against an in-memory database.
"""
from datetime import date

import pytest

from famcare.db.repository import CaseRepository, PersistenceError
from famcare.domain.imports.errors import AuthenticationError, EmptyImportError, ParseError
from famcare.domain.imports.pipeline import import_file
from tests.utils.sheets import ACCOUNT_ID, csv_bytes, family_row, member_row, xlsx_bytes

TODAY = date(2024, 6, 15)


class FlakyRepository(CaseRepository):
    """Rejects the n-th family it is asked to store."""

    def __init__(self, engine, fail_on: int):
        super().__init__(engine)
        self.fail_on = fail_on
        self.calls = 0

    def replace_family(self, account_id, family, members):
        self.calls += 1
        if self.calls == self.fail_on:
            raise PersistenceError("duplicate key value violates unique constraint", "replace_family")
        super().replace_family(account_id, family, members)


def _five_families():
    rows = []
    for number in range(1, 6):
        rows.append(family_row(RecordNumber=str(number), Name=f"Family {number}"))
        rows.append(member_row(Name=f"Child {number}"))
    return csv_bytes(rows)


class TestImportFile:
    def test_families_and_members_are_stored(self, repository):
        content = csv_bytes([family_row(), member_row(), member_row(Name="Ana Souza")])

        summary = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.status == "completed"
        assert summary.progress.to_dict() == {"total": 3, "processed": 3, "success": 1, "errors": 0}
        assert summary.families_found == 1
        assert summary.members_found == 3

        families = repository.list_families(ACCOUNT_ID)
        assert len(families) == 1
        assert families[0].household_size == 3
        members = repository.list_members(ACCOUNT_ID, families[0].id)
        assert sorted(m.name for m in members) == ["Ana Souza", "Joao Souza", "Maria Souza"]

    def test_workbook_import(self, repository):
        content = xlsx_bytes([family_row(), member_row()])

        summary = import_file("sheet.xlsx", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.progress.success == 1
        assert len(repository.list_members(ACCOUNT_ID)) == 2

    def test_one_failing_family_does_not_stop_the_rest(self, engine):
        repository = FlakyRepository(engine, fail_on=3)

        summary = import_file("sheet.csv", _five_families(), account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.progress.total == 10
        assert summary.progress.processed == 10
        assert summary.progress.success == 4
        assert summary.progress.errors == 1
        assert summary.status == "completed"
        assert "1 error(s)" in summary.message
        assert len(summary.failures) == 1
        assert summary.failures[0][1] == "duplicate key value violates unique constraint"
        assert len(repository.list_families(ACCOUNT_ID)) == 4

    def test_third_of_five_single_row_families_fails(self, engine):
        repository = FlakyRepository(engine, fail_on=3)
        content = csv_bytes([family_row(RecordNumber=str(n), Name=f"Family {n}") for n in range(1, 6)])

        summary = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.progress.to_dict() == {"total": 5, "processed": 5, "success": 4, "errors": 1}
        stored = sorted(f.record_number for f in repository.list_families(ACCOUNT_ID))
        assert stored == ["1", "2", "4", "5"]
        assert summary.failures[0][0].startswith("import-3-")

    def test_income_is_stored_unchanged(self, repository):
        content = csv_bytes([family_row(Income="1500"), member_row(Income="320.75")])

        import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        family = repository.list_families(ACCOUNT_ID)[0]
        assert family.income == "1500"
        incomes = sorted(m.income for m in repository.list_members(ACCOUNT_ID, family.id))
        assert incomes == ["1500", "320.75"]

    def test_all_families_failing_reports_failed(self, engine):
        repository = FlakyRepository(engine, fail_on=1)
        content = csv_bytes([family_row()])

        summary = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.status == "failed"
        assert summary.succeeded is False
        assert summary.progress.errors == 1
        assert repository.list_families(ACCOUNT_ID) == []

    def test_reimport_creates_new_families(self, repository):
        content = csv_bytes([family_row(), member_row()])

        first = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)
        second = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert set(first.stored_family_ids).isdisjoint(second.stored_family_ids)
        assert len(repository.list_families(ACCOUNT_ID)) == 2

    def test_orphan_member_rows_are_reported(self, repository):
        content = csv_bytes([member_row(Name="Nobody"), family_row()])

        summary = import_file("sheet.csv", content, account_id=ACCOUNT_ID, repository=repository, today=TODAY)

        assert summary.orphan_member_rows == [0]
        assert summary.progress.processed == 2
        names = [m.name for m in repository.list_members(ACCOUNT_ID)]
        assert "Nobody" not in names

    def test_progress_snapshots_are_monotonic(self, repository):
        seen = []
        import_file(
            "sheet.csv",
            _five_families(),
            account_id=ACCOUNT_ID,
            repository=repository,
            on_progress=seen.append,
            today=TODAY,
        )

        assert seen[0].total == 10
        for previous, current in zip(seen, seen[1:]):
            assert current.processed >= previous.processed
            assert current.success >= previous.success
            assert current.errors >= previous.errors
        assert seen[-1].success == 5


class TestImportFailures:
    @pytest.mark.parametrize("account_id", [None, "", "   "])
    def test_missing_account(self, repository, account_id):
        with pytest.raises(AuthenticationError) as exc_info:
            import_file("sheet.csv", csv_bytes([family_row()]), account_id=account_id, repository=repository)
        assert exc_info.value.message == "User is not authenticated."

    def test_unreadable_workbook(self, repository):
        with pytest.raises(ParseError):
            import_file("sheet.xlsx", b"garbage", account_id=ACCOUNT_ID, repository=repository)
        assert repository.list_families(ACCOUNT_ID) == []

    def test_nothing_to_import(self, repository):
        with pytest.raises(EmptyImportError):
            import_file("sheet.csv", b"RecordType,Name\nTOTAL,0\n", account_id=ACCOUNT_ID, repository=repository)
