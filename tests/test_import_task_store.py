"""
Tests for the bounded store behind background import polling.
"""
from famcare.api.dependencies import ImportTaskStore
from famcare.api.schemas.shared import ImportTaskStatus
from tests.utils.sheets import ACCOUNT_ID, OTHER_ACCOUNT_ID


def _status(task_id, status="pending"):
    return ImportTaskStatus(task_id=task_id, status=status)


class TestImportTaskStore:
    def test_tasks_are_scoped_to_their_owner(self):
        store = ImportTaskStore(capacity=5)
        store.create(ACCOUNT_ID, _status("t1"))

        assert store.get("t1", ACCOUNT_ID).status == "pending"
        assert store.get("t1", OTHER_ACCOUNT_ID) is None
        assert store.get("missing", ACCOUNT_ID) is None

    def test_update_keeps_owner(self):
        store = ImportTaskStore(capacity=5)
        store.create(ACCOUNT_ID, _status("t1"))

        store.update(_status("t1", "completed"))

        assert store.get("t1", ACCOUNT_ID).status == "completed"

    def test_finished_tasks_are_evicted_first(self):
        store = ImportTaskStore(capacity=2)
        store.create(ACCOUNT_ID, _status("running"))
        store.create(ACCOUNT_ID, _status("done"))
        store.update(_status("done", "completed"))

        store.create(ACCOUNT_ID, _status("new"))

        assert len(store) == 2
        assert store.get("done", ACCOUNT_ID) is None
        assert store.get("running", ACCOUNT_ID) is not None
        assert store.get("new", ACCOUNT_ID) is not None

    def test_oldest_task_goes_when_all_are_running(self):
        store = ImportTaskStore(capacity=2)
        for task_id in ("a", "b", "c"):
            store.create(ACCOUNT_ID, _status(task_id))

        assert len(store) == 2
        assert store.get("a", ACCOUNT_ID) is None

    def test_updates_for_evicted_tasks_are_dropped(self):
        store = ImportTaskStore(capacity=1)
        store.create(ACCOUNT_ID, _status("a"))
        store.create(ACCOUNT_ID, _status("b"))

        store.update(_status("a", "completed"))

        assert store.get("a", ACCOUNT_ID) is None
        assert len(store) == 1
