"""Shared fixtures: an in-memory stand-in for the board API."""
import pytest

from controller.app_controller import AppController
from core.exceptions import ApiError


def task_payload(task_id, column_id, board_id="B1", member="m1", requester="m1", comments=None):
    return {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": "",
        "memberId": member,
        "requesterId": requester,
        "startDate": "2024-05-01",
        "effort": 2,
        "priority": "medium",
        "columnId": column_id,
        "boardId": board_id,
        "comments": comments or [],
    }


def seed_members():
    return [
        {"id": "m1", "name": "Ana", "color": "#2E86DE"},
        {"id": "m2", "name": "Bo", "color": "#27AE60"},
    ]


def seed_boards():
    comment = {"id": "c1", "text": "looks good", "authorId": "m2", "createdAt": "2024-05-02T10:00:00Z"}
    return [
        {
            "id": "B1",
            "title": "Main Board",
            "columns": {
                "todo": {"id": "todo", "boardId": "B1", "title": "To Do",
                         "tasks": [task_payload("T1", "todo", comments=[comment]), task_payload("T2", "todo")]},
                "doing": {"id": "doing", "boardId": "B1", "title": "Doing", "tasks": []},
                "done": {"id": "done", "boardId": "B1", "title": "Done", "tasks": []},
            },
        },
        {
            "id": "B2",
            "title": "Side Board",
            "columns": {
                "ideas": {"id": "ideas", "boardId": "B2", "title": "Ideas",
                          "tasks": [task_payload("T3", "ideas", board_id="B2", member="m2", requester="m1")]},
            },
        },
    ]


class FakeApi:
    """Records every call. Names in `fail` raise ApiError instead of answering,
    names in `fail_times` do so for their next n calls only.
    """

    def __init__(self, members=None, boards=None, tasks=None):
        self.members = seed_members() if members is None else members
        self.boards = seed_boards() if boards is None else boards
        self.tasks = tasks or []
        self.calls = []
        self.fail = set()
        self.fail_times = {}

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail_times.get(name, 0) > 0:
            self.fail_times[name] -= 1
            raise ApiError(f"{name} refused", status_code=500)
        if name in self.fail:
            raise ApiError(f"{name} refused", status_code=500)
        return {}

    def names(self):
        return [c[0] for c in self.calls if not c[0].startswith("list_")]

    def list_members(self):
        self._record("list_members")
        return self.members

    def list_boards(self):
        self._record("list_boards")
        return self.boards

    def list_tasks(self):
        self._record("list_tasks")
        return self.tasks

    def __getattr__(self, name):
        if name.startswith(("create_", "update_", "delete_")):
            return lambda *args: self._record(name, *args)
        raise AttributeError(name)


class ManualDispatcher:
    """Holds calls until drain(), like requests still in flight."""

    def __init__(self):
        self.queued = []

    def submit(self, call, on_success, on_failure):
        self.queued.append((call, on_success, on_failure))

    def drain(self):
        count = 0
        while self.queued:
            call, on_success, on_failure = self.queued.pop(0)
            count += 1
            try:
                result = call()
            except Exception as e:
                on_failure(e)
            else:
                on_success(result)
        return count

    def shutdown(self, wait=True):
        self.drain()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def controller(api):
    errors = []
    ctl = AppController(api, on_error=errors.append)
    assert ctl.load()
    ctl.reported = errors
    return ctl


@pytest.fixture
def store(controller):
    return controller.store


def column_ids(store, column_id):
    _, column = store.find_column(column_id)
    return column.task_ids()
