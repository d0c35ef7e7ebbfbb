from __future__ import annotations
import datetime as dt
import logging
import uuid
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional
from controller.selection import SelectionState
from core.exceptions import ApiError, KanbanError, LoadError, NotFound, PersistenceError, ValidationError
from core.models import PRIORITIES, Attachment, Board, Column, ColumnSequence, Comment, Member, Task
from core.store import EntityStore, Undo
from services import reorder
from services.dispatch import ImmediateDispatcher

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("To Do", "In Progress", "Testing", "Completed")


class FailurePolicy(Enum):
    """What happens to an optimistic change whose request failed."""
    REPORT = "report"        # keep the local change, report the error
    ROLLBACK = "rollback"    # revert the local change, report the error

    @classmethod
    def from_str(cls, value: str) -> "FailurePolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("unknown failure policy %r, using report", value)
            return cls.REPORT


def new_id() -> str:
    return str(uuid.uuid4())


def _title(value: str, what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{what} cannot be empty")
    return value


def _check_task_fields(task: Task) -> None:
    _title(task.title, "task title")
    if isinstance(task.effort, bool) or not isinstance(task.effort, int) or task.effort < 1:
        raise ValidationError(f"effort must be a positive number of hours, got {task.effort!r}")
    if task.priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of {', '.join(PRIORITIES)}")


class AppController:
    """Only writer of the board state.

    Each action is applied to the store right away, then the matching
    request is handed to the dispatcher. A failed request is reported through
    `on_error`; under FailurePolicy.ROLLBACK the local change is reverted too.
    Requests for the same entity are not queued, the last one to reach the
    server wins.
    """

    def __init__(
        self,
        client,
        dispatcher=None,
        policy: FailurePolicy = FailurePolicy.REPORT,
        on_error: Optional[Callable[[KanbanError], None]] = None,
    ):
        self.client = client
        self.store = EntityStore(client)
        self.selection = SelectionState(self.store)
        self.dispatcher = dispatcher or ImmediateDispatcher()
        self.policy = policy
        self.on_error = on_error
        self.errors: List[KanbanError] = []
        self._outstanding: Dict[str, int] = {}

    # ---- bookkeeping ----
    @property
    def outstanding(self) -> int:
        """Requests issued whose result has not been delivered yet."""
        return sum(self._outstanding.values())

    def pending_for(self, entity_id: str) -> int:
        return self._outstanding.get(entity_id, 0)

    def pump(self) -> int:
        """Deliver finished request results. Call from the UI thread."""
        return self.dispatcher.drain()

    def close(self) -> None:
        self.dispatcher.shutdown()

    def _report(self, error: KanbanError) -> None:
        self.errors.append(error)
        if self.on_error:
            self.on_error(error)

    def _commit(self, action: str, entity_id: str, undo: Undo, call: Callable[[], Any]) -> None:
        self._outstanding[entity_id] = self._outstanding.get(entity_id, 0) + 1

        def settle():
            left = self._outstanding.get(entity_id, 0) - 1
            if left > 0:
                self._outstanding[entity_id] = left
            else:
                self._outstanding.pop(entity_id, None)

        def on_success(_result):
            settle()
            logger.debug("%s %s: ok", action, entity_id)

        def on_failure(exc: Exception):
            settle()
            error = PersistenceError(action, entity_id, exc)
            logger.error("%s", error)
            if self.policy is FailurePolicy.ROLLBACK:
                try:
                    undo()
                except KanbanError as e:
                    logger.error("%s %s could not be rolled back: %s", action, entity_id, e)
                else:
                    logger.info("%s %s rolled back", action, entity_id)
                self.selection.forget_missing()
            self._report(error)

        self.dispatcher.submit(call, on_success, on_failure)

    # ---- loading ----
    def load(self) -> bool:
        try:
            self.store.load()
        except LoadError as e:
            logger.error("%s", e)
            self._report(e)
            return False
        self.selection.forget_missing()
        return True

    def refresh_task(self, task_id: str) -> bool:
        """Replace a task's comments with the server copy, attachments included."""
        self.store.find_task(task_id)
        try:
            raw = next((t for t in self.client.list_tasks() if t.get("id") == task_id), None)
            fresh = Task.from_dict(raw) if raw else None
        except (ApiError, ValueError, TypeError, AttributeError) as e:
            error = LoadError(f"could not refresh task {task_id}: {e}")
            logger.error("%s", error)
            self._report(error)
            return False
        if fresh is None:
            logger.warning("task %s not returned by the server", task_id)
            return False
        self.store.set_comments(task_id, fresh.comments)
        return True

    # ---- members ----
    def add_member(self, name: str, color: str = "#64748B") -> Member:
        member = Member(id=new_id(), name=_title(name, "member name"), color=color)
        undo = self.store.add_member(member)
        if self.selection.selected_member_id is None:
            self.selection.selected_member_id = member.id
        self._commit("create member", member.id, undo, lambda: self.client.create_member(member))
        return member

    def remove_member(self, member_id: str) -> None:
        undo = self.store.remove_member(member_id)
        self.selection.forget_missing()
        self._commit("delete member", member_id, undo, lambda: self.client.delete_member(member_id))

    # ---- boards ----
    def add_board(self, title: str = "New Board") -> Board:
        board_id = new_id()
        board = Board(
            id=board_id,
            title=_title(title, "board title"),
            columns=ColumnSequence(Column(id=new_id(), board_id=board_id, title=t) for t in DEFAULT_COLUMNS),
        )
        snapshot = Board(board.id, board.title, board.columns.copy())
        undo = self.store.add_board(board)
        self.store.select_board(board.id)
        self._commit("create board", board.id, undo, lambda: self.client.create_board(snapshot))
        return board

    def rename_board(self, board_id: str, title: str) -> None:
        title = _title(title, "board title")
        undo = self.store.set_board_title(board_id, title)
        self._commit("update board", board_id, undo, lambda: self.client.update_board(board_id, title))

    def remove_board(self, board_id: str) -> None:
        self.store.board(board_id)
        if len(self.store.boards) <= 1:
            raise ValidationError("Cannot delete the last board")
        undo = self.store.remove_board(board_id)
        self.selection.forget_missing()
        self._commit("delete board", board_id, undo, lambda: self.client.delete_board(board_id))

    # ---- columns ----
    def add_column(self, title: str = "New Column", board_id: Optional[str] = None) -> Column:
        board = self.store.board(board_id) if board_id else self.store.active_board
        if board is None:
            raise ValidationError("no board selected")
        column = Column(id=new_id(), board_id=board.id, title=_title(title, "column title"))
        undo = self.store.add_column(column)
        self._commit("create column", column.id, undo, lambda: self.client.create_column(column))
        return column

    def rename_column(self, column_id: str, title: str) -> None:
        title = _title(title, "column title")
        undo = self.store.set_column_title(column_id, title)
        self._commit("update column", column_id, undo, lambda: self.client.update_column(column_id, title))

    def remove_column(self, column_id: str) -> None:
        undo = self.store.remove_column(column_id)
        self.selection.forget_missing()
        self._commit("delete column", column_id, undo, lambda: self.client.delete_column(column_id))

    def reorder_columns(self, dragged_id: str, target_id: str) -> bool:
        """Local only, the server keeps no column order."""
        board = self.store.active_board
        if board is None:
            return False
        columns = reorder.reorder_columns(board.columns, dragged_id, target_id)
        if columns is None:
            return False
        self.store.set_column_order(board.id, columns)
        return True

    # ---- tasks ----
    def add_task(
        self,
        column_id: str,
        title: str = "New Task",
        description: str = "Task description",
        member_id: Optional[str] = None,
        requester_id: Optional[str] = None,
        start_date: Optional[str] = None,
        effort: int = 1,
        priority: str = "medium",
    ) -> Task:
        board, column = self.store.find_column(column_id)
        member_id = member_id or self.selection.selected_member_id
        if not member_id:
            raise ValidationError("select a member before adding a task")
        # the member is not checked against the store, the server owns that
        task = Task(
            id=new_id(),
            title=title,
            column_id=column.id,
            board_id=board.id,
            member_id=member_id,
            requester_id=requester_id or member_id,
            description=description,
            start_date=start_date or dt.date.today().isoformat(),
            effort=effort,
            priority=priority,
        )
        _check_task_fields(task)
        task = replace(task, title=task.title.strip())
        undo = self.store.insert_task(task)
        self._commit("create task", task.id, undo, lambda: self.client.create_task(task))
        return task

    def copy_task(self, task_id: str) -> Task:
        _, _, _, source = self.store.find_task(task_id)
        task = replace(source, id=new_id(), title=f"{source.title} (Copy)", comments=[])
        undo = self.store.insert_task(task)
        self._commit("create task", task.id, undo, lambda: self.client.create_task(task))
        return task

    def update_task(self, task: Task) -> Task:
        """Replace all assignable fields. A changed column moves the task to the end of it."""
        board, column, index, current = self.store.find_task(task.id)
        _check_task_fields(task)
        target_board, target = self.store.find_column(task.column_id)
        if target_board.id != board.id:
            raise ValidationError("a task cannot change boards")
        task = replace(task, title=task.title.strip(), board_id=board.id, comments=current.comments)

        undos: List[Undo] = []
        if target.id != column.id:
            columns = reorder.move_task(board.columns, task.id, column.id, target.id, len(target.tasks))
            self.store.replace_columns(board.id, columns)
            undos.append(lambda: self.store.put_back(task.id, column.id, index))
        undos.append(self.store.replace_task(task))

        def undo():
            for u in reversed(undos):
                u()
        self._commit("update task", task.id, undo, lambda: self.client.update_task(task))
        return task

    def edit_task(self, task_id: str, **fields) -> Task:
        _, _, _, current = self.store.find_task(task_id)
        try:
            edited = replace(current, **fields)
        except TypeError as e:
            raise ValidationError(str(e)) from e
        return self.update_task(edited)

    def remove_task(self, task_id: str) -> None:
        undo = self.store.remove_task(task_id)
        self.selection.forget_missing()
        self._commit("delete task", task_id, undo, lambda: self.client.delete_task(task_id))

    def move_task(self, task_id: str, target_column_id: str, target_index: int) -> Task:
        """Move a task within or across the columns of its board.

        Both columns are swapped in one step. The request carries the task
        with its new columnId; the server keeps no order inside a column.
        """
        board, source, index, _ = self.store.find_task(task_id)
        if target_column_id not in board.columns:
            raise NotFound("column", target_column_id)
        columns = reorder.move_task(board.columns, task_id, source.id, target_column_id, target_index)
        if len(columns) == 1 and columns[0].task_ids() == source.task_ids():
            return source.tasks[index]
        self.store.replace_columns(board.id, columns)
        moved = self.store.find_task(task_id)[3]
        source_id = source.id

        def undo():
            self.store.put_back(task_id, source_id, index)
        self._commit("move task", task_id, undo, lambda: self.client.update_task(moved))
        return moved

    # ---- comments ----
    def add_comment(
        self,
        task_id: str,
        text: str,
        attachments: Iterable[Dict[str, Any]] = (),
        author_id: Optional[str] = None,
    ) -> Comment:
        _, _, _, task = self.store.find_task(task_id)
        files = [
            Attachment(
                id=a.get("id") or new_id(),
                name=a.get("name", ""),
                url=a.get("url", ""),
                type=a.get("type", ""),
                size=int(a.get("size", 0)),
            )
            for a in attachments
        ]
        text = (text or "").strip()
        if not text and not files:
            raise ValidationError("comment is empty")
        comment = Comment(
            id=new_id(),
            task_id=task.id,
            text=text,
            author_id=author_id or task.member_id,
            created_at=dt.datetime.now(dt.timezone.utc).isoformat(),
            attachments=files,
        )
        undo = self.store.add_comment(comment)
        self._commit("create comment", comment.id, undo, lambda: self.client.create_comment(comment))
        return comment
