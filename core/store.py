"""In-memory board state.

Columns, tasks and comments are treated as values: a change builds new
objects and swaps them into their board, it never edits a list another
reader may be holding. Mutations return a callable that reverts their own
change and leaves later ones alone.
"""
from __future__ import annotations
import logging
from dataclasses import fields, replace
from typing import Callable, Iterator, List, Optional, Tuple
from core.exceptions import ApiError, LoadError, NotFound, ValidationError
from core.models import Board, Column, ColumnSequence, Comment, Member, Task

logger = logging.getLogger(__name__)

Undo = Callable[[], None]

# placement and comments have their own primitives
_EDITABLE = tuple(f.name for f in fields(Task) if f.name not in ("id", "column_id", "board_id", "comments"))


class EntityStore:
    def __init__(self, client):
        self.client = client
        self.members: List[Member] = []
        self.boards: List[Board] = []
        self.active_board_id: Optional[str] = None

    # ---------- loading ----------
    def load(self) -> None:
        """Replace everything with the collaborator's copy. Keeps prior state on failure."""
        try:
            members = [Member.from_dict(m) for m in self.client.list_members()]
            boards = [Board.from_dict(b) for b in self.client.list_boards()]
        except (ApiError, ValueError, TypeError, AttributeError) as e:
            raise LoadError(f"could not load boards: {e}") from e

        self.members = members
        self.boards = boards
        if not any(b.id == self.active_board_id for b in boards):
            self.active_board_id = boards[0].id if boards else None
        logger.info("loaded %d boards, %d members", len(boards), len(members))

    def select_board(self, board_id: str) -> Board:
        board = self.board(board_id)
        self.active_board_id = board.id
        return board

    # ---------- reads ----------
    @property
    def active_board(self) -> Optional[Board]:
        for b in self.boards:
            if b.id == self.active_board_id:
                return b
        return None

    @property
    def active_columns(self) -> ColumnSequence:
        board = self.active_board
        return board.columns if board else ColumnSequence()

    def member(self, member_id: str) -> Member:
        for m in self.members:
            if m.id == member_id:
                return m
        raise NotFound("member", member_id)

    def board(self, board_id: str) -> Board:
        for b in self.boards:
            if b.id == board_id:
                return b
        raise NotFound("board", board_id)

    def find_column(self, column_id: str) -> Tuple[Board, Column]:
        for b in self.boards:
            column = b.columns.get(column_id)
            if column is not None:
                return b, column
        raise NotFound("column", column_id)

    def find_task(self, task_id: str) -> Tuple[Board, Column, int, Task]:
        for b in self.boards:
            for column in b.columns:
                i = column.index_of(task_id)
                if i >= 0:
                    return b, column, i, column.tasks[i]
        raise NotFound("task", task_id)

    def tasks(self) -> Iterator[Task]:
        for b in self.boards:
            for column in b.columns:
                yield from column.tasks

    # ---------- members ----------
    def add_member(self, member: Member) -> Undo:
        self.members.append(member)
        return lambda: self._drop_member(member.id)

    def _drop_member(self, member_id: str) -> None:
        self.members = [m for m in self.members if m.id != member_id]

    def remove_member(self, member_id: str) -> Undo:
        """Remove a member, the tasks it is assigned to or requested, and its comments."""
        member = self.member(member_id)
        index = self.members.index(member)
        self._drop_member(member_id)

        removed: List[Tuple[str, int, Task]] = []
        edited: List[Task] = []
        for board in self.boards:
            for column in list(board.columns):
                kept = []
                changed = False
                for i, task in enumerate(column.tasks):
                    if member_id in (task.member_id, task.requester_id):
                        removed.append((column.id, i, task))
                        changed = True
                        continue
                    comments = [c for c in task.comments if c.author_id != member_id]
                    if len(comments) != len(task.comments):
                        edited.append(task)
                        task = replace(task, comments=comments)
                        changed = True
                    kept.append(task)
                if changed:
                    board.columns.replace(replace(column, tasks=kept))
        if removed:
            logger.info("member %s removed with %d tasks", member_id, len(removed))

        def undo():
            self.members.insert(min(index, len(self.members)), member)
            for original in edited:
                try:
                    _, _, _, current = self.find_task(original.id)
                except NotFound:
                    continue
                self._swap_task(replace(current, comments=original.comments))
            for column_id, i, task in removed:
                try:
                    self._put_task(task, column_id, i)
                except NotFound:
                    pass
        return undo

    # ---------- boards ----------
    def add_board(self, board: Board) -> Undo:
        self.boards.append(board)
        return lambda: self._drop_board(board.id)

    def _drop_board(self, board_id: str) -> None:
        self.boards = [b for b in self.boards if b.id != board_id]
        if self.active_board_id == board_id:
            self.active_board_id = self.boards[0].id if self.boards else None

    def remove_board(self, board_id: str) -> Undo:
        board = self.board(board_id)
        index = self.boards.index(board)
        self._drop_board(board_id)

        def undo():
            self.boards.insert(min(index, len(self.boards)), board)
            if self.active_board_id is None:
                self.active_board_id = board.id
        return undo

    def set_board_title(self, board_id: str, title: str) -> Undo:
        board = self.board(board_id)
        old = board.title
        board.title = title
        return lambda: setattr(board, "title", old)

    # ---------- columns ----------
    def add_column(self, column: Column) -> Undo:
        board = self.board(column.board_id)
        board.columns.append(column)
        return lambda: self._drop_column(board, column.id)

    @staticmethod
    def _drop_column(board: Board, column_id: str) -> None:
        if column_id in board.columns:
            board.columns.remove(column_id)

    def remove_column(self, column_id: str) -> Undo:
        board, _ = self.find_column(column_id)
        index, column = board.columns.remove(column_id)

        def undo():
            if column.id not in board.columns:
                board.columns.insert(min(index, len(board.columns)), column)
        return undo

    def set_column_title(self, column_id: str, title: str) -> Undo:
        board, column = self.find_column(column_id)
        board.columns.replace(replace(column, title=title))

        def undo():
            current = board.columns.get(column_id)
            if current is not None and current.title == title:
                board.columns.replace(replace(current, title=column.title))
        return undo

    def set_column_order(self, board_id: str, columns: ColumnSequence) -> Undo:
        board = self.board(board_id)
        if sorted(columns.ids()) != sorted(board.columns.ids()):
            raise ValidationError("column order must be a permutation of the board's columns")
        previous = board.columns
        board.columns = columns
        return lambda: setattr(board, "columns", previous)

    def replace_columns(self, board_id: str, columns: List[Column]) -> None:
        """Swap several columns in one step. Either all are replaced or none.

        No undo: whole columns go stale as soon as another change lands, a
        moved task is returned with put_back instead.
        """
        board = self.board(board_id)
        for column in columns:
            if column.id not in board.columns:
                raise NotFound("column", column.id)
        for column in columns:
            board.columns.replace(column)

    # ---------- tasks ----------
    def insert_task(self, task: Task, index: Optional[int] = None) -> Undo:
        """Insert at `index` (clamped), at the end when omitted."""
        _, column = self.find_column(task.column_id)
        self._put_task(task, column.id, len(column.tasks) if index is None else index)
        return lambda: self._drop_task(task.id)

    def _put_task(self, task: Task, column_id: str, index: int) -> None:
        board, column = self.find_column(column_id)
        if task.board_id != board.id:
            raise ValidationError(f"task {task.id} belongs to board {task.board_id}, column {column_id} to {board.id}")
        if any(t.id == task.id for t in self.tasks()):
            raise ValidationError(f"task {task.id} is already on a board")
        tasks = list(column.tasks)
        tasks.insert(max(0, min(index, len(tasks))), task)
        board.columns.replace(replace(column, tasks=tasks))

    def _drop_task(self, task_id: str) -> None:
        try:
            board, column, i, _ = self.find_task(task_id)
        except NotFound:
            return
        board.columns.replace(replace(column, tasks=column.tasks[:i] + column.tasks[i + 1:]))

    def remove_task(self, task_id: str) -> Undo:
        _, column, index, task = self.find_task(task_id)
        self._drop_task(task_id)

        def undo():
            try:
                self._put_task(task, column.id, index)
            except NotFound:
                pass
        return undo

    def _swap_task(self, task: Task) -> Task:
        board, column, i, old = self.find_task(task.id)
        tasks = list(column.tasks)
        tasks[i] = task
        board.columns.replace(replace(column, tasks=tasks))
        return old

    def replace_task(self, task: Task) -> Undo:
        """Replace a task's fields in place. Column changes go through the reorder engine."""
        _, column, _, _ = self.find_task(task.id)
        if task.column_id != column.id:
            raise ValidationError(f"task {task.id} is in column {column.id}, not {task.column_id}")
        old = self._swap_task(task)

        def undo():
            # only fields this edit changed and nothing has changed since
            try:
                _, _, _, current = self.find_task(task.id)
            except NotFound:
                return
            reverted = {
                name: getattr(old, name)
                for name in _EDITABLE
                if getattr(task, name) != getattr(old, name) and getattr(current, name) == getattr(task, name)
            }
            if reverted:
                self._swap_task(replace(current, **reverted))
        return undo

    def put_back(self, task_id: str, column_id: str, index: int) -> None:
        """Move a task from wherever it is now to `index` (clamped) of `column_id`.

        Does nothing if the task or the column is gone.
        """
        try:
            board, current, i, task = self.find_task(task_id)
        except NotFound:
            return
        if column_id not in board.columns:
            return
        board.columns.replace(replace(current, tasks=current.tasks[:i] + current.tasks[i + 1:]))
        self._put_task(replace(task, column_id=column_id), column_id, index)

    # ---------- comments ----------
    def add_comment(self, comment: Comment) -> Undo:
        _, _, _, task = self.find_task(comment.task_id)
        self._swap_task(replace(task, comments=task.comments + [comment]))

        def undo():
            try:
                _, _, _, current = self.find_task(comment.task_id)
            except NotFound:
                return
            self._swap_task(replace(current, comments=[c for c in current.comments if c.id != comment.id]))
        return undo

    def set_comments(self, task_id: str, comments: List[Comment]) -> Undo:
        _, _, _, task = self.find_task(task_id)
        self._swap_task(replace(task, comments=list(comments)))
        return lambda: self._swap_task(task)
