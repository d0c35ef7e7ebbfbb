from typing import List, Optional
from core.exceptions import NotFound
from core.models import Board, Column, Member, Task
from core.store import EntityStore


class SelectionState:
    """What the user is focused on. Holds ids only, data is always read from the store."""
    def __init__(self, store: EntityStore):
        self.store = store
        self.selected_member_id: Optional[str] = None
        self.selected_task_id: Optional[str] = None

    # ---- board ----
    @property
    def selected_board_id(self) -> Optional[str]:
        return self.store.active_board_id

    @property
    def selected_board(self) -> Optional[Board]:
        return self.store.active_board

    def select_board(self, board_id: str) -> Board:
        # member focus survives a board switch
        return self.store.select_board(board_id)

    def rendered_columns(self) -> List[Column]:
        return list(self.store.active_columns)

    # ---- member ----
    @property
    def selected_member(self) -> Optional[Member]:
        if self.selected_member_id is None:
            return None
        try:
            return self.store.member(self.selected_member_id)
        except NotFound:
            return None

    def select_member(self, member_id: Optional[str]) -> None:
        if member_id is not None:
            self.store.member(member_id)
        self.selected_member_id = member_id

    # ---- task ----
    @property
    def selected_task(self) -> Optional[Task]:
        if self.selected_task_id is None:
            return None
        try:
            return self.store.find_task(self.selected_task_id)[3]
        except NotFound:
            return None

    def select_task(self, task_id: Optional[str]) -> None:
        if task_id is not None:
            self.store.find_task(task_id)
        self.selected_task_id = task_id

    def forget_missing(self) -> None:
        """Drop member/task focus that no longer points at anything."""
        if self.selected_member_id is not None and self.selected_member is None:
            self.selected_member_id = self.store.members[0].id if self.store.members else None
        if self.selected_task_id is not None and self.selected_task is None:
            self.selected_task_id = None
