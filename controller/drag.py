"""Drag and drop as plain method calls.

Any input source (mouse bindings, keyboard shortcuts, tests) drives the same
sequence: start_*_drag, any number of drag_over_*, then drop() or end_drag().
"""
import logging
from dataclasses import dataclass
from typing import Optional
from controller.app_controller import AppController

logger = logging.getLogger(__name__)


@dataclass
class TaskDrag:
    task_id: str
    source_column_id: str
    start_index: int
    target_column_id: Optional[str] = None
    target_index: int = 0


class DragSession:
    def __init__(self, controller: AppController):
        self.controller = controller
        self.column_id: Optional[str] = None
        self.task: Optional[TaskDrag] = None
        self.columns_moved = False

    @property
    def active(self) -> bool:
        return self.column_id is not None or self.task is not None

    def start_column_drag(self, column_id: str) -> None:
        self.end_drag()
        self.column_id = column_id

    def start_task_drag(self, task_id: str, source_column_id: str, index: int) -> None:
        self.end_drag()
        self.task = TaskDrag(task_id, source_column_id, index)

    def drag_over_column(self, target_column_id: str) -> bool:
        """Columns reorder live while hovering. Returns True if the order changed."""
        if self.column_id is None:
            return False
        if self.controller.reorder_columns(self.column_id, target_column_id):
            self.columns_moved = True
            return True
        return False

    def drag_over_task(self, target_column_id: str, target_index: int) -> None:
        if self.task is None:
            return
        self.task.target_column_id = target_column_id
        self.task.target_index = target_index

    def drop(self) -> bool:
        """Commit the pending task move, if any, and end the drag."""
        drag = self.task
        changed = False
        try:
            if drag is not None and drag.target_column_id is not None:
                _, before, index, _ = self.controller.store.find_task(drag.task_id)
                moved = self.controller.move_task(drag.task_id, drag.target_column_id, drag.target_index)
                changed = moved.column_id != before.id or self.controller.store.find_task(drag.task_id)[2] != index
                logger.debug("dropped %s into %s at %d", drag.task_id, drag.target_column_id, drag.target_index)
            elif self.column_id is not None:
                changed = self.columns_moved
        finally:
            self.end_drag()
        return changed

    def end_drag(self) -> None:
        self.column_id = None
        self.task = None
        self.columns_moved = False
