"""Ordering for column and task drags.

Pure functions: inputs are never mutated, callers swap the returned objects
into the store.
"""
from dataclasses import replace
from typing import List, Optional
from core.exceptions import NotFound
from core.models import Column, ColumnSequence


def clamp_index(index: int, length: int) -> int:
    if index < 0:
        return 0
    return min(index, length)


def reorder_columns(columns: ColumnSequence, dragged_id: str, target_id: str) -> Optional[ColumnSequence]:
    """Move `dragged_id` to the index `target_id` currently occupies.

    Returns None when nothing changes (same id, or either id unknown).
    """
    if dragged_id == target_id or dragged_id not in columns or target_id not in columns:
        return None
    target_index = columns.index(target_id)
    result = columns.copy()
    _, dragged = result.remove(dragged_id)
    result.insert(target_index, dragged)
    return result


def move_task(
    columns: ColumnSequence,
    task_id: str,
    source_column_id: str,
    target_column_id: str,
    target_index: int,
) -> List[Column]:
    """Take a task out of its source column and put it at `target_index` of the target.

    Returns the replacement Column objects: one when source and target are
    the same column, otherwise [source, target].
    """
    source = columns.get(source_column_id)
    if source is None:
        raise NotFound("column", source_column_id)
    target = columns.get(target_column_id)
    if target is None:
        raise NotFound("column", target_column_id)
    current = source.index_of(task_id)
    if current < 0:
        raise NotFound("task", task_id)

    moved = replace(source.tasks[current], column_id=target_column_id)
    remaining = source.tasks[:current] + source.tasks[current + 1:]

    if source_column_id == target_column_id:
        tasks = list(remaining)
        tasks.insert(clamp_index(target_index, len(tasks)), moved)
        return [replace(source, tasks=tasks)]

    tasks = list(target.tasks)
    tasks.insert(clamp_index(target_index, len(tasks)), moved)
    return [replace(source, tasks=remaining), replace(target, tasks=tasks)]
