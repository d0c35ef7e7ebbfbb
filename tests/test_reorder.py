import itertools

import pytest

from conftest import seed_boards
from core.exceptions import NotFound
from core.models import Board, Column, ColumnSequence, Task
from services.reorder import clamp_index, move_task, reorder_columns


@pytest.fixture
def columns():
    return Board.from_dict(seed_boards()[0]).columns


def test_clamp_index():
    assert clamp_index(-3, 4) == 0
    assert clamp_index(2, 4) == 2
    assert clamp_index(99, 4) == 4


def test_column_dragged_forward_lands_at_target_index(columns):
    assert reorder_columns(columns, "todo", "done").ids() == ["doing", "done", "todo"]


def test_column_dragged_backward_lands_before_target(columns):
    assert reorder_columns(columns, "done", "todo").ids() == ["done", "todo", "doing"]


def test_column_reorder_no_op_cases(columns):
    assert reorder_columns(columns, "todo", "todo") is None
    assert reorder_columns(columns, "nope", "todo") is None
    assert reorder_columns(columns, "todo", "nope") is None


def test_column_reorder_is_always_a_permutation(columns):
    for dragged, target in itertools.permutations(columns.ids(), 2):
        result = reorder_columns(columns, dragged, target)
        assert sorted(result.ids()) == sorted(columns.ids())
        assert result.index(dragged) == columns.index(target)
    assert columns.ids() == ["todo", "doing", "done"]


def test_move_across_columns(columns):
    source, target = move_task(columns, "T1", "todo", "doing", 0)
    assert source.task_ids() == ["T2"]
    assert target.task_ids() == ["T1"]
    assert target.tasks[0].column_id == "doing"
    # inputs untouched
    assert columns["todo"].task_ids() == ["T1", "T2"]
    assert columns["doing"].tasks == []


def test_move_index_is_clamped(columns):
    _, target = move_task(columns, "T2", "todo", "doing", 50)
    assert target.task_ids() == ["T2"]
    _, target = move_task(columns, "T2", "todo", "doing", -5)
    assert target.task_ids() == ["T2"]


def test_move_within_column(columns):
    [column] = move_task(columns, "T1", "todo", "todo", 1)
    assert column.task_ids() == ["T2", "T1"]
    [column] = move_task(columns, "T2", "todo", "todo", 0)
    assert column.task_ids() == ["T2", "T1"]


def test_move_to_own_position_keeps_order(columns):
    [column] = move_task(columns, "T1", "todo", "todo", 0)
    assert column.task_ids() == ["T1", "T2"]


def test_move_preserves_task_multiset(columns):
    before = sorted(t.id for c in columns for t in c.tasks)
    for target, index in (("doing", 0), ("done", 3), ("todo", 1)):
        moved = move_task(columns, "T1", "todo", target, index)
        after = {c.id: c for c in columns}
        after.update({c.id: c for c in moved})
        assert sorted(t.id for c in after.values() for t in c.tasks) == before


def test_move_unknown_column_or_task(columns):
    with pytest.raises(NotFound):
        move_task(columns, "T1", "todo", "nope", 0)
    with pytest.raises(NotFound):
        move_task(columns, "T1", "nope", "todo", 0)
    with pytest.raises(NotFound):
        move_task(columns, "T1", "doing", "todo", 0)


def test_move_into_long_column_middle():
    tasks = [Task(id=f"X{i}", title="x", column_id="b", board_id="B") for i in range(3)]
    seq = ColumnSequence([
        Column(id="a", board_id="B", title="A", tasks=[Task(id="T", title="t", column_id="a", board_id="B")]),
        Column(id="b", board_id="B", title="B", tasks=tasks),
    ])
    _, target = move_task(seq, "T", "a", "b", 2)
    assert target.task_ids() == ["X0", "X1", "T", "X2"]
