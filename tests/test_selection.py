import pytest

from core.exceptions import NotFound


def test_nothing_selected_after_load(controller):
    sel = controller.selection
    assert sel.selected_member is None
    assert sel.selected_task is None
    assert sel.selected_board.id == "B1"


def test_select_unknown_ids(controller):
    sel = controller.selection
    with pytest.raises(NotFound):
        sel.select_member("m9")
    with pytest.raises(NotFound):
        sel.select_task("T9")
    with pytest.raises(NotFound):
        sel.select_board("B9")
    assert sel.selected_member_id is None


def test_selected_task_follows_the_store(controller):
    sel = controller.selection
    sel.select_task("T1")
    controller.move_task("T1", "done", 0)
    assert sel.selected_task.column_id == "done"


def test_rendered_columns_are_the_active_board(controller):
    assert [c.id for c in controller.selection.rendered_columns()] == ["todo", "doing", "done"]
    controller.reorder_columns("doing", "todo")
    assert [c.id for c in controller.selection.rendered_columns()] == ["doing", "todo", "done"]


def test_forget_missing_after_reload(controller, api):
    sel = controller.selection
    sel.select_member("m2")
    sel.select_task("T3")
    api.members = api.members[:1]
    api.boards = api.boards[:1]
    controller.load()
    assert sel.selected_member_id == "m1"
    assert sel.selected_task_id is None
    assert sel.selected_board_id == "B1"


def test_clear_selection(controller):
    sel = controller.selection
    sel.select_member("m1")
    sel.select_member(None)
    sel.select_task("T2")
    sel.select_task(None)
    assert sel.selected_member is None and sel.selected_task is None
