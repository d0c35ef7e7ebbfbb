import pytest

from conftest import seed_boards, task_payload
from core.models import Board, Column, ColumnSequence, Comment, Member, Task


def test_board_keeps_column_order_of_the_payload():
    board = Board.from_dict(seed_boards()[0])
    assert board.columns.ids() == ["todo", "doing", "done"]
    assert board.columns["todo"].task_ids() == ["T1", "T2"]


def test_board_accepts_columns_as_a_list():
    raw = {"id": "B9", "title": "x", "columns": [{"id": "a", "title": "A"}, {"id": "b", "title": "B"}]}
    board = Board.from_dict(raw)
    assert board.columns.ids() == ["a", "b"]
    assert board.columns["a"].board_id == "B9"


def test_board_rejects_columns_of_another_type():
    with pytest.raises(ValueError):
        Board.from_dict({"id": "B9", "columns": "todo"})


def test_board_to_dict_lists_columns_in_order():
    board = Board.from_dict(seed_boards()[0])
    assert list(board.to_dict()["columns"]) == ["todo", "doing", "done"]


def test_task_from_camel_case():
    task = Task.from_dict(task_payload("T7", "todo", member="m2", requester="m1"))
    assert task.member_id == "m2"
    assert task.requester_id == "m1"
    assert task.start_date == "2024-05-01"
    assert task.effort == 2
    assert task.to_dict()["columnId"] == "todo"
    assert "comments" not in task.to_dict()


def test_task_without_id_is_rejected():
    raw = task_payload("T7", "todo")
    del raw["id"]
    with pytest.raises(ValueError):
        Task.from_dict(raw)


def test_nested_comments_get_their_task_id():
    raw = task_payload("T7", "todo", comments=[{"id": "c9", "text": "hi", "authorId": "m1", "createdAt": "2024"}, None])
    task = Task.from_dict(raw)
    assert [c.id for c in task.comments] == ["c9"]
    assert task.comments[0].task_id == "T7"
    assert task.comments[0].attachments == []


def test_comment_drops_empty_attachment_rows():
    comment = Comment.from_dict({
        "id": "c1", "taskId": "T1", "text": "see file", "authorId": "m1", "createdAt": "2024",
        "attachments": [{"id": None}, {"id": "a1", "name": "design.pdf", "url": "/uploads/design.pdf", "size": 10}],
    })
    assert [a.name for a in comment.attachments] == ["design.pdf"]
    assert comment.attachments[0].size == 10


def test_latest_comment_is_newest():
    task = Task(id="T", title="t", column_id="c", board_id="b", comments=[
        Comment("c1", "T", "old", "m1", "2024-01-01T00:00:00Z"),
        Comment("c2", "T", "new", "m1", "2024-03-01T00:00:00Z"),
        Comment("c3", "T", "mid", "m1", "2024-02-01T00:00:00Z"),
    ])
    assert task.latest_comment.id == "c2"
    assert [c.id for c in task.sorted_comments()] == ["c2", "c3", "c1"]
    assert Task(id="U", title="u", column_id="c", board_id="b").latest_comment is None


def test_member_defaults_color():
    assert Member.from_dict({"id": "m", "name": "Cy"}).color == "#64748B"


class TestColumnSequence:
    def make(self):
        return ColumnSequence(Column(id=i, board_id="B", title=i.upper()) for i in ("a", "b", "c"))

    def test_lookup_and_membership(self):
        seq = self.make()
        assert "b" in seq and "z" not in seq
        assert seq["c"].title == "C"
        assert seq.get("z") is None
        assert seq.index("c") == 2
        with pytest.raises(KeyError):
            seq["z"]

    def test_duplicate_insert_is_rejected(self):
        seq = self.make()
        with pytest.raises(ValueError):
            seq.append(Column(id="a", board_id="B", title="again"))

    def test_replace_keeps_position(self):
        seq = self.make()
        old = seq.replace(Column(id="b", board_id="B", title="Bee"))
        assert old.title == "B"
        assert seq.ids() == ["a", "b", "c"]
        assert seq["b"].title == "Bee"

    def test_remove_reports_index(self):
        seq = self.make()
        index, column = seq.remove("b")
        assert (index, column.id) == (1, "b")
        assert seq.ids() == ["a", "c"]

    def test_copy_is_independent(self):
        seq = self.make()
        other = seq.copy()
        other.remove("a")
        assert seq.ids() == ["a", "b", "c"]
        assert other != seq


@pytest.mark.parametrize("effort", [0, -2, "x"])
def test_task_rejects_bad_effort(effort):
    raw = task_payload("T7", "todo")
    raw["effort"] = effort
    with pytest.raises(ValueError):
        Task.from_dict(raw)


def test_task_effort_defaults_to_one():
    raw = task_payload("T7", "todo")
    del raw["effort"]
    assert Task.from_dict(raw).effort == 1
