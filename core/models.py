from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

PRIORITIES = ("low", "medium", "high")


def _require(data: Dict[str, Any], key: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"missing {key!r}")
    return value


@dataclass
class Member:
    id: str
    name: str
    color: str = "#64748B"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Member":
        return cls(id=str(_require(data, "id")), name=data.get("name") or "", color=data.get("color") or "#64748B")


@dataclass
class Attachment:
    id: str
    name: str
    url: str
    type: str = ""
    size: int = 0  # bytes

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "url": self.url, "type": self.type, "size": self.size}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attachment":
        return cls(
            id=str(_require(data, "id")),
            name=data.get("name") or "",
            url=data.get("url") or "",
            type=data.get("type") or "",
            size=int(data.get("size") or 0),
        )


@dataclass
class Comment:
    id: str
    task_id: str
    text: str
    author_id: str
    created_at: str  # ISO timestamp
    attachments: List[Attachment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "text": self.text,
            "authorId": self.author_id,
            "createdAt": self.created_at,
            "attachments": [a.to_dict() for a in self.attachments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], task_id: Optional[str] = None) -> "Comment":
        # the nested board read path omits taskId and attachments
        raw_attachments = data.get("attachments") or []
        return cls(
            id=str(_require(data, "id")),
            task_id=str(data.get("taskId") or task_id or ""),
            text=data.get("text") or "",
            author_id=data.get("authorId") or "",
            created_at=data.get("createdAt") or "",
            attachments=[Attachment.from_dict(a) for a in raw_attachments if a and a.get("id")],
        )


@dataclass
class Task:
    id: str
    title: str
    column_id: str
    board_id: str
    member_id: str = ""     # assignee
    requester_id: str = ""
    description: str = ""
    start_date: str = ""    # YYYY-MM-DD
    effort: int = 1         # hours
    priority: str = "medium"
    comments: List[Comment] = field(default_factory=list)

    def sorted_comments(self) -> List[Comment]:
        """Newest first."""
        return sorted(self.comments, key=lambda c: c.created_at, reverse=True)

    @property
    def latest_comment(self) -> Optional[Comment]:
        ordered = self.sorted_comments()
        return ordered[0] if ordered else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "memberId": self.member_id,
            "requesterId": self.requester_id,
            "startDate": self.start_date,
            "effort": self.effort,
            "priority": self.priority,
            "columnId": self.column_id,
            "boardId": self.board_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        task_id = str(_require(data, "id"))
        raw_comments = data.get("comments") or []
        if not isinstance(raw_comments, list):
            raise ValueError(f"task {task_id}: comments must be a list")
        raw_effort = data.get("effort")
        effort = 1 if raw_effort is None or raw_effort == "" else int(raw_effort)
        if effort < 1:
            raise ValueError(f"task {task_id}: effort must be a positive number of hours, got {effort}")
        return cls(
            id=task_id,
            title=data.get("title") or "",
            column_id=str(_require(data, "columnId")),
            board_id=str(_require(data, "boardId")),
            member_id=data.get("memberId") or "",
            requester_id=data.get("requesterId") or "",
            description=data.get("description") or "",
            start_date=data.get("startDate") or "",
            effort=effort,
            priority=data.get("priority") or "medium",
            comments=[Comment.from_dict(c, task_id) for c in raw_comments if c and c.get("id")],
        )


@dataclass
class Column:
    id: str
    board_id: str
    title: str
    tasks: List[Task] = field(default_factory=list)

    def task_ids(self) -> List[str]:
        return [t.id for t in self.tasks]

    def index_of(self, task_id: str) -> int:
        for i, t in enumerate(self.tasks):
            if t.id == task_id:
                return i
        return -1

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "boardId": self.board_id, "title": self.title,
                "tasks": [t.to_dict() for t in self.tasks]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], board_id: Optional[str] = None) -> "Column":
        raw_tasks = data.get("tasks") or []
        if not isinstance(raw_tasks, list):
            raise ValueError("column tasks must be a list")
        return cls(
            id=str(_require(data, "id")),
            board_id=str(data.get("boardId") or board_id or ""),
            title=data.get("title") or "",
            tasks=[Task.from_dict(t) for t in raw_tasks],
        )


class ColumnSequence:
    """Columns as an explicit ordered list of (id, Column) pairs.

    Position is the list index. Lookups by id are linear, boards hold a
    handful of columns.
    """

    def __init__(self, columns: Iterable[Column] = ()):
        self._pairs: List[Tuple[str, Column]] = []
        for column in columns:
            self.append(column)

    def __iter__(self) -> Iterator[Column]:
        return iter([c for _, c in self._pairs])

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, column_id: object) -> bool:
        return any(cid == column_id for cid, _ in self._pairs)

    def __getitem__(self, column_id: str) -> Column:
        for cid, column in self._pairs:
            if cid == column_id:
                return column
        raise KeyError(column_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnSequence):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"ColumnSequence({self.ids()!r})"

    def get(self, column_id: str, default: Optional[Column] = None) -> Optional[Column]:
        try:
            return self[column_id]
        except KeyError:
            return default

    def ids(self) -> List[str]:
        return [cid for cid, _ in self._pairs]

    def items(self) -> List[Tuple[str, Column]]:
        return list(self._pairs)

    def index(self, column_id: str) -> int:
        for i, (cid, _) in enumerate(self._pairs):
            if cid == column_id:
                return i
        raise ValueError(f"column {column_id!r} not in sequence")

    def insert(self, index: int, column: Column) -> None:
        if column.id in self:
            raise ValueError(f"duplicate column {column.id!r}")
        self._pairs.insert(index, (column.id, column))

    def append(self, column: Column) -> None:
        self.insert(len(self._pairs), column)

    def replace(self, column: Column) -> Column:
        """Swap in a new object for an existing id, keeping its position."""
        i = self.index(column.id)
        old = self._pairs[i][1]
        self._pairs[i] = (column.id, column)
        return old

    def remove(self, column_id: str) -> Tuple[int, Column]:
        i = self.index(column_id)
        _, column = self._pairs.pop(i)
        return i, column

    def copy(self) -> "ColumnSequence":
        return ColumnSequence(self)


@dataclass
class Board:
    id: str
    title: str
    columns: ColumnSequence = field(default_factory=ColumnSequence)

    def to_dict(self) -> Dict[str, Any]:
        # JSON objects keep key order, the order of `columns` is the column order
        return {"id": self.id, "title": self.title,
                "columns": {cid: c.to_dict() for cid, c in self.columns.items()}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        board_id = str(_require(data, "id"))
        raw_columns = data.get("columns") or {}
        if isinstance(raw_columns, dict):
            raw_columns = list(raw_columns.values())
        if not isinstance(raw_columns, list):
            raise ValueError(f"board {board_id}: columns must be an object or a list")
        return cls(
            id=board_id,
            title=data.get("title") or "",
            columns=ColumnSequence(Column.from_dict(c, board_id) for c in raw_columns),
        )
