from __future__ import annotations
import logging
import requests
from typing import List, Dict, Any, Optional
from core.exceptions import ApiError
from core.models import Board, Column, Comment, Member, Task

logger = logging.getLogger(__name__)


class KanbanApiClient:
    """Client for the board HTTP API. Every created entity carries its own id."""

    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}/api{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"{method} {path}: {e}") from e
        if not r.ok:
            raise ApiError(f"{method} {path}: {r.status_code} {r.text}", status_code=r.status_code)
        logger.debug("%s %s -> %s", method, path, r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{method} {path}: invalid JSON in response") from e

    # ---------- members ----------
    def list_members(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/members")

    def create_member(self, member: Member) -> Dict[str, Any]:
        return self._request("POST", "/members", json=member.to_dict())

    def delete_member(self, member_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/members/{member_id}")

    # ---------- boards ----------
    def list_boards(self) -> List[Dict[str, Any]]:
        """Boards with nested columns and tasks, columns in board order."""
        return self._request("GET", "/boards")

    def create_board(self, board: Board) -> Dict[str, Any]:
        return self._request("POST", "/boards", json=board.to_dict())

    def update_board(self, board_id: str, title: str) -> Dict[str, Any]:
        return self._request("PUT", f"/boards/{board_id}", json={"title": title})

    def delete_board(self, board_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/boards/{board_id}")

    # ---------- columns ----------
    def create_column(self, column: Column) -> Dict[str, Any]:
        return self._request("POST", "/columns", json=column.to_dict())

    def update_column(self, column_id: str, title: str) -> Dict[str, Any]:
        return self._request("PUT", f"/columns/{column_id}", json={"title": title})

    def delete_column(self, column_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/columns/{column_id}")

    # ---------- tasks ----------
    def list_tasks(self) -> List[Dict[str, Any]]:
        """All tasks with comments and their attachments."""
        return self._request("GET", "/tasks")

    def create_task(self, task: Task) -> Dict[str, Any]:
        return self._request("POST", "/tasks", json=task.to_dict())

    def update_task(self, task: Task) -> Dict[str, Any]:
        return self._request("PUT", f"/tasks/{task.id}", json=task.to_dict())

    def delete_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/tasks/{task_id}")

    # ---------- comments ----------
    def create_comment(self, comment: Comment) -> Dict[str, Any]:
        return self._request("POST", "/comments", json=comment.to_dict())
