from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import requests
from core.exceptions import ApiError

logger = logging.getLogger(__name__)


@dataclass
class QueryLogEntry:
    id: str
    type: str  # SELECT | INSERT | UPDATE | DELETE | ERROR
    query: str
    timestamp: str
    params: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryLogEntry":
        return cls(
            id=str(data.get("id", "")),
            type=data.get("type", ""),
            query=data.get("query", ""),
            timestamp=data.get("timestamp", ""),
            params=list(data.get("params") or []),
            error=data.get("error"),
        )


class QueryLog:
    """Debug view of the statements the server ran. Only the debug panel reads it."""
    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base = base_url.rstrip('/')
        self.timeout = timeout
        self.s = session or requests.Session()
        self.entries: List[QueryLogEntry] = []
        self._seen: set = set()

    def refresh(self) -> List[QueryLogEntry]:
        """Append entries not seen before; returns just the new ones."""
        try:
            r = self.s.get(f"{self.base}/api/debug/logs", timeout=self.timeout)
            r.raise_for_status()
            items = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ApiError(f"query log fetch failed: {e}") from e
        new = []
        for raw in items or []:
            entry = QueryLogEntry.from_dict(raw)
            if entry.id in self._seen:
                continue
            self._seen.add(entry.id)
            new.append(entry)
        self.entries.extend(new)
        if new:
            logger.debug("query log: %d new entries", len(new))
        return new

    def errors(self) -> List[QueryLogEntry]:
        return [e for e in self.entries if e.type == "ERROR"]

    def clear(self) -> None:
        try:
            self.s.post(f"{self.base}/api/debug/logs/clear", timeout=self.timeout).raise_for_status()
        except requests.RequestException as e:
            raise ApiError(f"query log clear failed: {e}") from e
        self.entries.clear()
        self._seen.clear()
