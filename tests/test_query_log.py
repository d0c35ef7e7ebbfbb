from unittest.mock import MagicMock

import pytest
import requests

from core.exceptions import ApiError
from services.query_log import QueryLog


def entry(i, kind="SELECT", error=None):
    return {"id": str(i), "type": kind, "query": f"SELECT {i}", "timestamp": "2024-05-01T00:00:00Z",
            "params": [i], "error": error}


@pytest.fixture
def session():
    s = MagicMock()
    s.get.return_value.json.return_value = [entry(1), entry(2, "ERROR", "no such table")]
    return s


def test_refresh_appends_only_new_entries(session):
    log = QueryLog("http://kanban.test", session=session)
    assert [e.id for e in log.refresh()] == ["1", "2"]
    session.get.return_value.json.return_value = [entry(1), entry(2, "ERROR"), entry(3)]
    assert [e.id for e in log.refresh()] == ["3"]
    assert [e.id for e in log.entries] == ["1", "2", "3"]
    assert [e.error for e in log.errors()] == ["no such table"]
    session.get.assert_called_with("http://kanban.test/api/debug/logs", timeout=10)


def test_refresh_failure(session):
    session.get.side_effect = requests.ConnectionError("refused")
    log = QueryLog("http://kanban.test", session=session)
    with pytest.raises(ApiError):
        log.refresh()
    assert log.entries == []


def test_clear(session):
    log = QueryLog("http://kanban.test/", session=session)
    log.refresh()
    log.clear()
    session.post.assert_called_once_with("http://kanban.test/api/debug/logs/clear", timeout=10)
    assert log.entries == []
    assert [e.id for e in log.refresh()] == ["1", "2"]
