import pytest

from taskmaster import client


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.text = str(payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


@pytest.fixture
def calls(monkeypatch):
    recorded = []
    responses = []

    def fake_request(method, url, params=None, json=None, headers=None, timeout=None):
        recorded.append({"method": method, "url": url, "params": params, "json": json, "headers": headers})
        return responses.pop(0) if responses else FakeResponse(payload={"ok": True})

    monkeypatch.setattr(client._SESSION, "request", fake_request)
    client.configure("http://api.local/", "secret", lambda: "user-1", timezone="Europe/Berlin")
    yield recorded, responses
    client.configure(None, None, None)


def test_request_sends_identity_headers(calls):
    recorded, _ = calls
    assert client.toggle_task("t1") == {"ok": True}
    (call,) = recorded
    assert call["method"] == "POST"
    assert call["url"] == "http://api.local/v1/tasks/t1/toggle"
    assert call["headers"] == {
        "X-User-Id": "user-1",
        "X-Backend-Token": "secret",
        "X-User-Timezone": "Europe/Berlin",
    }


def test_add_task_and_history_payloads(calls):
    recorded, _ = calls
    client.add_task("c1", "Read", is_daily=True)
    client.analytics_history(limit=3)
    client.reorder_categories(("c2", "c1"))
    assert recorded[0]["json"] == {"category_id": "c1", "title": "Read", "is_daily": True}
    assert recorded[1]["params"] == {"limit": 3}
    assert recorded[2]["json"] == {"category_ids": ["c2", "c1"]}


def test_error_response_raises(calls):
    _, responses = calls
    responses.append(FakeResponse(status_code=400, payload={"detail": "bad"}, reason="Bad Request"))
    with pytest.raises(RuntimeError, match="API error 400"):
        client.add_task("", "x")


def test_missing_configuration(monkeypatch):
    monkeypatch.delenv("TASKMASTER_API_URL", raising=False)
    client.configure(None, None, None)
    assert not client.is_enabled()
    with pytest.raises(RuntimeError, match="not configured"):
        client.today_analytics()


def test_only_idempotent_methods_are_retried():
    retry = client._build_session().get_adapter("http://api.local/").max_retries
    assert 503 in retry.status_forcelist
    assert set(retry.allowed_methods) == {"GET", "PUT", "DELETE"}
    assert "POST" not in retry.allowed_methods
    assert "PATCH" not in retry.allowed_methods
