"""Tests for the ClawMemory HTTP client."""

from unittest.mock import Mock, patch

import pytest

from ..client import ClawMemoryClient, RemoteError
from ..config_loader import API_BASE
from ..models import Memory, MemoryType


class MockRequestException(Exception):
    pass


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    return response


@pytest.fixture
def mock_requests():
    with patch("clawmemory.plugins.memory.client.requests") as mock:
        mock.RequestException = MockRequestException
        yield mock


@pytest.fixture
def client():
    return ClawMemoryClient("cm_test", agent_id="agent-1")


RECALL_OK = {
    "success": True,
    "data": {
        "memories": [
            {"id": "m2", "content": "Prefers dark mode", "type": "preference",
             "tags": [], "importance": 0.7, "relevance": 0.42, "created_at": "2024-01-02"},
            {"id": "m1", "content": "Name is Alex", "type": "fact",
             "tags": ["profile"], "importance": 0.9, "relevance": 0.91, "created_at": "2024-01-01"},
        ],
        "count": 2,
        "query": "user",
    },
}


class TestRequests:
    """Tests for what goes over the wire."""

    def test_recall_request(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data=RECALL_OK)

        client.recall("dark mode", 3, 0.5)

        args, kwargs = mock_requests.request.call_args
        assert args == ("POST", f"{API_BASE}/memories/recall")
        assert kwargs["json"] == {
            "query": "dark mode",
            "limit": 3,
            "threshold": 0.5,
            "agentId": "agent-1",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer cm_test"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_store_request(self, mock_requests, client):
        mock_requests.request.return_value = make_response(
            json_data={"success": True, "data": {"id": "m9", "status": "stored"}}
        )

        client.store("Uses vim", MemoryType.PREFERENCE, 0.4, ["editor"])

        args, kwargs = mock_requests.request.call_args
        assert args == ("POST", f"{API_BASE}/memories")
        assert kwargs["json"] == {
            "content": "Uses vim",
            "type": "preference",
            "importance": 0.4,
            "tags": ["editor"],
            "agentId": "agent-1",
        }

    def test_store_defaults(self, mock_requests):
        mock_requests.request.return_value = make_response(
            json_data={"success": True, "data": {"id": "m9"}}
        )

        ClawMemoryClient("cm_test").store("Something")

        body = mock_requests.request.call_args.kwargs["json"]
        assert body["type"] == "fact"
        assert body["importance"] == 0.7
        assert body["tags"] == []

    def test_agent_id_omitted_when_not_configured(self, mock_requests):
        mock_requests.request.return_value = make_response(json_data=RECALL_OK)

        ClawMemoryClient("cm_test").recall("anything")

        assert "agentId" not in mock_requests.request.call_args.kwargs["json"]

    def test_custom_base_url_and_timeout(self, mock_requests):
        mock_requests.request.return_value = make_response(json_data=RECALL_OK)

        ClawMemoryClient("cm_test", base_url="http://localhost:8080/api/", timeout=2.5).recall("q")

        args, kwargs = mock_requests.request.call_args
        assert args[1] == "http://localhost:8080/api/memories/recall"
        assert kwargs["timeout"] == 2.5

    def test_no_timeout_by_default(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data=RECALL_OK)

        client.recall("q")

        assert mock_requests.request.call_args.kwargs["timeout"] is None

    def test_one_request_per_call(self, mock_requests, client):
        mock_requests.request.return_value = make_response(status_code=503, text="busy")

        with pytest.raises(RemoteError):
            client.store("x")

        assert mock_requests.request.call_count == 1


class TestRecall:
    """Tests for recall results."""

    def test_returns_memories_in_service_order(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data=RECALL_OK)

        memories = client.recall("user")

        assert [m.id for m in memories] == ["m2", "m1"]
        assert all(isinstance(m, Memory) for m in memories)
        assert memories[0].type == MemoryType.PREFERENCE
        assert memories[1].relevance == 0.91
        assert memories[1].tags == ["profile"]

    def test_success_false_returns_empty(self, mock_requests, client):
        mock_requests.request.return_value = make_response(
            json_data={"success": False, "error": "quota exceeded"}
        )
        assert client.recall("user") == []

    def test_missing_data_returns_empty(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True})
        assert client.recall("user") == []

    def test_http_500_raises(self, mock_requests, client):
        mock_requests.request.return_value = make_response(status_code=500, text="Internal Server Error")

        with pytest.raises(RemoteError) as exc_info:
            client.recall("x", 5, 0.3)

        assert exc_info.value.status == 500
        assert exc_info.value.body == "Internal Server Error"
        assert "500" in str(exc_info.value)

    def test_transport_failure_raises(self, mock_requests, client):
        mock_requests.request.side_effect = MockRequestException("Connection refused")

        with pytest.raises(RemoteError) as exc_info:
            client.recall("x")

        assert exc_info.value.status is None
        assert "Connection refused" in str(exc_info.value)

    def test_invalid_json_raises(self, mock_requests, client):
        response = make_response(text="<html>")
        response.json.side_effect = ValueError("Expecting value")
        mock_requests.request.return_value = response

        with pytest.raises(RemoteError, match="invalid JSON"):
            client.recall("x")


class TestStore:
    """Tests for store results."""

    def test_returns_id(self, mock_requests, client):
        mock_requests.request.return_value = make_response(
            json_data={"success": True, "data": {"id": "m9", "status": "stored"}}
        )
        assert client.store("Name is Alex") == "m9"

    def test_success_false_returns_none(self, mock_requests, client):
        mock_requests.request.return_value = make_response(
            json_data={"success": False, "error": "duplicate"}
        )
        assert client.store("Name is Alex") is None

    def test_missing_data_returns_none(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True})
        assert client.store("Name is Alex") is None

    def test_unauthorized_raises(self, mock_requests, client):
        mock_requests.request.return_value = make_response(status_code=401, text='{"error":"bad key"}')

        with pytest.raises(RemoteError) as exc_info:
            client.store("Name is Alex")

        assert exc_info.value.status == 401


class TestManagementEndpoints:
    """Tests for list/get/update/delete."""

    def test_list(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={
            "success": True,
            "data": [{"id": "a", "content": "one", "type": "task"}],
        })

        memories = client.list(limit=10)

        args, kwargs = mock_requests.request.call_args
        assert args == ("GET", f"{API_BASE}/memories")
        assert kwargs["params"] == {"limit": 10}
        assert kwargs["json"] is None
        assert [m.id for m in memories] == ["a"]
        assert memories[0].type == MemoryType.TASK

    def test_list_success_false(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": False})
        assert client.list() == []

    def test_get(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={
            "success": True,
            "data": {"id": "a", "content": "one", "type": "custom-kind", "agent_id": "agent-1"},
        })

        memory = client.get("a")

        assert mock_requests.request.call_args.args == ("GET", f"{API_BASE}/memories/a")
        assert memory.content == "one"
        assert memory.type == "custom-kind"
        assert memory.agent_id == "agent-1"

    def test_get_missing(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": False})
        assert client.get("nope") is None

    def test_update_sends_only_given_fields(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True})

        assert client.update("a", content="Updated", importance=0.95) is True

        args, kwargs = mock_requests.request.call_args
        assert args == ("PATCH", f"{API_BASE}/memories/a")
        assert kwargs["json"] == {"content": "Updated", "importance": 0.95}

    def test_delete(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True})

        assert client.delete("a") is True
        assert mock_requests.request.call_args.args == ("DELETE", f"{API_BASE}/memories/a")

    def test_delete_not_found_raises(self, mock_requests, client):
        mock_requests.request.return_value = make_response(status_code=404, text="not found")

        with pytest.raises(RemoteError) as exc_info:
            client.delete("a")

        assert exc_info.value.status == 404


class TestMalformedPayloads:
    """2xx envelopes whose data has the wrong shape fail like any bad response."""

    @pytest.mark.parametrize("data", [
        "m1",
        ["m1"],
        42,
    ])
    def test_store_data_not_an_object(self, mock_requests, client, data):
        mock_requests.request.return_value = make_response(json_data={"success": True, "data": data})

        with pytest.raises(RemoteError) as exc_info:
            client.store("Name is Alex")

        assert exc_info.value.status == 200
        assert "unexpected data" in str(exc_info.value)

    @pytest.mark.parametrize("data", [
        "oops",
        {"memories": ["oops"]},
        {"memories": {"id": "m1"}},
        {"memories": [{"id": "m1", "content": "ok"}, None]},
    ])
    def test_recall_data_malformed(self, mock_requests, client, data):
        mock_requests.request.return_value = make_response(json_data={"success": True, "data": data})

        with pytest.raises(RemoteError, match="unexpected data"):
            client.recall("x")

    def test_recall_without_memories_key(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True, "data": {"count": 0}})
        assert client.recall("x") == []

    def test_list_items_not_objects(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True, "data": ["a", "b"]})

        with pytest.raises(RemoteError):
            client.list()

    def test_get_data_not_an_object(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": True, "data": "a"})

        with pytest.raises(RemoteError):
            client.get("a")

    def test_shape_not_checked_on_semantic_failure(self, mock_requests, client):
        mock_requests.request.return_value = make_response(json_data={"success": False, "data": "ignored"})
        assert client.store("Name is Alex") is None
