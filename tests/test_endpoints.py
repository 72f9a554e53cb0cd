"""Tests for API endpoints."""

import json

from fastapi.testclient import TestClient

from mcpchat.main import app
from mcpchat.models.messages import DENIAL_MESSAGE

client = TestClient(app)


def create_chat() -> str:
    response = client.post("/chat")
    assert response.status_code == 200
    return response.json()["chat_id"]


def tool_call_message(message_id: str, call_id: str, tool_name: str, args: dict) -> dict:
    return {
        "id": message_id,
        "role": "assistant",
        "parts": [
            {"type": "text", "text": "Let me do that"},
            {
                "type": "tool-invocation",
                "toolInvocation": {"toolCallId": call_id, "toolName": tool_name, "args": args, "state": "call"},
            },
        ],
    }


def stream_lines(response) -> list[dict]:
    return [json.loads(line) for line in response.text.splitlines() if line]


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check_returns_200(self):
        """Test that health check returns 200 status."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_check_response_structure(self):
        """Test that health check returns expected JSON structure."""
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert "timestamp" in data

    def test_health_check_content_type(self):
        """Test that health check returns JSON content type."""
        response = client.get("/health")
        assert response.headers["content-type"] == "application/json"


class TestConversationEndpoints:
    """Tests for creating conversations and storing history."""

    def test_create_chat(self):
        """Test that each new chat gets its own id."""
        assert create_chat() != create_chat()

    def test_save_and_get_messages(self):
        """Test that stored messages round-trip with camelCase fields."""
        chat_id = create_chat()
        messages = [
            {"id": "msg_user_1", "role": "user", "parts": [{"type": "text", "text": "Roll a d6"}]},
            tool_call_message("msg_asst_1", "call_save", "roll_dice", {"sides": 6}),
        ]

        saved = client.post(f"/chat/{chat_id}/messages", json={"messages": messages})
        fetched = client.get(f"/chat/{chat_id}/messages")

        assert saved.status_code == 200
        assert fetched.status_code == 200
        data = fetched.json()
        assert data["chat_id"] == chat_id
        assert [m["id"] for m in data["messages"]] == ["msg_user_1", "msg_asst_1"]
        invocation = data["messages"][1]["parts"][1]["toolInvocation"]
        assert invocation["toolCallId"] == "call_save"
        assert "createdAt" in data["messages"][0]

    def test_message_id_owned_by_one_chat(self):
        """Test that saving another chat's message id conflicts."""
        first, second = create_chat(), create_chat()
        message = {"id": "msg_owned", "role": "user", "parts": []}

        assert client.post(f"/chat/{first}/messages", json={"messages": [message]}).status_code == 200
        assert client.post(f"/chat/{second}/messages", json={"messages": [message]}).status_code == 409

    def test_unknown_chat_returns_404(self):
        """Test that unknown chats are rejected."""
        assert client.get("/chat/does-not-exist/messages").status_code == 404
        assert client.post("/chat/does-not-exist/tool-calls", json={"messages": []}).status_code == 404

    def test_invalid_part_type_returns_422(self):
        """Test that unknown part types fail validation."""
        chat_id = create_chat()
        message = {"id": "msg_bad", "role": "user", "parts": [{"type": "video", "url": "x"}]}
        assert client.post(f"/chat/{chat_id}/messages", json={"messages": [message]}).status_code == 422


class TestToolCallsEndpoint:
    """Tests for streamed tool call processing."""

    def test_empty_messages_returns_400(self):
        """Test that a request without messages is rejected."""
        chat_id = create_chat()
        assert client.post(f"/chat/{chat_id}/tool-calls", json={"messages": []}).status_code == 400

    def test_image_tool_streams_delta_then_result(self):
        """Test that an ungated tool streams its artifact and result, then updates history."""
        chat_id = create_chat()
        message = tool_call_message("msg_image", "call_image", "createImage", {"title": "a lighthouse"})
        client.post(f"/chat/{chat_id}/messages", json={"messages": [message]})

        response = client.post(f"/chat/{chat_id}/tool-calls", json={"messages": [message]})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        lines = stream_lines(response)
        assert [line["type"] for line in lines] == ["image-delta", "tool_result"]
        assert lines[1]["toolCallId"] == "call_image"
        assert lines[1]["result"]["kind"] == "image"

        stored = client.get(f"/chat/{chat_id}/messages").json()["messages"][0]
        invocation = stored["parts"][1]["toolInvocation"]
        assert invocation["state"] == "result"
        assert invocation["result"]["title"] == "a lighthouse"

    def test_decision_before_stream_is_held(self):
        """Test that a decision delivered before the request is applied to it."""
        chat_id = create_chat()
        message = tool_call_message("msg_dice", "call_dice", "roll_dice", {"sides": 6})

        decision = client.post(
            f"/chat/{chat_id}/decisions", json={"toolCallId": "call_dice", "decision": "yes", "always": True}
        )
        response = client.post(f"/chat/{chat_id}/tool-calls", json={"messages": [message]})

        assert decision.json() == {"tool_call_id": "call_dice", "accepted": True}
        lines = stream_lines(response)
        assert [line["type"] for line in lines] == ["tool_approval_request", "tool_result"]
        assert lines[0]["toolName"] == "roll_dice"
        assert lines[0]["args"] == {"sides": 6}
        assert 1 <= lines[1]["result"] <= 6

        approvals = client.get(f"/chat/{chat_id}/approvals").json()
        assert approvals["approved"] == ["roll_dice"]

    def test_pre_approved_tool_skips_request(self):
        """Test that an always-allowed tool runs without asking again."""
        chat_id = create_chat()
        client.post(f"/chat/{chat_id}/decisions", json={"toolCallId": "call_a", "decision": "yes", "always": True})
        client.post(
            f"/chat/{chat_id}/tool-calls",
            json={"messages": [tool_call_message("msg_a", "call_a", "calculator", {"operation": "add", "a": 1, "b": 2})]},
        )

        response = client.post(
            f"/chat/{chat_id}/tool-calls",
            json={
                "messages": [
                    tool_call_message("msg_b", "call_b", "calculator", {"operation": "multiply", "a": 3, "b": 4})
                ]
            },
        )

        lines = stream_lines(response)
        assert [line["type"] for line in lines] == ["tool_result"]
        assert lines[0]["result"] == 12

    def test_denial_settles_with_denial_message(self):
        """Test that a denied tool call reports the denial as its result."""
        chat_id = create_chat()
        client.post(f"/chat/{chat_id}/decisions", json={"toolCallId": "call_no", "decision": "no"})

        response = client.post(
            f"/chat/{chat_id}/tool-calls",
            json={"messages": [tool_call_message("msg_no", "call_no", "agents", {"tools": ["x"]})]},
        )

        lines = stream_lines(response)
        assert lines[-1] == {"type": "tool_result", "toolCallId": "call_no", "result": DENIAL_MESSAGE}

    def test_recorded_decision_in_history(self):
        """Test that a yes recorded on the invocation needs no separate decision."""
        chat_id = create_chat()
        message = tool_call_message("msg_rec", "call_rec", "calculator", {"operation": "subtract", "a": 9, "b": 4})
        invocation = message["parts"][1]["toolInvocation"]
        invocation["state"] = "result"
        invocation["result"] = "yes"

        lines = stream_lines(client.post(f"/chat/{chat_id}/tool-calls", json={"messages": [message]}))

        assert [line["type"] for line in lines] == ["tool_result"]
        assert lines[0]["result"] == 5


class TestDecisionEndpoints:
    """Tests for delivering decisions and managing approvals."""

    def test_duplicate_decision_conflicts(self):
        """Test that a second decision for the same call is rejected."""
        chat_id = create_chat()
        body = {"toolCallId": "call_dup", "decision": "yes"}

        assert client.post(f"/chat/{chat_id}/decisions", json=body).status_code == 200
        assert client.post(f"/chat/{chat_id}/decisions", json=body).status_code == 409

    def test_invalid_decision_value(self):
        """Test that only yes and no are accepted."""
        chat_id = create_chat()
        response = client.post(f"/chat/{chat_id}/decisions", json={"toolCallId": "c", "decision": "maybe"})
        assert response.status_code == 422

    def test_revoke_approval(self):
        """Test listing and revoking always-allowed tools."""
        chat_id = create_chat()
        client.post(f"/chat/{chat_id}/decisions", json={"toolCallId": "call_r", "decision": "yes", "always": True})
        client.post(
            f"/chat/{chat_id}/tool-calls",
            json={"messages": [tool_call_message("msg_r", "call_r", "roll_dice", {"sides": 20})]},
        )

        assert client.get(f"/chat/{chat_id}/approvals").json()["approved"] == ["roll_dice"]

        revoked = client.delete(f"/chat/{chat_id}/approvals/roll_dice")
        assert revoked.status_code == 200
        assert revoked.json()["approved"] == []
        assert client.delete(f"/chat/{chat_id}/approvals/roll_dice").status_code == 404
