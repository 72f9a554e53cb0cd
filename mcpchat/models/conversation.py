"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel

from mcpchat.models.messages import Approval, Message, WireModel


class CreateConversationResponse(BaseModel):
    """Response model for conversation creation."""

    chat_id: str


class SaveMessagesRequest(BaseModel):
    """Messages to store in a conversation's history."""

    messages: list[Message]


class MessagesResponse(BaseModel):
    """Stored history of a conversation."""

    chat_id: str
    messages: list[Message]


class ProcessToolCallsRequest(BaseModel):
    """Conversation history whose trailing message carries tool calls."""

    messages: list[Message]


class ApprovalDecision(WireModel):
    """A user's allow/deny decision for a pending tool invocation."""

    tool_call_id: str
    decision: Approval
    always: bool = False


class DecisionResponse(BaseModel):
    """Acknowledgement of an approval decision."""

    tool_call_id: str
    accepted: bool


class ApprovalsResponse(BaseModel):
    """Tool names the user chose to always allow in a conversation."""

    chat_id: str
    approved: list[str]


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
