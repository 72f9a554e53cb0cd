"""API endpoints for the tool invocation service."""

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from mcpchat import __version__
from mcpchat.models.conversation import (
    ApprovalDecision,
    ApprovalsResponse,
    CreateConversationResponse,
    DecisionResponse,
    HealthResponse,
    MessagesResponse,
    ProcessToolCallsRequest,
    SaveMessagesRequest,
)
from mcpchat.models.session import ChatSession
from mcpchat.services.approval import DecisionConflictError
from mcpchat.services.conversation_store import ConversationStoreError, conversation_store
from mcpchat.services.session_manager import session_manager
from mcpchat.services.tool_calls import tool_call_processor
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _require_session(chat_id: str) -> ChatSession:
    session = session_manager.get_session(chat_id)
    if not session:
        logger.warning(f"Unknown chat ID: {chat_id}")
        raise HTTPException(status_code=404, detail=f"Unknown chat: {chat_id}")
    return session


@router.post("/chat", response_model=CreateConversationResponse, tags=["Conversation"])
async def create_conversation() -> CreateConversationResponse:
    """Start a new conversation."""
    session = session_manager.get_or_create_session()
    logger.info(f"Created chat {session.chat_id}")
    return CreateConversationResponse(chat_id=session.chat_id)


@router.post("/chat/{chat_id}/messages", response_model=MessagesResponse, tags=["Conversation"])
async def save_messages(chat_id: str, request: SaveMessagesRequest) -> MessagesResponse:
    """Store messages in a conversation's history."""
    _require_session(chat_id)
    try:
        await conversation_store.save_messages(chat_id, request.messages)
    except ConversationStoreError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return MessagesResponse(chat_id=chat_id, messages=await conversation_store.get_messages_by_chat_id(chat_id))


@router.get("/chat/{chat_id}/messages", response_model=MessagesResponse, tags=["Conversation"])
async def get_messages(chat_id: str) -> MessagesResponse:
    """Return a conversation's stored history."""
    _require_session(chat_id)
    return MessagesResponse(chat_id=chat_id, messages=await conversation_store.get_messages_by_chat_id(chat_id))


@router.post("/chat/{chat_id}/tool-calls", tags=["Tools"])
async def process_tool_calls(chat_id: str, request: ProcessToolCallsRequest) -> StreamingResponse:
    """Run the tool calls in the trailing message and stream chunks as NDJSON.

    Gated tools that are not pre-approved emit a tool_approval_request chunk
    and wait for a decision posted to the decisions endpoint.
    """
    session = _require_session(chat_id)
    if not request.messages:
        raise HTTPException(status_code=400, detail="At least one message is required")

    logger.info(f"Processing tool calls of message {request.messages[-1].id} in chat {chat_id}")
    return StreamingResponse(
        tool_call_processor.stream_tool_calls(chat_id, request.messages, session),
        media_type="application/x-ndjson",
    )


@router.post("/chat/{chat_id}/decisions", response_model=DecisionResponse, tags=["Tools"])
async def submit_decision(chat_id: str, decision: ApprovalDecision) -> DecisionResponse:
    """Deliver an allow-once, allow-always or deny decision for a pending tool call."""
    session = _require_session(chat_id)
    try:
        session.decisions.submit(decision)
    except DecisionConflictError as e:
        logger.warning(f"Rejected duplicate decision in chat {chat_id}: {e}")
        raise HTTPException(status_code=409, detail=str(e)) from e

    logger.info(f"Decision {decision.decision} (always={decision.always}) for tool call {decision.tool_call_id}")
    return DecisionResponse(tool_call_id=decision.tool_call_id, accepted=True)


@router.get("/chat/{chat_id}/approvals", response_model=ApprovalsResponse, tags=["Tools"])
async def get_approvals(chat_id: str) -> ApprovalsResponse:
    """List the tools that are always allowed in a conversation."""
    session = _require_session(chat_id)
    return ApprovalsResponse(chat_id=chat_id, approved=session.approval_gate.approved)


@router.delete("/chat/{chat_id}/approvals/{tool_name}", response_model=ApprovalsResponse, tags=["Tools"])
async def revoke_approval(chat_id: str, tool_name: str) -> ApprovalsResponse:
    """Revoke an "always allow" decision."""
    session = _require_session(chat_id)
    if not session.approval_gate.revoke(tool_name):
        raise HTTPException(status_code=404, detail=f"Tool {tool_name} is not always approved")
    return ApprovalsResponse(chat_id=chat_id, approved=session.approval_gate.approved)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
