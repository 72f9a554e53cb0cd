"""Per-conversation state shared by the invocations of one chat."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from mcpchat.models.messages import ToolInvocation
from mcpchat.services.approval import ApprovalGate, DecisionBroker
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ChatSession:
    """State for one conversation.

    Holds the "always allow" gate, the broker for pending user decisions and
    a ledger of settled and in-flight tool calls so that no toolCallId is
    executed more than once.
    """

    chat_id: str
    approval_gate: ApprovalGate = field(default_factory=ApprovalGate)
    decisions: DecisionBroker = field(default_factory=DecisionBroker)
    settled: dict[str, ToolInvocation] = field(default_factory=dict)
    in_flight: dict[str, "asyncio.Future[ToolInvocation]"] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, Any]:
        """Return the session as a dictionary."""
        return {
            "chat_id": self.chat_id,
            "approved": self.approval_gate.approved,
            "pending_decisions": self.decisions.pending_ids,
            "settled_calls": len(self.settled),
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def record_settled(self, invocation: ToolInvocation) -> None:
        """Remember the final state of a tool call."""
        logger.debug(f"Recording settled tool call {invocation.tool_call_id} in chat {self.chat_id}")
        self.settled[invocation.tool_call_id] = invocation
        self.update_activity()

    def track_in_flight(self, tool_call_id: str, future: "asyncio.Future[ToolInvocation]") -> None:
        """Mark a call as running; the entry is dropped once that future finishes."""
        self.in_flight[tool_call_id] = future
        future.add_done_callback(lambda done: self.release_in_flight(tool_call_id, done))

    def release_in_flight(self, tool_call_id: str, future: "asyncio.Future[ToolInvocation]") -> None:
        """Drop a call from the in-flight ledger unless a later attempt replaced it."""
        if self.in_flight.get(tool_call_id) is future:
            del self.in_flight[tool_call_id]

    def is_busy(self) -> bool:
        """Whether tool calls are running or waiting on the user."""
        return bool(self.in_flight) or self.decisions.has_pending()
