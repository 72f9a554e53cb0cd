"""Message and part data models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Approval(StrEnum):
    """Literal outcomes of a user approval decision."""

    YES = "yes"
    NO = "no"


DENIAL_MESSAGE = "Error: User denied access to tool execution"


class WireModel(BaseModel):
    """Base model using camelCase names on the wire and snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ToolInvocation(WireModel):
    """A single tool call requested by the model."""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)
    state: Literal["partial-call", "call", "result"] = "call"
    result: Any = None

    @property
    def recorded_decision(self) -> Approval | None:
        """Approval decision stored in history by a client, if this invocation carries one."""
        if self.state != "result" or not isinstance(self.result, str):
            return None
        if self.result in (Approval.YES, Approval.NO):
            return Approval(self.result)
        return None

    @property
    def is_settled(self) -> bool:
        """Whether the invocation already holds a real tool result."""
        return self.state == "result" and self.recorded_decision is None


class TextPart(WireModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str


class ReasoningPart(WireModel):
    """Model reasoning content."""

    type: Literal["reasoning"] = "reasoning"
    reasoning: str


class ToolInvocationPart(WireModel):
    """Part wrapping exactly one tool invocation."""

    type: Literal["tool-invocation"] = "tool-invocation"
    tool_invocation: ToolInvocation


class AttachmentPart(WireModel):
    """Reference to an uploaded attachment."""

    type: Literal["attachment-reference"] = "attachment-reference"
    url: str
    name: str | None = None
    content_type: str | None = None


Part = Annotated[
    TextPart | ReasoningPart | ToolInvocationPart | AttachmentPart,
    Field(discriminator="type"),
]


class Message(WireModel):
    """A chat message made of ordered parts.

    Messages are replaced with updated copies rather than mutated so that
    reconciliation can compare the previous and processed versions.
    """

    id: str
    role: Literal["user", "assistant", "tool"]
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    parts: list[Part] = Field(default_factory=list)
    attachments: list[AttachmentPart] = Field(default_factory=list)

    def tool_invocations(self) -> list[ToolInvocation]:
        """Return the tool invocations contained in this message, in part order."""
        return [part.tool_invocation for part in self.parts if isinstance(part, ToolInvocationPart)]


def get_trailing_assistant_message(messages: list[Message]) -> Message | None:
    """Return the last assistant message, if any."""
    return get_most_recent_message_by_role(messages, "assistant")


def get_most_recent_message_by_role(
    messages: list[Message], role: Literal["user", "assistant", "tool"] = "user"
) -> Message | None:
    """Return the most recent message with the given role."""
    matching = [message for message in messages if message.role == role]
    return matching[-1] if matching else None
