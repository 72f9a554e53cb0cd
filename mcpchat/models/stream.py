"""Stream chunk models written to clients while a response is in flight."""

from typing import Any, Literal

from pydantic import field_validator

from mcpchat.models.messages import WireModel


class TextChunk(WireModel):
    """Incremental assistant text."""

    type: Literal["text"] = "text"
    text: str


class ReasoningChunk(WireModel):
    """Incremental model reasoning."""

    type: Literal["reasoning"] = "reasoning"
    reasoning: str


class ToolResultChunk(WireModel):
    """Final result of a settled tool invocation, written once per invocation."""

    type: Literal["tool_result"] = "tool_result"
    tool_call_id: str
    result: Any


class ToolApprovalRequestChunk(WireModel):
    """Asks the client to allow or deny a gated tool invocation."""

    type: Literal["tool_approval_request"] = "tool_approval_request"
    tool_call_id: str
    tool_name: str
    args: dict[str, Any]


class ArtifactDeltaChunk(WireModel):
    """Artifact content fragment; each one fully supersedes the previous fragment."""

    type: str
    content: str

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Artifact chunk types are named after the artifact kind, e.g. image-delta."""
        if not v.endswith("-delta") or v == "-delta":
            raise ValueError("Artifact chunk type must look like '<kind>-delta'")
        return v

    @classmethod
    def for_kind(cls, kind: str, content: str) -> "ArtifactDeltaChunk":
        """Build a delta chunk for an artifact kind such as 'image' or 'text'."""
        return cls(type=f"{kind}-delta", content=content)


class ErrorChunk(WireModel):
    """Pipeline failure surfaced to the client."""

    type: Literal["error"] = "error"
    error: str


StreamChunk = (
    TextChunk | ReasoningChunk | ToolResultChunk | ToolApprovalRequestChunk | ArtifactDeltaChunk | ErrorChunk
)


def encode_chunk(chunk: StreamChunk) -> str:
    """Encode a chunk as one newline-terminated JSON document."""
    return chunk.model_dump_json(by_alias=True) + "\n"
