"""Base types and definitions for tools."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from pydantic import BaseModel

from mcpchat.models.llm import LLMToolDefinition
from mcpchat.models.messages import Message, TextPart, ToolInvocation
from mcpchat.services.stream_writer import DeltaStreamWriter


@dataclass
class ToolContext:
    """What a tool sees about the conversation it runs in."""

    tool_call_id: str
    messages: list[BaseMessage] = field(default_factory=list)
    writer: DeltaStreamWriter | None = None

    def emit_delta(self, kind: str, content: str) -> bool:
        """Push an artifact fragment to the client ahead of the final result."""
        if self.writer is None:
            return False
        return self.writer.write_delta(kind, content)


ToolHandler = Callable[[BaseModel, ToolContext], Awaitable[Any]]


@dataclass
class ToolDefinition:
    """Definition of a tool available to the assistant."""

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler
    gated: bool = False

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return self.input_schema_class.model_json_schema()

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)

    async def execute(self, params: BaseModel, context: ToolContext) -> Any:
        """Run the tool with already validated parameters."""
        return await self.handler(params, context)

    def as_llm_definition(self) -> LLMToolDefinition:
        """Describe this tool for the model-invocation layer."""
        return LLMToolDefinition(name=self.name, description=self.description, input_schema=self.get_json_schema())


def _text_of(message: Message) -> str:
    return "\n".join(part.text for part in message.parts if isinstance(part, TextPart))


def _result_content(invocation: ToolInvocation) -> str:
    if isinstance(invocation.result, str):
        return invocation.result
    return json.dumps(invocation.result, default=str)


def to_core_messages(messages: list[Message]) -> list[BaseMessage]:
    """Convert chat history into provider-neutral LangChain messages for tool context."""
    core: list[BaseMessage] = []

    for message in messages:
        if message.role == "user":
            core.append(HumanMessage(content=_text_of(message), id=message.id))
            continue

        invocations = [inv for inv in message.tool_invocations() if inv.state != "partial-call"]
        if message.role == "assistant":
            core.append(
                AIMessage(
                    content=_text_of(message),
                    id=message.id,
                    tool_calls=[{"name": inv.tool_name, "args": inv.args, "id": inv.tool_call_id} for inv in invocations],
                )
            )

        core.extend(
            ToolMessage(content=_result_content(inv), tool_call_id=inv.tool_call_id, name=inv.tool_name)
            for inv in invocations
            if inv.is_settled
        )

    return core
