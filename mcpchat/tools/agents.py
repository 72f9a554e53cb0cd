"""Agent capability listing tool."""

from pydantic import BaseModel, Field

from mcpchat.tools.base import ToolContext, ToolDefinition


class AgentsInput(BaseModel):
    """Input schema for the agents tool."""

    tools: list[str] = Field(..., description="Tool names the agent may use")


def create_agents_tool() -> ToolDefinition:
    """Create the gated agents tool."""

    async def agents_handler(params: AgentsInput, context: ToolContext) -> str:  # noqa: RUF029
        return f"I can use {', '.join(params.tools)}."

    return ToolDefinition(
        name="agents",
        description="Agents with multiple capabilities, tools, and LLMs. Each agent can own roles and decisions.",
        input_schema_class=AgentsInput,
        handler=agents_handler,
        gated=True,
    )
