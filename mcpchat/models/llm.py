"""Tool descriptions handed to the model-invocation layer (provider-agnostic)."""

from typing import Any

from pydantic import BaseModel


class LLMToolDefinition(BaseModel):
    """Complete tool definition for LLM."""

    name: str
    description: str
    input_schema: dict[str, Any]
