"""Arithmetic calculator tool."""

from typing import Literal

from pydantic import BaseModel, Field

from mcpchat.tools.base import ToolContext, ToolDefinition


class CalculatorInput(BaseModel):
    """Input schema for the calculator tool."""

    operation: Literal["add", "subtract", "multiply", "divide"] = Field(..., description="Operation to apply")
    a: float = Field(..., description="Left operand")
    b: float = Field(..., description="Right operand")


def create_calculator_tool() -> ToolDefinition:
    """Create the gated calculator tool."""

    async def calculator_handler(params: CalculatorInput, context: ToolContext) -> float:  # noqa: RUF029
        match params.operation:
            case "add":
                return params.a + params.b
            case "subtract":
                return params.a - params.b
            case "multiply":
                return params.a * params.b
            case "divide":
                if params.b == 0:
                    raise ZeroDivisionError("Cannot divide by zero")
                return params.a / params.b

    return ToolDefinition(
        name="calculator",
        description="Performs basic arithmetic on two numbers",
        input_schema_class=CalculatorInput,
        handler=calculator_handler,
        gated=True,
    )
