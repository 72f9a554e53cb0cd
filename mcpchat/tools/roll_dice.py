"""Dice rolling tool."""

import random

from pydantic import BaseModel, Field

from mcpchat.tools.base import ToolContext, ToolDefinition


class RollDiceInput(BaseModel):
    """Input schema for the dice tool."""

    sides: int = Field(..., ge=2, description="Number of sides on the die")


def create_roll_dice_tool(rng: random.Random | None = None) -> ToolDefinition:
    """Create the gated dice tool."""
    generator = rng or random.Random()

    async def roll_dice_handler(params: RollDiceInput, context: ToolContext) -> int:  # noqa: RUF029
        return generator.randint(1, params.sides)

    return ToolDefinition(
        name="roll_dice",
        description="Rolls an N-sided die",
        input_schema_class=RollDiceInput,
        handler=roll_dice_handler,
        gated=True,
    )
