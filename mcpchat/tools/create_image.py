"""Image artifact creation tool."""

from typing import Any

from pydantic import BaseModel, Field

from mcpchat.services.image_generation import ImageGenerationService
from mcpchat.tools.base import ToolContext, ToolDefinition


class CreateImageInput(BaseModel):
    """Input schema for the image tool."""

    title: str = Field(..., min_length=1, max_length=500, description="What the image should show")


def create_image_tool(image_service: ImageGenerationService) -> ToolDefinition:
    """Create the image tool.

    The generated image is streamed to the client as an image-delta chunk
    before the tool result is written.
    """

    async def create_image_handler(params: CreateImageInput, context: ToolContext) -> dict[str, Any]:
        content = await image_service.generate_image(params.title)
        context.emit_delta("image", content)

        return {
            "kind": "image",
            "title": params.title,
            "content": "An image was created and is now visible to the user.",
        }

    return ToolDefinition(
        name="createImage",
        description="Create an image from a description and show it to the user",
        input_schema_class=CreateImageInput,
        handler=create_image_handler,
    )
