"""Image generation service interface and implementations."""

import base64
from html import escape
from typing import Protocol


class ImageGenerationService(Protocol):
    """Interface for image generation backends."""

    async def generate_image(self, prompt: str) -> str:
        """Generate an image for a prompt.

        Args:
            prompt: Description of the image

        Returns:
            The image encoded as base64
        """
        ...


class PlaceholderImageService:
    """Offline image service.

    Renders the prompt into a small SVG card instead of calling a provider.
    """

    def __init__(self, width: int = 512, height: int = 512):
        """Initialize with the card dimensions."""
        self.width = width
        self.height = height

    async def generate_image(self, prompt: str) -> str:  # noqa: RUF029
        """Return a base64-encoded SVG showing the prompt."""
        svg = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}">'
            f'<rect width="100%" height="100%" fill="#f4f4f5"/>'
            f'<text x="50%" y="50%" text-anchor="middle" font-family="sans-serif" font-size="20">'
            f"{escape(prompt)}</text></svg>"
        )
        return base64.b64encode(svg.encode()).decode()


image_service = PlaceholderImageService()
