"""Tools registry for looking up tool capabilities by name."""

from mcpchat.models.llm import LLMToolDefinition
from mcpchat.services.image_generation import ImageGenerationService, image_service
from mcpchat.tools.agents import create_agents_tool
from mcpchat.tools.base import ToolDefinition
from mcpchat.tools.calculator import create_calculator_tool
from mcpchat.tools.create_image import create_image_tool
from mcpchat.tools.get_weather import create_get_weather_tool
from mcpchat.tools.roll_dice import create_roll_dice_tool


class ToolsRegistry:
    """Registry mapping tool names to tool definitions."""

    def __init__(self, tools: list[ToolDefinition] | None = None):
        """Initialize the registry with an optional initial set of tools."""
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry, replacing any tool of the same name."""
        self._tools[tool.name] = tool

    def lookup(self, name: str) -> ToolDefinition | None:
        """Return the tool registered under a name, if any."""
        return self._tools.get(name)

    def get_tool_definitions(self) -> list[LLMToolDefinition]:
        """Get tool schemas for the model-invocation layer."""
        return [tool.as_llm_definition() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def get_gated_tool_names(self) -> list[str]:
        """Get names of tools that need user approval."""
        return [name for name, tool in self._tools.items() if tool.gated]

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools


def create_default_registry(images: ImageGenerationService | None = None) -> ToolsRegistry:
    """Create a registry holding the built-in tools and the gated MCP-style tools."""
    return ToolsRegistry(
        [
            create_get_weather_tool(),
            create_image_tool(images or image_service),
            create_roll_dice_tool(),
            create_calculator_tool(),
            create_agents_tool(),
        ]
    )


_tools_registry: ToolsRegistry | None = None


def get_tools_registry() -> ToolsRegistry:
    """Get or create the shared tools registry instance."""
    global _tools_registry

    if _tools_registry is None:
        _tools_registry = create_default_registry()

    return _tools_registry
