"""Tools the assistant can invoke."""

from mcpchat.tools.registry import ToolsRegistry, create_default_registry, get_tools_registry

__all__ = ["ToolsRegistry", "create_default_registry", "get_tools_registry"]
