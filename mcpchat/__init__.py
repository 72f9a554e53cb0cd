"""Tool invocation lifecycle service for conversational assistants."""

__version__ = "0.1.0"
