"""Runtime configuration for tool processing."""

import os
from dataclasses import dataclass
from enum import StrEnum


class ApprovalScope(StrEnum):
    """How an "always allow" decision is keyed."""

    TOOL = "tool"
    TOOL_ARGS = "tool_args"


@dataclass
class ToolingConfig:
    """Configuration for tool execution and approval handling."""

    approval_scope: ApprovalScope = ApprovalScope.TOOL
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    http_timeout: float = 10.0
    conversation_timeout_minutes: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ToolingConfig":
        """Build configuration from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            approval_scope=ApprovalScope(os.getenv("MCPCHAT_APPROVAL_SCOPE", defaults.approval_scope.value)),
            weather_base_url=os.getenv("MCPCHAT_WEATHER_URL", defaults.weather_base_url),
            http_timeout=float(os.getenv("MCPCHAT_HTTP_TIMEOUT", str(defaults.http_timeout))),
            conversation_timeout_minutes=int(
                os.getenv("MCPCHAT_CONVERSATION_TIMEOUT_MINUTES", str(defaults.conversation_timeout_minutes))
            ),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )


settings = ToolingConfig.from_env()
