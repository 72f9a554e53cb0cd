"""Current weather lookup tool."""

from typing import Any

import httpx
from pydantic import BaseModel, Field

from mcpchat.config import settings
from mcpchat.tools.base import ToolContext, ToolDefinition
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


class GetWeatherInput(BaseModel):
    """Input schema for the weather tool."""

    latitude: float = Field(..., ge=-90, le=90, description="Latitude of the location")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude of the location")


def create_get_weather_tool(
    base_url: str | None = None,
    timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ToolDefinition:
    """Create the weather tool backed by the Open-Meteo forecast API.

    Args:
        base_url: Forecast endpoint, defaults to the configured one
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport, used by tests to stub the API
    """
    url = base_url or settings.weather_base_url
    http_timeout = timeout if timeout is not None else settings.http_timeout

    async def get_weather_handler(params: GetWeatherInput, context: ToolContext) -> dict[str, Any]:
        query = {
            "latitude": params.latitude,
            "longitude": params.longitude,
            "current": "temperature_2m",
            "hourly": "temperature_2m",
            "daily": "sunrise,sunset",
            "timezone": "auto",
        }
        # API failures are part of the result so the model can explain them
        try:
            async with httpx.AsyncClient(timeout=http_timeout, transport=transport) as client:
                response = await client.get(url, params=query)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Weather lookup failed for call {context.tool_call_id}: {e}")
            return {"error": True, "reason": str(e)}

    return ToolDefinition(
        name="getWeather",
        description="Get the current weather at a location",
        input_schema_class=GetWeatherInput,
        handler=get_weather_handler,
    )
