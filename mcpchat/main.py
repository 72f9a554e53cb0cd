"""Main FastAPI application."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcpchat import __version__
from mcpchat.api.endpoints import router
from mcpchat.config import settings
from mcpchat.utils.logging import LogConfig, setup_logging

setup_logging(LogConfig(level=settings.log_level))

app = FastAPI(
    title="mcpchat",
    description=(
        "Tool invocation service for a conversational assistant: approval gating, "
        "tool execution, streamed results and chat history reconciliation."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Conversation",
            "description": "Create conversations and manage their stored history.",
        },
        {
            "name": "Tools",
            "description": (
                "Run the tool calls of a message, stream their results and "
                "deliver user approval decisions for gated tools."
            ),
        },
        {
            "name": "Health",
            "description": "Service health monitoring and status checks.",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("mcpchat.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
