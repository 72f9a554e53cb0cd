#!/usr/bin/env python3
"""Interactive CLI for exercising tool calls against the mcpchat service."""

import json
import sys
import uuid
from typing import Any

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt


class ChatCLI:
    """Interactive client that plays the model and the user at once.

    Each command becomes an assistant message with one tool call. Approval
    requests streamed back by the service are answered at the prompt.
    """

    def __init__(self, base_url: str = "http://localhost:8000"):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.chat_id: str | None = None
        self.messages: list[dict[str, Any]] = []
        self.console = Console()
        self.client = httpx.Client(timeout=None)

    def start(self) -> None:
        """Start the interactive session."""
        self.console.print(
            Panel.fit(
                "[bold blue]mcpchat - Tool Call Console[/bold blue]\n"
                "Commands: /dice N, /calc OP A B, /weather LAT LON, /image TITLE,\n"
                "/approvals, /revoke TOOL, /help, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.chat_id = self.client.post(f"{self.base_url}/chat").json()["chat_id"]
        self.console.print(f"[green]Connected, chat {self.chat_id}[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]>[/bold cyan]").strip()
                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                if user_input == "":
                    continue
                self._handle_command(user_input)
        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _handle_command(self, user_input: str) -> None:
        command, *rest = user_input.split()
        try:
            if command == "/dice":
                self._call_tool("roll_dice", {"sides": int(rest[0])})
            elif command == "/calc":
                self._call_tool("calculator", {"operation": rest[0], "a": float(rest[1]), "b": float(rest[2])})
            elif command == "/weather":
                self._call_tool("getWeather", {"latitude": float(rest[0]), "longitude": float(rest[1])})
            elif command == "/image":
                self._call_tool("createImage", {"title": " ".join(rest)})
            elif command == "/approvals":
                data = self.client.get(f"{self.base_url}/chat/{self.chat_id}/approvals").json()
                self.console.print(f"Always allowed: {', '.join(data['approved']) or '(none)'}")
            elif command == "/revoke":
                response = self.client.delete(f"{self.base_url}/chat/{self.chat_id}/approvals/{rest[0]}")
                self.console.print(f"[yellow]{response.json()}[/yellow]")
            else:
                self._show_help()
        except (IndexError, ValueError):
            self.console.print("[red]Missing or invalid arguments[/red]")

    def _call_tool(self, tool_name: str, args: dict[str, Any]) -> None:
        message = {
            "id": str(uuid.uuid4()),
            "role": "assistant",
            "parts": [
                {
                    "type": "tool-invocation",
                    "toolInvocation": {
                        "toolCallId": f"call_{uuid.uuid4().hex[:12]}",
                        "toolName": tool_name,
                        "args": args,
                        "state": "call",
                    },
                }
            ],
        }
        self.client.post(f"{self.base_url}/chat/{self.chat_id}/messages", json={"messages": [message]})
        self.messages.append(message)

        with self.client.stream(
            "POST", f"{self.base_url}/chat/{self.chat_id}/tool-calls", json={"messages": self.messages}
        ) as response:
            for line in response.iter_lines():
                if line:
                    self._display_chunk(json.loads(line))

        stored = self.client.get(f"{self.base_url}/chat/{self.chat_id}/messages").json()["messages"]
        self.messages = stored

    def _display_chunk(self, chunk: dict[str, Any]) -> None:
        chunk_type = chunk["type"]
        if chunk_type == "tool_approval_request":
            self._ask_approval(chunk)
        elif chunk_type == "tool_result":
            self.console.print(
                Panel(
                    json.dumps(chunk["result"], indent=2) if not isinstance(chunk["result"], str) else chunk["result"],
                    title=f"[bold green]Result {chunk['toolCallId']}[/bold green]",
                    border_style="green",
                )
            )
        elif chunk_type.endswith("-delta"):
            self.console.print(f"[magenta]{chunk_type}: {len(chunk['content'])} characters[/magenta]")
        elif chunk_type == "error":
            self.console.print(f"[red]Error: {chunk['error']}[/red]")

    def _ask_approval(self, chunk: dict[str, Any]) -> None:
        self.console.print(
            Panel(
                f"[bold]{chunk['toolName']}[/bold] wants to run with {json.dumps(chunk['args'])}",
                title="[yellow]Permission required[/yellow]",
                border_style="yellow",
            )
        )
        choice = Prompt.ask("Allow", choices=["once", "always", "deny"], default="once")
        decision = {
            "toolCallId": chunk["toolCallId"],
            "decision": "no" if choice == "deny" else "yes",
            "always": choice == "always",
        }
        self.client.post(f"{self.base_url}/chat/{self.chat_id}/decisions", json=decision)

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /dice N - roll an N-sided die (needs approval)
• /calc add|subtract|multiply|divide A B - calculator (needs approval)
• /weather LAT LON - current weather
• /image TITLE - generate an image artifact
• /approvals - list always-allowed tools
• /revoke TOOL - stop always allowing a tool
• /quit or /exit - Exit
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
