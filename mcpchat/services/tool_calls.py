"""Processing of the tool calls carried by the latest message of a conversation."""

import asyncio
from collections.abc import AsyncIterator

from langchain_core.messages import BaseMessage

from mcpchat.models.messages import Message, Part, ToolInvocationPart
from mcpchat.models.session import ChatSession
from mcpchat.models.stream import ErrorChunk, encode_chunk
from mcpchat.services.conversation_store import ConversationStore, conversation_store
from mcpchat.services.invocation import InvocationStateMachine
from mcpchat.services.reconciliation import ReconciliationBridge
from mcpchat.services.stream_writer import DeltaStreamWriter
from mcpchat.tools.base import to_core_messages
from mcpchat.tools.registry import ToolsRegistry, get_tools_registry
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


class ToolCallProcessor:
    """Runs the tool invocations of a message and reconciles the result with storage."""

    def __init__(self, registry: ToolsRegistry, store: ConversationStore):
        """Initialize with the tool registry and the conversation store."""
        self.registry = registry
        self.bridge = ReconciliationBridge(store)

    async def process_tool_calls(
        self,
        chat_id: str,
        messages: list[Message],
        writer: DeltaStreamWriter,
        session: ChatSession,
    ) -> list[Message]:
        """Settle every tool invocation in the last message.

        Invocations run concurrently and the result is available once all of
        them settled. Part order is preserved. The processed message replaces
        the stored one only if something changed.

        Args:
            chat_id: Conversation the messages belong to
            messages: Conversation history, oldest first
            writer: Stream receiving approval requests and tool results
            session: Per-conversation approval and ledger state

        Returns:
            The history with its last message replaced by the processed copy
        """
        if not messages or not messages[-1].parts:
            return messages

        last_message = messages[-1]
        history = to_core_messages(messages)

        processed_parts = await asyncio.gather(
            *(self._process_part(part, session, writer, history) for part in last_message.parts)
        )
        processed_message = last_message.model_copy(update={"parts": list(processed_parts)})

        await self.bridge.reconcile(chat_id, last_message, processed_message)

        return [*messages[:-1], processed_message]

    async def _process_part(
        self,
        part: Part,
        session: ChatSession,
        writer: DeltaStreamWriter,
        history: list[BaseMessage],
    ) -> Part:
        if not isinstance(part, ToolInvocationPart):
            return part

        invocation = part.tool_invocation
        tool = self.registry.lookup(invocation.tool_name)
        if tool is None or invocation.state == "partial-call" or invocation.is_settled:
            return part
        # Only gated tools carry recorded yes/no decisions, anything else in result state is final
        if invocation.state == "result" and not tool.gated:
            return part

        tool_call_id = invocation.tool_call_id

        while True:
            settled = session.settled.get(tool_call_id)
            if settled is not None:
                logger.info(f"Tool call {tool_call_id} already settled, reusing its result")
                return part.model_copy(update={"tool_invocation": settled})

            running = session.in_flight.get(tool_call_id)
            if running is None or running.cancelled():
                break

            logger.info(f"Tool call {tool_call_id} is already being processed, waiting for it")
            try:
                return part.model_copy(update={"tool_invocation": await asyncio.shield(running)})
            except asyncio.CancelledError:
                if not running.cancelled() or asyncio.current_task().cancelling():
                    raise
                # The response that owned the call was abandoned before it settled
                logger.info(f"Tool call {tool_call_id} was abandoned by another response, taking it over")

        machine = InvocationStateMachine(invocation, tool, session, writer, history)
        task = asyncio.ensure_future(machine.run())
        session.track_in_flight(tool_call_id, task)
        try:
            settled = await task
        finally:
            # An abandoned execution has already replaced this entry and keeps it until it settles
            session.release_in_flight(tool_call_id, task)

        return part.model_copy(update={"tool_invocation": settled})

    async def stream_tool_calls(self, chat_id: str, messages: list[Message], session: ChatSession) -> AsyncIterator[str]:
        """Process tool calls and yield the resulting stream as NDJSON lines.

        Closing the iterator early (client disconnect) aborts the stream and
        cancels whatever is still waiting on approval.
        """
        writer = DeltaStreamWriter()

        async def produce() -> None:
            try:
                await self.process_tool_calls(chat_id, messages, writer, session)
            except Exception as e:
                logger.error(f"Tool call processing failed for chat {chat_id}: {e}", exc_info=True)
                writer.write(ErrorChunk(error=str(e)))
            finally:
                writer.close()

        task = asyncio.create_task(produce())
        try:
            async for chunk in writer:
                yield encode_chunk(chunk)
        finally:
            if not task.done():
                writer.abort()
                task.cancel()


tool_call_processor = ToolCallProcessor(get_tools_registry(), conversation_store)
