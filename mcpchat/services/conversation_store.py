"""Conversation history storage interface and implementations."""

from typing import Protocol

from mcpchat.models.messages import Message
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationStoreError(Exception):
    """Raised when the store cannot complete a write."""


class ConversationStore(Protocol):
    """Interface for durable chat history."""

    async def get_message_by_id(self, message_id: str) -> Message | None:
        """Look up a stored message.

        Args:
            message_id: The message's unique identifier

        Returns:
            The stored message, or None if it was never saved
        """
        ...

    async def update_message(self, chat_id: str, message: Message) -> None:
        """Replace a stored message, keyed by its id.

        Raises:
            ConversationStoreError: If the write fails
        """
        ...

    async def save_messages(self, chat_id: str, messages: list[Message]) -> None:
        """Append new messages to a conversation."""
        ...

    async def get_messages_by_chat_id(self, chat_id: str) -> list[Message]:
        """Return a conversation's messages in order."""
        ...


class InMemoryConversationStore:
    """In-memory conversation store.

    Keeps each conversation's messages in insertion order.
    """

    def __init__(self):
        """Initialize an empty store."""
        self.chats: dict[str, list[Message]] = {}
        self._chat_by_message: dict[str, str] = {}

    async def get_message_by_id(self, message_id: str) -> Message | None:
        """Look up a stored message by id."""
        chat_id = self._chat_by_message.get(message_id)
        if chat_id is None:
            return None
        return next((m for m in self.chats[chat_id] if m.id == message_id), None)

    async def update_message(self, chat_id: str, message: Message) -> None:
        """Replace the stored message with the same id."""
        messages = self.chats.get(chat_id)
        if messages is None or self._chat_by_message.get(message.id) != chat_id:
            raise ConversationStoreError(f"Message {message.id} does not exist in chat {chat_id}")

        for index, stored in enumerate(messages):
            if stored.id == message.id:
                messages[index] = message
                break
        logger.debug(f"Updated message {message.id} in chat {chat_id}")

    async def save_messages(self, chat_id: str, messages: list[Message]) -> None:
        """Append messages, replacing any that were already saved under the same id."""
        history = self.chats.setdefault(chat_id, [])
        for message in messages:
            owner = self._chat_by_message.get(message.id)
            if owner is not None and owner != chat_id:
                raise ConversationStoreError(f"Message {message.id} belongs to chat {owner}")
            if owner == chat_id:
                history[:] = [message if m.id == message.id else m for m in history]
            else:
                history.append(message)
                self._chat_by_message[message.id] = chat_id

    async def get_messages_by_chat_id(self, chat_id: str) -> list[Message]:
        """Return a copy of a conversation's messages."""
        return list(self.chats.get(chat_id, []))


conversation_store = InMemoryConversationStore()
