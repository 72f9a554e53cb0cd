"""Persists tool-processed messages when, and only when, their content changed."""

from datetime import UTC, datetime

from mcpchat.models.messages import Message
from mcpchat.services.conversation_store import ConversationStore
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


def parts_changed(previous: Message, processed: Message) -> bool:
    """Compare two messages part by part.

    Parts are equal when they have the same type and the same field values;
    dictionary key order does not matter.
    """
    if len(previous.parts) != len(processed.parts):
        return True

    return any(
        type(before) is not type(after) or before.model_dump() != after.model_dump()
        for before, after in zip(previous.parts, processed.parts, strict=True)
    )


class ReconciliationBridge:
    """Writes processed messages back to the conversation store."""

    def __init__(self, store: ConversationStore):
        """Initialize with the store that owns chat history."""
        self.store = store

    async def reconcile(self, chat_id: str, previous: Message, processed: Message) -> bool:
        """Persist the processed message if tool execution changed it.

        Only messages already present in the store are updated; the bridge never
        creates history. Store failures propagate to the caller.

        Returns:
            True if a write happened
        """
        if not parts_changed(previous, processed):
            logger.debug(f"Message {processed.id} unchanged, skipping persistence")
            return False

        stored = await self.store.get_message_by_id(processed.id)
        if stored is None:
            logger.warning(f"Message {processed.id} not found in chat {chat_id}, skipping persistence")
            return False

        await self.store.update_message(chat_id, processed.model_copy(update={"created_at": datetime.now(UTC)}))
        logger.info(f"Persisted tool results for message {processed.id} in chat {chat_id}")
        return True
