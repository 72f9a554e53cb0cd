"""Chat session management for in-memory storage."""

from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from mcpchat.config import ApprovalScope, settings
from mcpchat.models.session import ChatSession
from mcpchat.services.approval import ApprovalGate

cuid = cuid_wrapper()


class InMemorySessionManager:
    """In-memory manager for per-conversation state."""

    def __init__(self, session_timeout_minutes: int = 60, approval_scope: ApprovalScope = ApprovalScope.TOOL):
        """Initialize session manager.

        Args:
            session_timeout_minutes: Minutes of inactivity before an idle session expires
            approval_scope: Scope applied to every new session's approval gate
        """
        self.sessions: dict[str, ChatSession] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)
        self.approval_scope = approval_scope

    def get_or_create_session(self, chat_id: str | None = None) -> ChatSession:
        """Get existing session or create new one.

        Args:
            chat_id: Optional existing chat ID

        Returns:
            ChatSession object (existing or newly created)
        """
        self._cleanup_expired_sessions()

        if chat_id and chat_id in self.sessions:
            session = self.sessions[chat_id]
            session.update_activity()
            return session

        new_chat_id = chat_id or self._generate_chat_id()
        session = ChatSession(chat_id=new_chat_id, approval_gate=ApprovalGate(self.approval_scope))
        self.sessions[new_chat_id] = session
        return session

    def get_session(self, chat_id: str) -> ChatSession | None:
        """Get existing session by chat ID.

        Returns:
            ChatSession if found and not expired, None otherwise
        """
        self._cleanup_expired_sessions()

        session = self.sessions.get(chat_id)
        if session:
            session.update_activity()
        return session

    def delete_session(self, chat_id: str) -> bool:
        """Delete a session.

        Returns:
            True if session was deleted, False if not found
        """
        if chat_id in self.sessions:
            del self.sessions[chat_id]
            return True
        return False

    def _generate_chat_id(self) -> str:
        """Generate a new CUID-based chat ID."""
        return cuid()

    def _cleanup_expired_sessions(self) -> None:
        """Remove idle sessions. Sessions waiting on a user decision never expire."""
        current_time = datetime.now(UTC)
        expired_sessions = [
            chat_id
            for chat_id, session in self.sessions.items()
            if current_time - session.last_activity > self.session_timeout and not session.is_busy()
        ]

        for chat_id in expired_sessions:
            del self.sessions[chat_id]

    def get_session_count(self) -> int:
        """Get current number of active sessions."""
        self._cleanup_expired_sessions()
        return len(self.sessions)


session_manager = InMemorySessionManager(
    session_timeout_minutes=settings.conversation_timeout_minutes,
    approval_scope=settings.approval_scope,
)
