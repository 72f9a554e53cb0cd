"""Per-conversation approval state for gated tools."""

import asyncio
import json
from typing import Any

from mcpchat.config import ApprovalScope
from mcpchat.models.conversation import ApprovalDecision
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


class ApprovalGate:
    """Set of tools the user chose to always allow within one conversation.

    Entries are only added by an explicit "allow always" decision and only
    removed by an explicit revoke.
    """

    def __init__(self, scope: ApprovalScope = ApprovalScope.TOOL):
        """Initialize an empty gate.

        Args:
            scope: Whether approvals cover every call of a tool or only calls with the same arguments
        """
        self.scope = scope
        self._approved: set[str] = set()

    def _key(self, tool_name: str, args: dict[str, Any] | None) -> str:
        if self.scope is ApprovalScope.TOOL_ARGS:
            return f"{tool_name}:{json.dumps(args or {}, sort_keys=True, default=str)}"
        return tool_name

    def is_pre_approved(self, tool_name: str, args: dict[str, Any] | None = None) -> bool:
        """Check whether a tool call may run without prompting."""
        return self._key(tool_name, args) in self._approved

    def record_always_approve(self, tool_name: str, args: dict[str, Any] | None = None) -> None:
        """Remember an "allow always" decision. Repeated calls are no-ops."""
        key = self._key(tool_name, args)
        if key not in self._approved:
            logger.info(f"Tool {tool_name} is now always approved")
        self._approved.add(key)

    def revoke(self, tool_name: str) -> bool:
        """Remove every approval recorded for a tool.

        Returns:
            True if something was removed
        """
        matching = {key for key in self._approved if key == tool_name or key.startswith(f"{tool_name}:")}
        self._approved -= matching
        if matching:
            logger.info(f"Revoked approval for tool {tool_name}")
        return bool(matching)

    @property
    def approved(self) -> list[str]:
        """Approval keys in a stable order."""
        return sorted(self._approved)


class DecisionConflictError(Exception):
    """Raised when a decision arrives for an invocation that was already decided."""


class DecisionBroker:
    """Delivers out-of-band user decisions to suspended tool invocations.

    Each toolCallId is resolved at most once. A decision may arrive before
    the invocation starts waiting; it is held until claimed.
    """

    def __init__(self):
        """Initialize with no pending or resolved decisions."""
        self._waiters: dict[str, asyncio.Future[ApprovalDecision]] = {}
        self._early: dict[str, ApprovalDecision] = {}
        self._resolved: set[str] = set()

    @property
    def pending_ids(self) -> list[str]:
        """toolCallIds currently suspended on a decision."""
        return list(self._waiters)

    def has_pending(self) -> bool:
        """Whether any invocation is waiting for the user."""
        return bool(self._waiters)

    def is_resolved(self, tool_call_id: str) -> bool:
        """Whether a decision has already been delivered for a toolCallId."""
        return tool_call_id in self._resolved

    def claim(self, tool_call_id: str) -> asyncio.Future[ApprovalDecision]:
        """Register the wait for a decision without suspending.

        The returned future already holds the decision if it arrived early.

        Raises:
            DecisionConflictError: If the toolCallId is already decided or awaited
        """
        if tool_call_id in self._resolved or tool_call_id in self._waiters:
            raise DecisionConflictError(f"Decision for {tool_call_id} is already resolved or awaited")

        future: asyncio.Future[ApprovalDecision] = asyncio.get_running_loop().create_future()
        self._waiters[tool_call_id] = future

        early = self._early.pop(tool_call_id, None)
        if early is not None:
            self._resolved.add(tool_call_id)
            future.set_result(early)
        return future

    async def wait_for_decision(
        self, tool_call_id: str, future: asyncio.Future[ApprovalDecision] | None = None
    ) -> ApprovalDecision:
        """Suspend until the user decides on a tool invocation.

        There is no timeout. Cancelling the caller discards the wait and leaves
        the invocation undecided; a decision delivered in the same tick is held
        again for the next wait.
        """
        if future is None:
            future = self.claim(tool_call_id)

        try:
            return await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                logger.debug(f"Waiter for {tool_call_id} cancelled after its decision arrived, holding it")
                self._resolved.discard(tool_call_id)
                self._early[tool_call_id] = future.result()
            raise
        finally:
            if self._waiters.get(tool_call_id) is future:
                del self._waiters[tool_call_id]

    def submit(self, decision: ApprovalDecision) -> None:
        """Deliver a decision.

        Raises:
            DecisionConflictError: If the toolCallId already has a decision
        """
        tool_call_id = decision.tool_call_id
        if tool_call_id in self._resolved or tool_call_id in self._early:
            raise DecisionConflictError(f"Tool call {tool_call_id} was already decided")

        future = self._waiters.get(tool_call_id)
        if future is None or future.done():
            logger.debug(f"Holding early decision for {tool_call_id}")
            self._early[tool_call_id] = decision
            return

        self._resolved.add(tool_call_id)
        future.set_result(decision)
