"""Lifecycle of a single tool invocation, from request to settled result."""

import asyncio
from enum import StrEnum
from typing import Any

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ValidationError

from mcpchat.models.messages import DENIAL_MESSAGE, Approval, ToolInvocation
from mcpchat.models.session import ChatSession
from mcpchat.models.stream import ToolApprovalRequestChunk, ToolResultChunk
from mcpchat.services.stream_writer import DeltaStreamWriter
from mcpchat.tools.base import ToolContext, ToolDefinition
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)


class InvocationState(StrEnum):
    """States of a tool invocation."""

    REQUESTED = "requested"
    PENDING_APPROVAL = "pending-approval"
    APPROVED = "approved"
    DENIED = "denied"
    EXECUTING = "executing"
    SETTLED = "settled"


TRANSITIONS: dict[InvocationState, frozenset[InvocationState]] = {
    InvocationState.REQUESTED: frozenset(
        {InvocationState.PENDING_APPROVAL, InvocationState.APPROVED, InvocationState.SETTLED}
    ),
    InvocationState.PENDING_APPROVAL: frozenset({InvocationState.APPROVED, InvocationState.DENIED}),
    InvocationState.APPROVED: frozenset({InvocationState.EXECUTING}),
    InvocationState.DENIED: frozenset({InvocationState.SETTLED}),
    InvocationState.EXECUTING: frozenset({InvocationState.SETTLED}),
    InvocationState.SETTLED: frozenset(),
}

# Executions abandoned by a cancelled response keep running until they settle
_abandoned_executions: set[asyncio.Task[ToolInvocation]] = set()


class InvalidTransitionError(Exception):
    """Raised when an invocation is driven through a transition it does not allow."""


def validation_error_result(tool_name: str, error: ValidationError) -> str:
    """Describe rejected tool arguments as a plain-text result."""
    problems = "; ".join(
        f"{'.'.join(str(loc) for loc in detail['loc']) or 'args'}: {detail['msg']}" for detail in error.errors()
    )
    return f"Error: Invalid arguments for {tool_name}: {problems}"


def execution_error_result(tool_name: str, error: Exception) -> str:
    """Describe a failed tool execution as a plain-text result."""
    return f"Error: {tool_name} failed: {error}"


class InvocationStateMachine:
    """Drives one tool invocation to its settled result.

    Each machine runs once. Gated tools that are not pre-approved suspend
    until the user's decision arrives through the session's decision broker.
    Execution happens at most once and its faults become error results.
    """

    def __init__(
        self,
        invocation: ToolInvocation,
        tool: ToolDefinition,
        session: ChatSession,
        writer: DeltaStreamWriter,
        history: list[BaseMessage] | None = None,
    ):
        """Initialize a machine in the requested state.

        Args:
            invocation: The call-state invocation produced by the model
            tool: Registered tool matching the invocation's name
            session: Conversation the invocation belongs to
            writer: Stream for approval requests, artifact deltas and the final result
            history: Prior conversation, handed to the tool as context
        """
        self.invocation = invocation
        self.tool = tool
        self.session = session
        self.writer = writer
        self.history = history or []
        self.state = InvocationState.REQUESTED
        self.state_history: list[InvocationState] = [InvocationState.REQUESTED]
        self.settled_invocation: ToolInvocation | None = None
        self.execution: asyncio.Task[ToolInvocation] | None = None
        self._started = False

    @property
    def tool_call_id(self) -> str:
        return self.invocation.tool_call_id

    def _transition(self, new_state: InvocationState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"Tool call {self.tool_call_id} cannot move from {self.state} to {new_state}")
        logger.debug(f"Tool call {self.tool_call_id}: {self.state} -> {new_state}")
        self.state = new_state
        self.state_history.append(new_state)

    async def run(self) -> ToolInvocation:
        """Take the invocation through approval and execution to a settled result.

        Raises:
            InvalidTransitionError: If the machine was already run
        """
        if self._started:
            raise InvalidTransitionError(f"Tool call {self.tool_call_id} was already processed")
        self._started = True

        try:
            params = self.tool.parse_input(self.invocation.args)
        except ValidationError as e:
            logger.info(f"Rejected arguments for tool call {self.tool_call_id}: {e.error_count()} errors")
            return self._settle(validation_error_result(self.tool.name, e))

        decision = await self._decide()
        if decision is Approval.NO:
            return self._settle(DENIAL_MESSAGE)

        self._transition(InvocationState.EXECUTING)
        self.execution = asyncio.ensure_future(self._execute(params))
        _abandoned_executions.add(self.execution)
        self.execution.add_done_callback(_abandoned_executions.discard)
        # Replays wait on the execution itself, which outlives an abandoned response
        self.session.track_in_flight(self.tool_call_id, self.execution)
        return await asyncio.shield(self.execution)

    async def _decide(self) -> Approval:
        name, args = self.tool.name, self.invocation.args
        gate = self.session.approval_gate

        if not self.tool.gated or gate.is_pre_approved(name, args):
            self._transition(InvocationState.APPROVED)
            return Approval.YES

        self._transition(InvocationState.PENDING_APPROVAL)

        decision = self.invocation.recorded_decision
        if decision is None:
            pending = self.session.decisions.claim(self.tool_call_id)
            logger.info(f"Tool call {self.tool_call_id} ({name}) is waiting for user approval")
            self.writer.write(ToolApprovalRequestChunk(tool_call_id=self.tool_call_id, tool_name=name, args=args))
            event = await self.session.decisions.wait_for_decision(self.tool_call_id, pending)
            if event.decision is Approval.YES and event.always:
                gate.record_always_approve(name, args)
            decision = event.decision

        logger.info(f"Tool call {self.tool_call_id} ({name}) decision: {decision}")
        self._transition(InvocationState.APPROVED if decision is Approval.YES else InvocationState.DENIED)
        return decision

    async def _execute(self, params: BaseModel) -> ToolInvocation:
        context = ToolContext(tool_call_id=self.tool_call_id, messages=self.history, writer=self.writer)
        try:
            result = await self.tool.execute(params, context)
        except Exception as e:
            logger.error(f"Tool {self.tool.name} failed for call {self.tool_call_id}: {e}", exc_info=True)
            result = execution_error_result(self.tool.name, e)
        return self._settle(result)

    def _settle(self, result: Any) -> ToolInvocation:
        self._transition(InvocationState.SETTLED)
        settled = self.invocation.model_copy(update={"state": "result", "result": result})
        self.settled_invocation = settled
        self.session.record_settled(settled)
        self.writer.write(ToolResultChunk(tool_call_id=self.tool_call_id, result=result))
        return settled
