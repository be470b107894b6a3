# stack_orchestrator/core/state_machine.py
"""What the convergence poller does after observing a stack state."""

from dataclasses import dataclass
from enum import Enum

from stack_orchestrator.core.models import StackState


class ConvergenceAction(Enum):
    DONE = "done"          # stack is running
    WAIT = "wait"          # intermediate state, does not consume budget
    START = "start"        # idle stack, issue a start request
    ABORT = "abort"        # terminated, not retryable
    RETRY = "retry"        # anything else, consumes budget


ACTIONS = {
    StackState.RUNNING: ConvergenceAction.DONE,
    StackState.STARTING: ConvergenceAction.WAIT,
    StackState.REDEPLOYING: ConvergenceAction.WAIT,
    StackState.NOT_RUNNING: ConvergenceAction.START,
    StackState.STOPPED: ConvergenceAction.START,
    StackState.TERMINATED: ConvergenceAction.ABORT,
}


def next_action(state: StackState) -> ConvergenceAction:
    return ACTIONS.get(state, ConvergenceAction.RETRY)


@dataclass(frozen=True)
class RetryBudget:
    """Remaining polling attempts. Each operation returns a new budget."""

    remaining: int

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    def consume(self) -> "RetryBudget":
        return RetryBudget(self.remaining - 1)

    def refund(self) -> "RetryBudget":
        return RetryBudget(self.remaining + 1)
