# stack_orchestrator/stack/poller.py

import asyncio
import logging
from typing import Awaitable, Callable

from stack_orchestrator.core.errors import ConvergenceTimeoutError, StackTerminatedError
from stack_orchestrator.core.models import Stack
from stack_orchestrator.core.state_machine import ConvergenceAction, RetryBudget, next_action
from stack_orchestrator.infrastructure.dockercloud.client import DockerCloudClient

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_RETRIES = 10


class ConvergencePoller:
    """
    Polls a stack until it is running.

    Loop per attempt:
    1. Fail if the budget is exhausted, else consume one attempt
    2. Sleep the poll interval
    3. Re-fetch the stack and act on its state:
       - running: return it
       - starting / redeploying: refund the attempt
       - terminated: abort
       - not running / stopped: send a start request (attempt stays consumed)
       - anything else: poll again
    """

    def __init__(
        self,
        client: DockerCloudClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        retries: int = DEFAULT_RETRIES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self.poll_interval = poll_interval
        self.retries = retries
        self._sleep = sleep

    async def wait_for_running(self, stack_id: str, name: str = "") -> Stack:
        """
        Wait until the stack reports running, with a fresh retry budget.

        Raises:
            ConvergenceTimeoutError: Budget exhausted
            StackTerminatedError: Stack observed terminated
            StackApiError: Remote call failed
        """
        budget = RetryBudget(self.retries)
        label = name or stack_id

        while True:
            if budget.exhausted:
                raise ConvergenceTimeoutError(
                    f"Too many retries: stack '{label}' did not reach running state "
                    f"after {self.retries} attempts"
                )
            budget = budget.consume()

            await self._sleep(self.poll_interval)
            stack = await self._client.get_stack(stack_id)
            action = next_action(stack.state)

            if action == ConvergenceAction.DONE:
                logger.info(f"[stack - {stack.name}] ✅ Stack is running")
                return stack

            if action == ConvergenceAction.WAIT:
                logger.info(f"[stack - {stack.name}] Stack state: {stack.raw_state}. Hold on...")
                budget = budget.refund()
                continue

            logger.info(
                f"[stack - {stack.name}] (Retry {budget.remaining}) - Stack state: {stack.raw_state}"
            )

            if action == ConvergenceAction.ABORT:
                raise StackTerminatedError(
                    f"Aborting, stack '{stack.name}' has been terminated!"
                )

            if action == ConvergenceAction.START:
                logger.info(f"[stack - {stack.name}] Stack not running, trying to start it...")
                await self._client.start_stack(stack.id)
