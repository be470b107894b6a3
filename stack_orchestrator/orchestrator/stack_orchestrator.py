# stack_orchestrator/orchestrator/stack_orchestrator.py
"""Stack orchestrator - reacts to status changes and closed pull requests."""

import json
import logging
import traceback
from enum import Enum
from typing import Dict, List, Optional

from stack_orchestrator.core.collaborators import ConfigLoader, Notifier
from stack_orchestrator.core.errors import ConfigurationError, NotificationError, StackApiError
from stack_orchestrator.core.models import Event
from stack_orchestrator.core.trigger import evaluate
from stack_orchestrator.orchestrator.locks import BranchLocks
from stack_orchestrator.stack.controller import StackController

logger = logging.getLogger(__name__)


class HandlerOutcome(Enum):
    SKIPPED = "SKIPPED"
    CREATED = "CREATED"
    REDEPLOYED = "REDEPLOYED"
    TERMINATED = "TERMINATED"
    FAILED = "FAILED"


class StackOrchestrator:
    """
    Entry points for source-control events.

    Status change flow:
    1. Skip events sent by the bot itself
    2. Load the repository config
    3. Evaluate branch / issuer / state rules
    4. Redeploy the active branch stack if any, else create it
    5. Report the outcome as a comment

    Pull request closed flow:
    1. Skip events sent by the bot itself
    2. Terminate the branch stack unless missing or already terminating
    3. Report the outcome as a comment

    Errors from the controller are reported once here and never retried.
    """

    def __init__(
        self,
        controller: StackController,
        config_loader: ConfigLoader,
        notifier: Notifier,
        locks: Optional[BranchLocks] = None,
    ):
        self._controller = controller
        self._config_loader = config_loader
        self._notifier = notifier
        self._locks = locks or BranchLocks()

    # -------------------------
    # STATUS CHANGE
    # -------------------------

    async def handle_status_change(self, event: Event) -> HandlerOutcome:
        label = event.label
        branch = event.branch_name

        if event.is_from_self:
            logger.info(f"[{label}] The issuer is the bot, skip")
            return HandlerOutcome.SKIPPED

        config = await self._config_loader.load(event.repository)

        decision = evaluate(event, config.trigger)
        if not decision.admitted:
            logger.info(
                f"[{label}] This event does not match the rules for deploying the stack "
                f"\"{branch}\", will be skipped"
            )
            return HandlerOutcome.SKIPPED

        async with self._locks.hold(branch):
            try:
                existing = await self._controller.find_active_stack_by_name(branch)

                if existing:
                    await self._controller.redeploy_stack(existing)
                    logger.info(f"[{label}] Stack \"{branch}\" has been redeployed")

                    if config.notify.on_update:
                        await self._notify(
                            event,
                            f":rocket: Stack `{branch}` has been redeployed!",
                        )
                    else:
                        logger.info(f"[{label}] Skip notification on stack update")
                    return HandlerOutcome.REDEPLOYED

                if config.stack is None:
                    raise ConfigurationError("No `stack` section in the configuration file")

                created = await self._controller.create_stack(branch, config.stack)
                logger.info(f"[{label}] Stack `{branch}` has been created")

                if config.notify.on_create:
                    urls = await self._controller.get_stack_service_urls(created)
                    await self._notify(
                        event,
                        created_message(branch, self._controller.stack_web_url(created), urls),
                    )
                else:
                    logger.info(f"[{label}] Skip notification on stack create")
                return HandlerOutcome.CREATED

            except Exception as e:
                logger.error(f"[{label}] Error while deploying stack \"{branch}\": {e}", exc_info=True)
                await self._notify(
                    event,
                    f":stop_sign: Something went wrong while deploying the stack `{branch}`. "
                    f"Have a look at the error message below.\n\n{format_error_message(e)}",
                )
                return HandlerOutcome.FAILED

    # -------------------------
    # PULL REQUEST CLOSED
    # -------------------------

    async def handle_pull_request_closed(self, event: Event) -> HandlerOutcome:
        label = event.label
        branch = event.branch_name

        if event.is_from_self:
            logger.info(f"[{label}] The issuer of the event is the bot, skip")
            return HandlerOutcome.SKIPPED

        async with self._locks.hold(branch):
            try:
                existing = await self._controller.find_active_stack_by_name(branch)

                if not existing:
                    logger.info(
                        f"[{label}] The stack \"{branch}\" does not exist or has already "
                        f"been terminated."
                    )
                    return HandlerOutcome.SKIPPED

                await self._controller.terminate_stack(existing)
                logger.info(f"[{label}] Stack \"{branch}\" has been scheduled for termination")

                config = await self._config_loader.load(event.repository)
                if config.notify.on_delete:
                    await self._notify(
                        event,
                        f":skull: Stack `{branch}` has been scheduled for termination!",
                    )
                else:
                    logger.info(f"[{label}] Skip notification on stack delete")
                return HandlerOutcome.TERMINATED

            except Exception as e:
                logger.error(f"[{label}] Error while terminating stack \"{branch}\": {e}", exc_info=True)
                await self._notify(
                    event,
                    f":stop_sign: Something went wrong while terminating the stack `{branch}`. "
                    f"Have a look at the error message below.\n\n{format_error_message(e)}",
                )
                return HandlerOutcome.FAILED

    # -------------------------
    # INTERNAL HELPERS
    # -------------------------

    async def _notify(self, event: Event, message: str) -> None:
        try:
            posted = await self._notifier.notify(event, message)
        except NotificationError as e:
            logger.error(f"[{event.label}] Could not post comment: {e} {e.detail}", exc_info=True)
            return

        if not posted:
            logger.warning(f"[{event.label}] No comment target found, message dropped")


def created_message(branch: str, stack_url: str, service_urls: Dict[str, List[str]]) -> str:
    services = "\n".join(
        f"* {name}" + "".join(f"\n  * {url}" for url in urls)
        for name, urls in service_urls.items()
    )
    return (
        f":tada: Your new stack `{branch}` has been created!\n\n"
        f"{stack_url}\n\n"
        f"{services}"
    )


def format_error_message(error: BaseException) -> str:
    """
    Remote API errors show their payload as JSON, other errors their traceback.
    """
    if isinstance(error, StackApiError) and error.detail is not None:
        return f"```json\n{json.dumps(error.detail, indent=2, default=str)}\n```"

    trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return f"```\n{trace.strip() or str(error)}\n```"
