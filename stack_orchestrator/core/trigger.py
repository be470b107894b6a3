# stack_orchestrator/core/trigger.py
"""Trigger evaluator - decides whether a status change starts a deployment."""

import logging
from dataclasses import dataclass

from stack_orchestrator.core.branch_filter import is_allowed
from stack_orchestrator.core.models import Event, TriggerPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriggerDecision:
    """Outcome of the three trigger checks."""

    branch_allowed: bool
    issuer_allowed: bool
    state_matches: bool

    @property
    def admitted(self) -> bool:
        return self.branch_allowed and self.issuer_allowed and self.state_matches


def evaluate(event: Event, policy: TriggerPolicy) -> TriggerDecision:
    """Run all three checks and log each result."""
    branch_allowed = is_allowed(event.branch_name, policy.branches)
    issuer_allowed = event.issuer_key in policy.allowed_issuers
    state_matches = event.state == policy.expected_state

    logger.info(f"[{event.label}] isWhitelistBranch ({event.branch_name}) {branch_allowed}")
    logger.info(f"[{event.label}] isWhitelistIssuer ({event.issuer_key}) {issuer_allowed}")
    logger.info(f"[{event.label}] isExpectedState ({event.state}) {state_matches}")

    return TriggerDecision(
        branch_allowed=branch_allowed,
        issuer_allowed=issuer_allowed,
        state_matches=state_matches,
    )


def should_trigger(event: Event, policy: TriggerPolicy) -> bool:
    return evaluate(event, policy).admitted
