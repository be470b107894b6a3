# stack_orchestrator/core/branch_filter.py
"""Branch whitelist / blacklist matching."""

import re
from typing import Iterable, Optional

from stack_orchestrator.core.models import BranchPolicy


def is_pattern(entry: str) -> bool:
    """Entries delimited by slashes (e.g. "/^release-.*/") are regexes."""
    return len(entry) >= 2 and entry.startswith("/") and entry.endswith("/")


def matches(entry: str, branch_name: str) -> bool:
    """Exact match for literals, unanchored search for /patterns/."""
    if is_pattern(entry):
        return re.search(entry[1:-1], branch_name) is not None
    return entry == branch_name


def _any_match(entries: Iterable[str], branch_name: str) -> bool:
    return any(matches(entry, branch_name) for entry in entries)


def is_allowed(branch_name: str, policy: Optional[BranchPolicy]) -> bool:
    """
    Decide whether a branch passes the policy.

    - No policy, or neither list set: allowed.
    - `only` set: allowed iff listed (`ignore` is not consulted).
    - `ignore` set: allowed iff not listed.
    """
    if policy is None:
        return True

    if policy.only is not None:
        return _any_match(policy.only, branch_name)

    if policy.ignore is not None:
        return not _any_match(policy.ignore, branch_name)

    return True
