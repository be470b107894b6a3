# stack_orchestrator/core/collaborators.py
"""Contracts for the I/O collaborators of the orchestrator."""

from abc import ABC, abstractmethod

from stack_orchestrator.core.models import BotConfig, Event


class ConfigLoader(ABC):
    """Loads the bot configuration of a repository."""

    @abstractmethod
    async def load(self, repository: str) -> BotConfig:
        """
        Fetch and parse the configuration file.
        Failures propagate to the caller.
        """
        raise NotImplementedError


class Notifier(ABC):
    """Posts outcome messages back to the source-control host."""

    @abstractmethod
    async def notify(self, event: Event, message: str) -> bool:
        """
        Comment on the pull request of the event's branch, or else on its commit.

        Returns False (after logging) when no target can be resolved.
        """
        raise NotImplementedError


class NullNotifier(Notifier):
    """No-op notifier (used when no GitHub token is configured)."""

    async def notify(self, event: Event, message: str) -> bool:
        """Do nothing."""
        return False
