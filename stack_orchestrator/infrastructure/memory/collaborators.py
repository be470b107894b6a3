# stack_orchestrator/infrastructure/memory/collaborators.py

from typing import Dict, List, Optional, Tuple

from stack_orchestrator.core.collaborators import ConfigLoader, Notifier
from stack_orchestrator.core.models import BotConfig, Event


class StaticConfigLoader(ConfigLoader):
    """Returns a fixed config (optionally per repository)."""

    def __init__(self, config: BotConfig, per_repository: Optional[Dict[str, BotConfig]] = None):
        self._config = config
        self._per_repository = per_repository or {}
        self.loads: List[str] = []

    async def load(self, repository: str) -> BotConfig:
        self.loads.append(repository)
        return self._per_repository.get(repository, self._config)


class RecordingNotifier(Notifier):
    """Keeps messages in memory instead of posting them."""

    def __init__(self, resolvable: bool = True):
        self.resolvable = resolvable
        self.messages: List[Tuple[Event, str]] = []

    async def notify(self, event: Event, message: str) -> bool:
        if not self.resolvable:
            return False
        self.messages.append((event, message))
        return True

    @property
    def bodies(self) -> List[str]:
        return [message for _, message in self.messages]
