# stack_orchestrator/infrastructure/github/config_loader.py
"""Loads the bot configuration file from the repository."""

import logging

import httpx
import yaml

from stack_orchestrator.core.collaborators import ConfigLoader
from stack_orchestrator.core.errors import ConfigurationError
from stack_orchestrator.core.models import BotConfig
from stack_orchestrator.infrastructure.github.client import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".github/docker-cloud-config.yml"


class GitHubConfigLoader(ConfigLoader):
    """Reads the YAML config through the contents API (default branch)."""

    def __init__(self, client: GitHubClient, path: str = DEFAULT_CONFIG_PATH):
        self._client = client
        self.path = path

    async def load(self, repository: str) -> BotConfig:
        try:
            response = await self._client.get(
                f"/repos/{repository}/contents/{self.path}",
                headers={"Accept": "application/vnd.github.raw"},
            )
        except httpx.RequestError as e:
            raise ConfigurationError(f"Failed to load {self.path} from {repository}: {e}") from e

        if response.status_code == 404:
            logger.warning(f"[config] {self.path} not found in {repository}, using defaults")
            return BotConfig.from_dict(None)

        if not response.is_success:
            raise ConfigurationError(
                f"Failed to load {self.path} from {repository} "
                f"[{response.status_code}]: {response.text}"
            )

        try:
            data = yaml.safe_load(response.text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.path}: {e}") from e

        logger.info(f"[config] Docker cloud config {data}")
        try:
            return BotConfig.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Cannot read {self.path}: {e}") from e
