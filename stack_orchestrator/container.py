# stack_orchestrator/container.py

"""Dependency injection container - wires all services together."""

from dataclasses import dataclass
from typing import Optional

import httpx

from stack_orchestrator.core.collaborators import ConfigLoader, Notifier, NullNotifier
from stack_orchestrator.infrastructure.dockercloud.client import DockerCloudClient
from stack_orchestrator.infrastructure.github.client import GitHubClient
from stack_orchestrator.infrastructure.github.config_loader import GitHubConfigLoader
from stack_orchestrator.infrastructure.github.notifier import GitHubNotifier
from stack_orchestrator.orchestrator.locks import BranchLocks
from stack_orchestrator.orchestrator.stack_orchestrator import StackOrchestrator
from stack_orchestrator.settings import Settings
from stack_orchestrator.stack.controller import StackController
from stack_orchestrator.stack.poller import ConvergencePoller


@dataclass
class Container:
    settings: Settings
    stack_client: DockerCloudClient
    github_client: GitHubClient
    controller: StackController
    orchestrator: StackOrchestrator

    async def aclose(self) -> None:
        await self.stack_client.aclose()
        await self.github_client.aclose()


def build_container(
    settings: Settings,
    *,
    stack_transport: Optional[httpx.AsyncBaseTransport] = None,
    github_transport: Optional[httpx.AsyncBaseTransport] = None,
    config_loader: Optional[ConfigLoader] = None,
    notifier: Optional[Notifier] = None,
) -> Container:
    """Build every component from one Settings value."""

    # ============================================
    # CLIENTS
    # ============================================

    stack_client = DockerCloudClient(
        base_url=settings.stack_api_base_url,
        user=settings.dockercloud_user,
        api_key=settings.dockercloud_apikey,
        timeout=settings.request_timeout_seconds,
        transport=stack_transport,
    )
    github_client = GitHubClient(
        token=settings.github_token,
        api_url=settings.github_api_url,
        timeout=settings.request_timeout_seconds,
        transport=github_transport,
    )

    # ============================================
    # COLLABORATORS
    # ============================================

    if config_loader is None:
        config_loader = GitHubConfigLoader(github_client, path=settings.config_file_path)

    if notifier is None:
        notifier = GitHubNotifier(github_client) if settings.github_token else NullNotifier()

    # ============================================
    # SERVICES
    # ============================================

    poller = ConvergencePoller(
        stack_client,
        poll_interval=settings.poll_interval_seconds,
        retries=settings.convergence_retries,
    )
    controller = StackController(stack_client, poller)
    orchestrator = StackOrchestrator(
        controller=controller,
        config_loader=config_loader,
        notifier=notifier,
        locks=BranchLocks(enabled=settings.serialize_branch_events),
    )

    return Container(
        settings=settings,
        stack_client=stack_client,
        github_client=github_client,
        controller=controller,
        orchestrator=orchestrator,
    )
