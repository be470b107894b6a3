# stack_orchestrator/stack/controller.py
"""Stack convergence controller - create, redeploy and terminate stacks."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from stack_orchestrator.core.models import Service, Stack, StackTemplate
from stack_orchestrator.core.ports import active_service_refs, collect_used_ports, suggest_port
from stack_orchestrator.infrastructure.dockercloud.client import DockerCloudClient
from stack_orchestrator.stack.poller import ConvergencePoller

logger = logging.getLogger(__name__)


class StackController:
    """
    Owns the remote stack lifecycle.

    Nothing is cached: every operation re-fetches what it needs.
    """

    def __init__(self, client: DockerCloudClient, poller: ConvergencePoller):
        self._client = client
        self._poller = poller

    # -------------------------
    # LOOKUP
    # -------------------------

    async def find_stack_by_name(self, name: str) -> Optional[Stack]:
        """First stack in the inventory with this name, or None."""
        stacks = await self._client.list_stacks()
        for stack in stacks:
            if stack.name == name:
                return stack
        return None

    async def find_active_stack_by_name(self, name: str) -> Optional[Stack]:
        """First stack with this name that is not terminating or terminated."""
        stacks = await self._client.list_stacks()
        for stack in stacks:
            if stack.name == name and stack.state.is_active:
                return stack
        return None

    def stack_web_url(self, stack: Stack) -> str:
        return self._client.stack_web_url(stack)

    async def get_stack_service_urls(self, stack: Stack) -> Dict[str, List[str]]:
        """
        Public URLs of every service of the stack.

        Endpoint URIs are reported as tcp://...; they are rewritten to http://.
        """
        services = await asyncio.gather(
            *(self._client.get_service(ref) for ref in stack.services)
        )

        urls: Dict[str, List[str]] = {}
        for service in services:
            urls[service.name] = [
                http_url(port.endpoint_uri)
                for port in service.container_ports
                if port.endpoint_uri
            ]
        return urls

    # -------------------------
    # CREATE
    # -------------------------

    async def create_stack(self, name: str, template: StackTemplate) -> Stack:
        """
        Create a stack for `name` and wait until it runs.

        The outer port is the lowest free port >= template.outer_port_range_min
        among services of the same template in active stacks.
        """
        logger.info(f"[stack - {name}] Stack will be created")

        stacks = await self._client.list_stacks()
        refs = active_service_refs(stacks)
        fetched = await asyncio.gather(*(self._client.get_service(ref) for ref in refs))
        services: Dict[str, Service] = dict(zip(refs, fetched))

        used_ports = collect_used_ports(stacks, services, template.service_name)
        logger.info(f"[stack - {name}] Checking for currently used ports {sorted(used_ports)}")

        port = suggest_port(used_ports, template.outer_port_range_min)
        logger.info(f"[stack - {name}] Suggested port {port}")

        new_stack = await self._client.create_stack(build_stack_payload(name, template, port))

        logger.info(f"[stack - {name}] Waiting for stack to start...")
        return await self._poller.wait_for_running(new_stack.id, name)

    # -------------------------
    # REDEPLOY / TERMINATE
    # -------------------------

    async def redeploy_stack(self, stack: Stack) -> Stack:
        """Redeploy keeping volumes, then wait until it runs."""
        logger.info(f"[stack - {stack.name}] Stack will be redeployed")
        await self._client.redeploy_stack(stack.id, reuse_volumes=True)

        logger.info(f"[stack - {stack.name}] Waiting for stack to start...")
        return await self._poller.wait_for_running(stack.id, stack.name)

    async def terminate_stack(self, stack: Stack) -> Dict[str, Any]:
        """Schedule termination. Completion is not awaited."""
        logger.info(f"[stack - {stack.name}] Stack will be terminated")
        return await self._client.terminate_stack(stack.id)


def http_url(endpoint_uri: str) -> str:
    if endpoint_uri.startswith("tcp://"):
        return "http://" + endpoint_uri[len("tcp://"):]
    return endpoint_uri


def build_stack_payload(name: str, template: StackTemplate, outer_port: int) -> Dict[str, Any]:
    """Creation payload: one service, template fields override defaults."""
    service: Dict[str, Any] = {
        "image": f"{template.image_repo}:{name}",
        "container_ports": [
            {
                "inner_port": int(template.inner_port),
                "outer_port": int(outer_port),
            }
        ],
    }
    service.update(template.template)

    return {
        "name": name,      # human-readable name
        "nickname": name,  # user-friendly name
        "services": [service],
    }
