# stack_orchestrator/core/ports.py
"""Outer port allocation for new stacks."""

from typing import Iterable, List, Mapping, Set

from stack_orchestrator.core.models import Service, Stack


def suggest_port(used_ports: Iterable[int], floor: int) -> int:
    """Smallest port >= floor that is not in use."""
    used = set(used_ports)
    port = floor
    while port in used:
        port += 1
    return port


def active_service_refs(stacks: Iterable[Stack]) -> List[str]:
    """Service references of every stack not terminating/terminated."""
    refs: List[str] = []
    for stack in stacks:
        if stack.state.is_active:
            refs.extend(stack.services)
    return refs


def collect_used_ports(
    stacks: Iterable[Stack],
    services: Mapping[str, Service],
    service_name: str,
) -> Set[int]:
    """
    Outer ports taken by services named `service_name` in active stacks.

    `services` maps service resource URI -> fetched Service.
    """
    used: Set[int] = set()
    for ref in active_service_refs(stacks):
        service = services.get(ref)
        if service is None or service.name != service_name:
            continue
        for port in service.container_ports:
            if port.outer_port is not None:
                used.add(int(port.outer_port))
    return used
