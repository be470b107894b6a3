#tests\conftest.py

"""Pytest configuration and fixtures."""

import json
from itertools import count
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from stack_orchestrator.core.models import (
    BotConfig,
    BranchPolicy,
    NotifyPolicy,
    StackTemplate,
    TriggerPolicy,
)
from stack_orchestrator.infrastructure.dockercloud.client import DockerCloudClient
from stack_orchestrator.infrastructure.memory.collaborators import (
    RecordingNotifier,
    StaticConfigLoader,
)
from stack_orchestrator.orchestrator.stack_orchestrator import StackOrchestrator
from stack_orchestrator.settings import Settings
from stack_orchestrator.stack.controller import StackController
from stack_orchestrator.stack.poller import ConvergencePoller

BASE_URL = "https://cloud.docker.com"
STACK_PATH = "/api/app/v1/stack/"
SERVICE_PATH = "/api/app/v1/service/"


class FakeDockerCloud:
    """
    In-memory Docker Cloud API served through httpx.MockTransport.

    `state_sequences[stack_id]` lists the states returned by successive
    GETs of that stack; the last one sticks.
    """

    def __init__(self):
        self.stacks: Dict[str, Dict[str, Any]] = {}
        self.services: Dict[str, Dict[str, Any]] = {}
        self.state_sequences: Dict[str, List[str]] = {}
        self.requests: List[Tuple[str, str, str]] = []
        self.created_payloads: List[Dict[str, Any]] = []
        self.failures: Dict[Tuple[str, str], httpx.Response] = {}
        self.new_stack_state = "Not Running"
        self._ids = count(1)

    # -------------------------
    # SETUP
    # -------------------------

    def add_service(self, name: str, outer_ports=(), endpoint_uri: Optional[str] = None) -> str:
        service_id = f"svc-{next(self._ids)}"
        uri = f"{SERVICE_PATH}{service_id}/"
        self.services[uri] = {
            "uuid": service_id,
            "name": name,
            "resource_uri": uri,
            "container_ports": [
                {"inner_port": 80, "outer_port": port, "endpoint_uri": endpoint_uri}
                for port in outer_ports
            ],
        }
        return uri

    def add_stack(self, name: str, state: str = "Running", services=(), stack_id=None) -> str:
        stack_id = stack_id or f"stack-{next(self._ids)}"
        self.stacks[stack_id] = {
            "uuid": stack_id,
            "name": name,
            "state": state,
            "services": list(services),
            "resource_uri": f"{STACK_PATH}{stack_id}/",
        }
        return stack_id

    def fail(self, method: str, path: str, status_code: int, body: Any) -> None:
        if isinstance(body, (dict, list)):
            response = httpx.Response(status_code, json=body)
        else:
            response = httpx.Response(status_code, text=body)
        self.failures[(method, path)] = response

    # -------------------------
    # INSPECTION
    # -------------------------

    def calls(self, method: str, suffix: str = "") -> List[str]:
        return [p for m, p, _ in self.requests if m == method and p.endswith(suffix)]

    def start_requests(self) -> List[str]:
        return self.calls("POST", "/start/")

    def redeploy_requests(self) -> List[Tuple[str, str, str]]:
        return [r for r in self.requests if r[0] == "POST" and r[1].endswith("/redeploy/")]

    def stack_polls(self, stack_id: str) -> int:
        return len(self.calls("GET", f"{STACK_PATH}{stack_id}/"))

    # -------------------------
    # TRANSPORT
    # -------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        self.requests.append((method, path, request.url.query.decode()))

        if (method, path) in self.failures:
            return self.failures[(method, path)]

        if path == STACK_PATH and method == "GET":
            return httpx.Response(
                200,
                json={"meta": {"next": None}, "objects": list(self.stacks.values())},
            )

        if path == STACK_PATH and method == "POST":
            payload = json.loads(request.content)
            self.created_payloads.append(payload)
            stack_id = self.add_stack(payload["name"], state=self.new_stack_state)
            return httpx.Response(201, json=self.stacks[stack_id])

        if path.startswith(SERVICE_PATH) and method == "GET":
            service = self.services.get(path)
            if service is None:
                return httpx.Response(404, json={"error": "Not found"})
            return httpx.Response(200, json=service)

        if path.startswith(STACK_PATH):
            parts = path[len(STACK_PATH):].strip("/").split("/")
            stack = self.stacks.get(parts[0])
            if stack is None:
                return httpx.Response(404, json={"error": "Not found"})

            action = parts[1] if len(parts) > 1 else None

            if method == "GET" and action is None:
                sequence = self.state_sequences.get(stack["uuid"])
                if sequence:
                    stack["state"] = sequence.pop(0) if len(sequence) > 1 else sequence[0]
                return httpx.Response(200, json=stack)

            if method == "POST" and action in ("start", "redeploy"):
                return httpx.Response(202, json=stack)

            if method == "DELETE" and action is None:
                stack["state"] = "Terminating"
                return httpx.Response(202, json=stack)

        return httpx.Response(404, text="Not found")


async def no_sleep(seconds: float) -> None:
    return None


# ============================================
# FIXTURES
# ============================================

@pytest.fixture
def cloud():
    return FakeDockerCloud()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        dockercloud_user="user",
        dockercloud_apikey="apikey",
        dockercloud_url=BASE_URL,
        github_token="token",
        poll_interval_seconds=0,
    )


@pytest.fixture
def stack_client(cloud):
    return DockerCloudClient(
        base_url=BASE_URL,
        user="user",
        api_key="apikey",
        transport=cloud.transport(),
    )


@pytest.fixture
def poller(stack_client):
    return ConvergencePoller(stack_client, poll_interval=5, retries=10, sleep=no_sleep)


@pytest.fixture
def controller(stack_client, poller):
    return StackController(stack_client, poller)


@pytest.fixture
def template():
    return StackTemplate(
        image_repo="acme/web",
        inner_port=80,
        outer_port_range_min=5000,
        template={"name": "web", "target_num_containers": 1, "autorestart": "ALWAYS"},
    )


@pytest.fixture
def bot_config(template):
    return BotConfig(
        trigger=TriggerPolicy(
            expected_state="success",
            allowed_issuers=["ci/pr"],
            branches=BranchPolicy(only=["feature-x", "/^release-.*/"]),
        ),
        notify=NotifyPolicy(on_create=True, on_update=True, on_delete=True),
        stack=template,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def orchestrator(controller, bot_config, notifier):
    return StackOrchestrator(
        controller=controller,
        config_loader=StaticConfigLoader(bot_config),
        notifier=notifier,
    )
