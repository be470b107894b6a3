# stack_orchestrator/infrastructure/dockercloud/client.py
"""Docker Cloud REST client for stacks and services."""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from stack_orchestrator.core.errors import StackApiError
from stack_orchestrator.core.models import Service, Stack

logger = logging.getLogger(__name__)

STACK_PATH = "/api/app/v1/stack/"

HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class DockerCloudClient:
    """Async client for the Docker Cloud stack API."""

    def __init__(
        self,
        base_url: str,
        user: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: API host (e.g. "https://cloud.docker.com")
            user: Docker Cloud user name
            api_key: Docker Cloud API key
            timeout: Request timeout in seconds
            transport: Optional transport override (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.user = user
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(user, api_key),
            headers=HEADERS,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DockerCloudClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------
    # URLS
    # -------------------------

    @staticmethod
    def stack_path(stack_id: Optional[str] = None) -> str:
        return f"{STACK_PATH}{stack_id}/" if stack_id else STACK_PATH

    def stack_web_url(self, stack: Stack) -> str:
        """Dashboard link for a stack."""
        return f"{self.base_url}/app/{self.user}/stack/{stack.id}"

    # -------------------------
    # READ
    # -------------------------

    async def list_stacks(self) -> List[Stack]:
        """Fetch the full stack inventory, following pagination."""
        stacks: List[Stack] = []
        path: Optional[str] = self.stack_path()

        while path:
            data = await self._request("GET", path)
            stacks.extend(Stack.from_api(obj) for obj in data.get("objects") or [])
            path = (data.get("meta") or {}).get("next")

        return stacks

    async def get_stack(self, stack_id: str) -> Stack:
        data = await self._request("GET", self.stack_path(stack_id))
        return Stack.from_api(data)

    async def get_service(self, resource_uri: str) -> Service:
        """Fetch a service by the resource URI listed on its stack."""
        data = await self._request("GET", resource_uri)
        return Service.from_api(data)

    # -------------------------
    # WRITE
    # -------------------------

    async def create_stack(self, payload: Dict[str, Any]) -> Stack:
        data = await self._request("POST", self.stack_path(), body=payload)
        return Stack.from_api(data)

    async def start_stack(self, stack_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"{self.stack_path(stack_id)}start/")

    async def redeploy_stack(self, stack_id: str, reuse_volumes: bool = True) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"{self.stack_path(stack_id)}redeploy/",
            params={"reuse_volumes": "true" if reuse_volumes else "false"},
        )

    async def terminate_stack(self, stack_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", self.stack_path(stack_id))

    # -------------------------
    # INTERNAL HELPERS
    # -------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send a request and decode its JSON body.

        Raises:
            StackApiError: On transport errors, non-2xx status or non-JSON body
        """
        try:
            response = await self._client.request(
                method,
                path,
                content=json.dumps(body) if body is not None else None,
                params=params,
            )
        except httpx.RequestError as e:
            raise StackApiError(
                f"{method} {path} failed: {e}",
                detail=str(e),
            ) from e

        return process_response(response)


def process_response(response: httpx.Response) -> Any:
    """
    Parse a JSON response.

    A non-success status or a body that is not JSON is an error; its detail
    is the parsed body when possible, else the raw text.
    """
    text = response.text
    try:
        parsed = json.loads(text)
    except ValueError:
        raise StackApiError(
            f"{response.request.method} {response.request.url.path} returned a non-JSON body "
            f"[{response.status_code}]",
            status_code=response.status_code,
            detail=text,
        )

    if not response.is_success:
        raise StackApiError(
            f"{response.request.method} {response.request.url.path} failed "
            f"[{response.status_code}]",
            status_code=response.status_code,
            detail=parsed if parsed is not None else text,
        )

    return parsed
