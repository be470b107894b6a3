# stack_orchestrator/infrastructure/github/client.py
"""Thin async GitHub REST client shared by the notifier and config loader."""

from typing import Any, Dict, Optional

import httpx


class GitHubClient:
    """Authenticated GitHub API session."""

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        return await self._client.get(path, params=params, headers=headers)

    async def post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        return await self._client.post(path, json=payload)
