# stack_orchestrator/infrastructure/github/notifier.py
"""Posts comments on pull requests or commits."""

import logging
from typing import Optional

import httpx

from stack_orchestrator.core.collaborators import Notifier
from stack_orchestrator.core.errors import NotificationError
from stack_orchestrator.core.models import Event
from stack_orchestrator.infrastructure.github.client import GitHubClient

logger = logging.getLogger(__name__)


class GitHubNotifier(Notifier):
    """
    Comment target resolution:
    1. Pull request number carried by the event
    2. First pull request found by searching the branch (and commit SHA)
    3. The commit itself
    Without any of these the message is dropped and an error is logged.
    """

    def __init__(self, client: GitHubClient):
        self._client = client

    async def notify(self, event: Event, message: str) -> bool:
        pr_number = event.pull_request_number
        if not pr_number:
            pr_number = await self.find_pull_request_number(event)

        if pr_number:
            await self._post(
                f"/repos/{event.repository}/issues/{pr_number}/comments",
                message,
            )
            return True

        if not event.commit_sha:
            logger.error(
                f"[{event.label}] Cannot comment to commit because git SHA is not defined "
                f"\"{event.commit_sha}\""
            )
            return False

        logger.info(f"[{event.label}] Add a comment directly to the commit \"{event.commit_sha}\"")
        await self._post(
            f"/repos/{event.repository}/commits/{event.commit_sha}/comments",
            message,
        )
        return True

    async def find_pull_request_number(self, event: Event) -> Optional[int]:
        """
        Status events carry no PR number, so search by branch and commit.
        """
        query = f"repo:{event.repository} head:{event.branch_name} is:pr"
        if event.commit_sha:
            query = f"{query} {event.commit_sha}"

        try:
            response = await self._client.get("/search/issues", params={"q": query})
        except httpx.RequestError as e:
            raise NotificationError(f"Failed to search pull requests: {e}") from e
        _raise_for_status(response, "search pull requests")

        items = response.json().get("items") or []
        if not items:
            logger.warning(
                f"[{event.label}] Could not find any Pull Request matching the following "
                f"search criteria: \"{query}\""
            )
            return None

        return items[0]["number"]

    async def _post(self, path: str, message: str) -> None:
        try:
            response = await self._client.post(path, {"body": message})
        except httpx.RequestError as e:
            raise NotificationError(f"Failed to post comment: {e}") from e
        _raise_for_status(response, "post comment")


def _raise_for_status(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    raise NotificationError(
        f"Failed to {action} [{response.status_code}]",
        status_code=response.status_code,
        detail=detail,
    )
