from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from stack_orchestrator.core.models import Event, EventKind


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Repository(_Payload):
    full_name: str


class Sender(_Payload):
    login: str = ""
    type: str = "User"

    def is_self(self, bot_login: str) -> bool:
        if self.type == "Bot":
            return True
        return bool(bot_login) and self.login == bot_login


class BranchRef(_Payload):
    name: str


class StatusEventPayload(_Payload):
    """`status` webhook."""

    sha: str
    state: str
    context: str
    branches: List[BranchRef] = []
    repository: Repository
    sender: Optional[Sender] = None

    def to_event(self, bot_login: str = "") -> Optional[Event]:
        # Always pick the first branch
        if not self.branches:
            return None
        return Event(
            kind=EventKind.STATUS_CHANGE,
            branch_name=self.branches[0].name,
            repository=self.repository.full_name,
            issuer_key=self.context,
            state=self.state,
            is_from_self=bool(self.sender and self.sender.is_self(bot_login)),
            commit_sha=self.sha,
        )


class HeadRef(_Payload):
    ref: str
    sha: Optional[str] = None


class PullRequest(_Payload):
    number: int
    head: HeadRef


class PullRequestEventPayload(_Payload):
    """`pull_request` webhook."""

    action: str
    pull_request: PullRequest
    repository: Repository
    sender: Optional[Sender] = None

    def to_event(self, bot_login: str = "") -> Optional[Event]:
        if self.action != "closed":
            return None
        return Event(
            kind=EventKind.CHANGE_REQUEST_CLOSED,
            branch_name=self.pull_request.head.ref,
            repository=self.repository.full_name,
            is_from_self=bool(self.sender and self.sender.is_self(bot_login)),
            commit_sha=self.pull_request.head.sha,
            pull_request_number=self.pull_request.number,
        )


class WebhookResponse(BaseModel):
    status: str
    event: Optional[str] = None
    branch: Optional[str] = None
