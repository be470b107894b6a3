import hashlib
import hmac
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from stack_orchestrator.api.schemas.github import (
    PullRequestEventPayload,
    StatusEventPayload,
    WebhookResponse,
)
from stack_orchestrator.container import Container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def get_container(request: Request) -> Container:
    return request.app.state.container


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check the X-Hub-Signature-256 header (HMAC-SHA256 of the raw body)."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


@router.post("/github", response_model=WebhookResponse, status_code=202)
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: str = Header(default=""),
    x_hub_signature_256: str | None = Header(default=None),
    container: Container = Depends(get_container),
):
    body = await request.body()
    settings = container.settings

    if settings.github_webhook_secret and not verify_signature(
        settings.github_webhook_secret, body, x_hub_signature_256
    ):
        raise HTTPException(status_code=401, detail="Invalid signature")

    if x_github_event == "ping":
        return WebhookResponse(status="pong", event="ping")

    orchestrator = container.orchestrator

    try:
        if x_github_event == "status":
            event = StatusEventPayload.model_validate_json(body).to_event(settings.bot_login)
            handler = orchestrator.handle_status_change
        elif x_github_event == "pull_request":
            event = PullRequestEventPayload.model_validate_json(body).to_event(settings.bot_login)
            handler = orchestrator.handle_pull_request_closed
        else:
            return WebhookResponse(status="ignored", event=x_github_event)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if event is None:
        return WebhookResponse(status="ignored", event=x_github_event)

    logger.info(f"[{event.label}] Received event for branch \"{event.branch_name}\"")
    background_tasks.add_task(handler, event)

    return WebhookResponse(status="accepted", event=x_github_event, branch=event.branch_name)
