from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from stack_orchestrator.api.routes.webhooks import router as webhooks_router
from stack_orchestrator.container import Container, build_container
from stack_orchestrator.settings import Settings, load_settings


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[Container] = None,
) -> FastAPI:
    """
    Build the webhook app.

    Raises:
        ConfigurationError: If settings are not given and required
            credentials are missing from the environment.
    """
    if container is None:
        container = build_container(settings or load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.aclose()

    app = FastAPI(title="Stack Orchestrator", lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(webhooks_router)
    return app
