# stack_orchestrator/run_server.py
"""Run the webhook server."""

import logging
import os
import sys

import uvicorn

from stack_orchestrator.api.main import create_app
from stack_orchestrator.core.errors import ConfigurationError
from stack_orchestrator.settings import load_settings

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Fatal configuration error: {e}")
        sys.exit(1)

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "3000"))

    logger.info("🚀 Starting Stack Orchestrator...")
    logger.info(f"📍 Listening on {host}:{port}")

    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
