"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from vmrunner import __version__
from vmrunner.auth import SessionGate
from vmrunner.compute import ComputeClient
from vmrunner.config import Settings
from vmrunner.executor import ActionExecutor
from vmrunner.pages import router as pages_router
from vmrunner.routes import router as api_router
from vmrunner.status import StatusNormalizer, build_rules

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings):
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


def create_app(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """Build the control panel app.

    Args:
        settings: Application settings
        transport: Optional httpx transport for the compute API client
    """
    client = ComputeClient(settings.compute_base_url, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Compute API: {settings.compute_base_url}")
        logger.info(f"Status fields: {', '.join(settings.status_fields)}")
        yield
        logger.info("Shutting down, closing compute client")
        await client.aclose()

    app = FastAPI(title="VM Runner", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_gate = SessionGate(settings)
    app.state.compute = client
    app.state.normalizer = StatusNormalizer(client, build_rules(settings.status_fields))
    app.state.executor = ActionExecutor(client, settings.repoll_delays)

    app.include_router(api_router)
    app.include_router(pages_router)
    return app
