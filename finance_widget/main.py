import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from finance_widget.core.settings import settings
from finance_widget.domains.embed.routes import router as embed_router
from finance_widget.domains.finance.routes import router as finance_router
from finance_widget.domains.xero.auth.dependencies import token_manager
from finance_widget.domains.xero.auth.routes import router as xero_auth_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    credential = token_manager.load_credentials()
    if not credential.is_authorized:
        logger.warning("Xero is not connected yet; visit /auth/connect")
    if not settings.HALO_WIDGET_SECRET:
        logger.warning("HALO_WIDGET_SECRET is not set; all embed requests will fail")
    yield


app = FastAPI(
    title="Finance Widget",
    description="Helpdesk panel showing a client's live Xero balance",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(xero_auth_router)
app.include_router(finance_router)
if settings.ENABLE_DEBUG_HMAC:
    app.include_router(embed_router)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Finance widget online"


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
