"""FastAPI application entry point for the PoolFund governance API.

Run with:
    uvicorn poolfund.api.main:app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from poolfund import __version__
from poolfund.api.middleware.logging_middleware import LoggingMiddleware
from poolfund.api.routes.health import router as health_router
from poolfund.api.routes.proposals import ERROR_TYPE_BASE
from poolfund.api.routes.proposals import router as proposals_router
from poolfund.bootstrap.database import close_database_engine
from poolfund.bootstrap.logging import configure_structlog
from poolfund.bootstrap.proposal_governance import prepare_proposal_store

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    load_dotenv()
    configure_structlog()
    await prepare_proposal_store()
    logger.info("governance_api_started", version=__version__)
    yield
    await close_database_engine()
    logger.info("governance_api_stopped")


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render schema violations as 400 problem details."""
    messages = [
        f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "type": f"{ERROR_TYPE_BASE}:invalid-request",
                "title": "Invalid Proposal Request",
                "status": 400,
                "detail": "; ".join(messages),
                "instance": str(request.url),
            }
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="PoolFund Governance API",
        description="Group proposals, voting and dispute resolution",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(health_router)
    app.include_router(proposals_router)
    return app


app = create_app()
