"""
Fund Ledger API Application Factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import LedgerSystem
from .users import router as users_router
from .fund_sources import router as fund_sources_router
from .transactions import router as transactions_router
from .. import __version__
from ..config import get_config
from ..errors import LedgerError, NotFound
from ..logging_config import get_logger, log_action, setup_logging


logger = get_logger("fund_ledger.api")


async def ledger_error_handler(request: Request, exc: LedgerError):
    """Map every ledger failure to its status and message"""
    if exc.status_code >= 500:
        log_action(
            logger, "error", f"{type(exc).__name__}: {exc.message}",
            action="request_failed", resource=request.url.path
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes get the same body as unknown scope kinds"""
    detail = NotFound.message if exc.status_code == 404 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers=getattr(exc, "headers", None)
    )


def create_app(system: Optional[LedgerSystem] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        system: Pre-built ledger system; built from configuration on
            startup when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.ledger_system is None:
            app.state.ledger_system = LedgerSystem()
        config = app.state.ledger_system.config
        setup_logging(config.log_level, log_file=config.log_file)

        await app.state.ledger_system.start()
        log_action(logger, "info", "Fund ledger started", action="startup",
                   extra={"storage_type": config.storage_type})
        try:
            yield
        finally:
            await app.state.ledger_system.stop()

    app = FastAPI(
        title="Fund Ledger API",
        description="Personal finance ledger with ownership-scoped transactions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.ledger_system = system

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(users_router, prefix="/api/user", tags=["Users"])
    app.include_router(fund_sources_router, prefix="/api/fund_source", tags=["Fund Sources"])
    app.include_router(transactions_router, prefix="/api", tags=["Transactions"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "fund_ledger_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Fund Ledger API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "user": "/api/user",
                "fund_sources": "/api/fund_source",
                "transactions": "/api/{scope_kind}/{scope_id}/transactions",
            }
        }

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "fund_ledger.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
