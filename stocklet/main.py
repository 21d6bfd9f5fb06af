"""
Stocklet FastAPI Main Application
Entry point for the Stocklet inventory and accounts REST API
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stocklet.api.gate import login_gate
from stocklet.api.responses import HandlerResult, respond
from stocklet.api.v1.api_router import api_router
from stocklet.core.config import settings
from stocklet.core.database import Database
from stocklet.core.exceptions import StockletException
from stocklet.core.logging import get_logger, setup_logging

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the database handle for the life of the process

    A handle that was already open when the app started belongs to the
    caller and is left open on shutdown.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    db: Database = app.state.db
    owns_db = db.engine is None
    db.open()
    db.create_all()
    if not db.check_connection():
        logger.error("Failed to connect to database on startup")
    try:
        yield
    finally:
        logger.info("Shutting down application")
        if owns_db:
            db.close()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())[1:])
    if location:
        return f"Invalid value for {location}: {first.get('msg', 'invalid')}"
    return f"Invalid request: {first.get('msg', 'invalid')}"


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application around a database handle

    Args:
        database: Handle to use, defaults to one built from settings

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        ## Stocklet API

        Inventory, sales and purchase transactions, and receivable/payable
        accounts for a small business.

        ### Key Features:
        - **Items**: stock levels kept in step with every transaction
        - **Transactions**: SALE and PURCHASE records with stock compensation
        - **Reports**: sales, purchases and per-counterparty summaries
        - **Accounts**: opening balances, payments and running balances
        - **Exports**: Excel downloads of every report
        """,
        docs_url=settings.DOCS_URL,
        openapi_url=settings.OPENAPI_URL,
        lifespan=lifespan,
    )
    app.state.db = database or Database()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(login_gate)

    @app.exception_handler(StockletException)
    async def stocklet_exception_handler(request: Request, exc: StockletException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return respond(HandlerResult.from_error(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler for unhandled errors

        Details are logged server side only.
        """
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "An internal server error occurred."},
        )

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check(request: Request):
        """
        Health check endpoint for monitoring and load balancers
        """
        db_status = request.app.state.db.check_connection()
        return {
            "status": "healthy" if db_status else "degraded",
            "version": settings.APP_VERSION,
            "database": "connected" if db_status else "disconnected",
        }

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


setup_logging()
app = create_app()


def run():
    """Serve the application with uvicorn"""
    import uvicorn

    uvicorn.run(
        "stocklet.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
