import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth.routes import router as auth_router
from .catalog.routes import categories_router, products_router
from .core.config import Settings
from .core.database import AppContext
from .core.exceptions import register_exception_handlers
from .inventory.routes import router as inventory_router
from .reports.routes import router as reports_router
from .user.routes import router as user_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API around an explicit settings object.

    The database engine lives in an AppContext on app.state; tables are
    created on startup and the engine is disposed on shutdown.
    """
    settings = settings or Settings.from_env()
    context = AppContext(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            context.startup()
        except Exception as e:
            logger.error(f"Error creating database tables: {str(e)}")
            raise
        yield
        context.shutdown()

    app = FastAPI(title="InventarioPro API", debug=settings.debug, lifespan=lifespan)
    app.state.context = context

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"message": "InventarioPro API running"}

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    # Include routers
    for router in (
        auth_router,
        products_router,
        categories_router,
        inventory_router,
        user_router,
        reports_router,
    ):
        app.include_router(router, prefix=settings.api_prefix)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("inventariopro.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
