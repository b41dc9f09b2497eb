"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.exception_handlers import entity_not_found_handler, validation_rejected_handler
from api.lifespan import lifespan
from db.config import settings
from db.exceptions import EntityNotFoundError, ValidationRejectedError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
    )

    app.add_exception_handler(EntityNotFoundError, entity_not_found_handler)
    app.add_exception_handler(ValidationRejectedError, validation_rejected_handler)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routers(app)

    return app


def _register_routers(app: FastAPI) -> None:
    """Register all API routers.

    Args:
        app: FastAPI application instance.
    """
    from api.routers.media import router as media_router
    from api.routers.users import router as users_router

    app.include_router(media_router)
    app.include_router(users_router)
