import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prompthive.api.v1 import (
    admin,
    analytics,
    auth,
    backup,
    collections,
    exports,
    favorites,
    imports,
    prompts,
    scraper,
    settings as settings_routes,
    tags,
    uploads,
    users,
    workflows,
)
from prompthive.core.config import settings
from prompthive.core.exceptions import PromptHiveError
from prompthive.core.logging import configure_logging
from prompthive.middleware.logging import LoggingMiddleware

logger = logging.getLogger("prompthive.errors")


async def prompthive_error_handler(request: Request, exc: PromptHiveError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="MyPromptHive",
        version="1.0.0",
    )

    # CORS middleware - must be added before other middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    # Middleware
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(PromptHiveError, prompthive_error_handler)

    # API routes
    prefix = settings.API_V1_PREFIX
    app.include_router(auth.router, prefix=prefix)
    app.include_router(users.router, prefix=prefix)
    app.include_router(admin.router, prefix=prefix)
    app.include_router(collections.router, prefix=prefix)
    app.include_router(prompts.router, prefix=prefix)
    app.include_router(tags.router, prefix=prefix)
    app.include_router(favorites.router, prefix=prefix)
    app.include_router(imports.router, prefix=prefix)
    app.include_router(exports.router, prefix=prefix)
    app.include_router(settings_routes.router, prefix=prefix)
    app.include_router(workflows.router, prefix=prefix)
    app.include_router(backup.router, prefix=prefix)
    app.include_router(scraper.router, prefix=prefix)
    app.include_router(analytics.router, prefix=prefix)
    app.include_router(uploads.router, prefix=prefix)
    # Stored file paths are "/uploads/<name>", served from the root as well
    app.include_router(uploads.router, include_in_schema=False)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict:
        return {"status": "ok", "environment": settings.ENVIRONMENT}

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
