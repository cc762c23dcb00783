import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from aether.main.config import get_settings
from aether.main.logging import get_logger
from aether.server import api_documentation
from aether.server.dependencies.lifespan import lifespan
from aether.server.exception_handlers import add_exception_handlers
from aether.server.middleware.request_context import RequestContextMiddleware
from aether.server.routers import router as api_router

logger = get_logger(__name__)


def get_application():
    app = FastAPI(
        title=api_documentation.TITLE,
        description=api_documentation.SUMMARY,
        openapi_tags=api_documentation.TAGS_METADATA,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

    app.include_router(api_router, prefix=get_settings().api_prefix)

    # Add handlers of all errors except 500
    add_exception_handlers(app)

    @app.exception_handler(500)
    async def custom_http_500_exception_handler(request, exc):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Something went wrong"})

    @app.get("/api/healthz")
    async def get_healthz():
        return {"status": "OK"}

    return app


app = get_application()


def start():
    uvicorn.run(
        "aether.server.main:app",
        host="0.0.0.0",
        port=8123,
        reload=True,
        reload_dirs="./src/",
    )
