from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from compliance_backend.application import OrchestrationController, build_controller
from compliance_backend.core.config import Settings
from compliance_backend.core.logger import get_logger
from compliance_backend.routes import executions, files, session

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    controller: OrchestrationController | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if controller is None:
        controller = build_controller(settings)
        if not controller.credentials_configured["workflow"]:
            logger.warning("DIFY_WORKFLOW_API_KEY is not set; executions are rejected until credentials are configured")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.controller.aclose()

    app = FastAPI(title="Compliance Review API", version="0.1.0", lifespan=lifespan)
    app.state.controller = controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(session.router, prefix="/api")
    app.include_router(files.router, prefix="/api")
    app.include_router(executions.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Compliance Review API",
                "docs": "/docs",
                "health": "/api/session",
            }
        )

    return app


app = create_app()
