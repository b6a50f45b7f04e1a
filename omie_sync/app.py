from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from omie_sync.application import build_sync_components
from omie_sync.core.config import Settings, load_settings
from omie_sync.core.log_config import configure_logging
from omie_sync.infrastructure import OmieClient, RecordSource
from omie_sync.routes import sync


def create_app(
    settings: Settings | None = None,
    *,
    record_source: RecordSource | None = None,
    omie_client: OmieClient | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    components = build_sync_components(settings, record_source=record_source, omie_client=omie_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await components.aclose()

    app = FastAPI(title="Omie Ledger Sync API", version="0.1.0", lifespan=lifespan)
    app.state.sync = components

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sync.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Omie Ledger Sync API",
                "docs": "/docs",
                "trigger": "/api/omie/automatizar",
                "pending_operations": components.dispatcher.pending,
            }
        )

    return app


app = create_app()
