"""FastAPI application serving one workflow editing session."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autoflow.config import Settings, load_settings
from autoflow.logging_setup import configure_logging
from autoflow.session import WorkflowSession
from autoflow_api.graph_routes import router as graph_router
from autoflow_api.run_routes import router as run_router
from autoflow_api.selection_routes import router as selection_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(settings: Settings | None = None, session: WorkflowSession | None = None) -> FastAPI:
    """Build the app. Pass `session` to serve a pre-built one (tests do)."""
    settings = settings or (session.settings if session else load_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the session on startup and stop any run on shutdown."""
        configure_logging(settings.log_level)
        app.state.session = session or WorkflowSession(settings=settings)
        logger.info("Workflow session ready (%d node(s))", len(app.state.session.store))
        yield
        await app.state.session.engine.cancel()

    app = FastAPI(
        title="Autoflow API",
        description="Workflow graph editing and simulated execution",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(graph_router, prefix="/api")
    app.include_router(selection_router, prefix="/api")
    app.include_router(run_router, prefix="/api")

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": VERSION,
            "endpoints": {
                "node_types": "/api/node-types",
                "graph": "/api/graph",
                "selection": "/api/selection",
                "runs": "/api/runs",
                "log": "/api/log",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
