#main.py
import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse

from routes.mock_mobcash import SandboxState
from routes.mock_mobcash import router as mock_mobcash_router

logger = logging.getLogger("mobcash.sandbox")


def create_app(state: SandboxState = None) -> FastAPI:
    """Sandbox backend speaking the same REST contract as the real API."""
    app = FastAPI(title="Mobcash Sandbox API", version="1.0.0")
    app.state.sandbox = state or SandboxState.seeded()

    # -----------------------------
    # ROUTERS
    # -----------------------------
    app.include_router(mock_mobcash_router)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("sandbox unhandled error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
