from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import analysis as analysis_routes


def create_app() -> FastAPI:
    app = FastAPI(
        title="Barpath Analysis API",
        description="REST API wrapping the barpath trajectory and rep analysis pipeline.",
        version="0.1.0",
    )
    app.include_router(analysis_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
