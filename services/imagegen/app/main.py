from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel

from libs.core import logging as core_logging
from services.imagegen.app.mcp import create_mcp_asgi_app
from services.imagegen.imagegen_core import (
    GenerationOutcome,
    ImageGenConfig,
    ImageGenError,
    ImageGenerationService,
)

LOGGER = core_logging.get_logger("imagegen")

_STATUS_BY_KIND = {
    cls.kind: cls.default_status_code for cls in ImageGenError.__subclasses__()
}


class GenerateResponse(BaseModel):
    remoteUrl: Optional[str] = None
    path: Optional[str] = None
    token: Optional[str] = None


def _http_error(outcome: GenerationOutcome) -> HTTPException:
    status_code = _STATUS_BY_KIND.get(outcome.kind or "", 500)
    return HTTPException(
        status_code=status_code,
        detail={"kind": outcome.kind, "message": outcome.message},
    )


def create_app(config: ImageGenConfig, service: ImageGenerationService | None = None) -> FastAPI:
    service = service or ImageGenerationService(config)
    app = FastAPI(title="Civitai Image Generation Service")
    app.state.imagegen_service = service
    mcp_app, mcp_session_manager = create_mcp_asgi_app(service)
    app.mount("/mcp/rpc", mcp_app)

    @app.on_event("startup")
    async def _startup_mcp_session_manager() -> None:
        session_cm = mcp_session_manager.run()
        app.state._mcp_session_cm = session_cm
        await session_cm.__aenter__()
        LOGGER.info("imagegen_http_started", persist=config.output_dir is not None)

    @app.on_event("shutdown")
    async def _shutdown_mcp_session_manager() -> None:
        session_cm = getattr(app.state, "_mcp_session_cm", None)
        if session_cm is not None:
            await session_cm.__aexit__(None, None, None)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"status": "ok", "persist": config.output_dir is not None}

    @app.post("/generate", response_model=GenerateResponse, response_model_exclude_none=True)
    def generate_endpoint(payload: Dict[str, Any] = Body(...)) -> GenerateResponse:
        outcome = service.execute(payload)
        if not outcome.ok:
            raise _http_error(outcome)
        return GenerateResponse(**(outcome.result or {}))

    @app.get("/jobs/{token}")
    def job_status_endpoint(token: str) -> Dict[str, Any]:
        outcome = service.execute_check(token)
        if not outcome.ok:
            raise _http_error(outcome)
        return dict(outcome.result or {})

    return app
