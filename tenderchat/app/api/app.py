from __future__ import annotations

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tenderchat.app.relay.service import ChatRelay
from tenderchat.core.config import AppConfig, load_app_config

CHAT_ROUTE_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


def build_readiness_report(config: AppConfig) -> dict[str, object]:
    gemini_configured = bool(config.gemini_api_key)
    return {
        "ready": gemini_configured,
        "gemini_configured": gemini_configured,
        "model": config.gemini_model,
        "upstream_timeout_seconds": config.upstream_timeout_seconds,
        "history_window": config.history_window,
    }


def create_app(
    config: AppConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    resolved_config = config or load_app_config()
    relay = ChatRelay(resolved_config, transport=transport)

    app = FastAPI(title=resolved_config.app_name, version=resolved_config.app_version)
    if resolved_config.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(resolved_config.cors_allow_origins),
            allow_methods=["POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    @app.get("/")
    async def root() -> JSONResponse:
        return JSONResponse(
            content={
                "name": resolved_config.app_name,
                "version": resolved_config.app_version,
                "environment": resolved_config.environment,
                "docs": "/docs",
            }
        )

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/ready")
    async def ready() -> JSONResponse:
        report = build_readiness_report(resolved_config)
        status_code = 200 if bool(report.get("ready")) else 503
        return JSONResponse(content=report, status_code=status_code)

    @app.api_route("/api/chat", methods=CHAT_ROUTE_METHODS)
    async def chat(request: Request) -> JSONResponse:
        payload: object = None
        if request.method == "POST":
            try:
                payload = await request.json()
            except ValueError:
                payload = None
        result = await relay.handle(method=request.method, payload=payload)
        return JSONResponse(content=result.body, status_code=result.status_code)

    return app
