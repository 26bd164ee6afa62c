# divwelly/app.py
from __future__ import annotations
import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from divwelly.core.config import Settings, get_settings
from divwelly.core.errors import ApiError, HouseholdUnavailable, LoginRequired
from divwelly.core.session import clear_session_cookies, gate_redirect
from divwelly.core.web import render
from divwelly.routers import analytics, auth, dashboard, expenses, health, households, recurring

log = logging.getLogger("uvicorn.error")


def _login_redirect() -> RedirectResponse:
    resp = RedirectResponse("/login", status_code=303)
    clear_session_cookies(resp)
    return resp


def create_app(settings: Optional[Settings] = None,
               api_transport: Optional[httpx.BaseTransport] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=f"{settings.app_name} web")
    app.state.settings = settings
    # tests swap in an httpx.MockTransport here
    app.state.api_transport = api_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        session_cookie="divwelly_session",
        same_site="lax",
        https_only=settings.secure_cookies,
    )

    @app.middleware("http")
    async def session_gate(request: Request, call_next):
        target = gate_redirect(request.url.path, request.cookies)
        if target is not None and request.method in ("GET", "HEAD"):
            return RedirectResponse(target, status_code=307)
        if target == "/login":
            return RedirectResponse(target, status_code=303)
        return await call_next(request)

    # ---------- errors ----------
    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        return _login_redirect()

    @app.exception_handler(HouseholdUnavailable)
    async def household_unavailable(request: Request, exc: HouseholdUnavailable):
        return render(request, "error.html", {
            "title": "Something went wrong!",
            "message": exc.message or "An error occurred while loading the household.",
            "retry_url": f"/household/{exc.household_id}",
        }, status_code=404 if exc.not_found else 502)

    @app.exception_handler(ApiError)
    async def api_error(request: Request, exc: ApiError):
        if exc.unauthorized:
            return _login_redirect()
        return render(request, "error.html", {
            "title": "Something went wrong!",
            "message": exc.message,
            "retry_url": str(request.url.path),
        }, status_code=502)

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return render(request, "error.html", {
            "title": "Something went wrong!",
            "message": "An unexpected error occurred.",
            "retry_url": str(request.url.path),
        }, status_code=500)

    # ---------- routers ----------
    app.include_router(health.router)
    app.include_router(analytics.router)
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(households.router)
    app.include_router(expenses.router)
    app.include_router(recurring.router)
    return app


app = create_app()
