# routers/deps.py
from __future__ import annotations
import logging
from typing import Iterator, Optional

from fastapi import Depends, Request

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.config import Settings
from divwelly.core.errors import ApiError, LoginRequired
from divwelly.core.session import find_session_cookie
from divwelly.schemas import SessionInfo

log = logging.getLogger("uvicorn.error")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_api(request: Request) -> Iterator[HouseholdApi]:
    """A household API client carrying the caller's session cookie."""
    settings = request.app.state.settings
    api = HouseholdApi(
        settings.api_url,
        session=find_session_cookie(request.cookies),
        timeout=settings.request_timeout,
        transport=request.app.state.api_transport,
    )
    try:
        yield api
    finally:
        api.close()


def load_session(api: HouseholdApi) -> Optional[SessionInfo]:
    if api.session is None:
        return None
    try:
        return api.get_session()
    except ApiError as e:
        log.info("session rejected (%s): %s", e.status_code, e.message)
        return None


def require_session(api: HouseholdApi = Depends(get_api)) -> SessionInfo:
    session = load_session(api)
    if session is None:
        raise LoginRequired()
    return session
