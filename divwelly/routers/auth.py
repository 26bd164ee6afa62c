# routers/auth.py
from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, Form, Request

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.config import Settings
from divwelly.core.errors import ApiError, ApiUnavailable, FormError
from divwelly.core.session import clear_session_cookies, session_from_response, set_session_cookie
from divwelly.core.web import redirect, render
from divwelly.routers.deps import get_api, get_settings
from divwelly.schemas import SignInForm, SignUpForm, parse_form

router = APIRouter(tags=["Auth"])

log = logging.getLogger("uvicorn.error")


@router.get("/")
def landing(request: Request):
    return render(request, "landing.html")


@router.get("/login")
def login_page(request: Request):
    return render(request, "login.html", {"sign_up": False, "error": "", "form": {}})


@router.get("/signup")
def signup_page(request: Request):
    return render(request, "login.html", {"sign_up": True, "error": "", "form": {}})


def _authenticate(request: Request, api: HouseholdApi, settings: Settings, sign_up: bool, data: dict):
    """Sign in or up upstream, then hand the session cookie to the browser."""
    try:
        form = parse_form(SignUpForm if sign_up else SignInForm, data)
        resp = api.sign_up(form.to_api()) if sign_up else api.sign_in(form.to_api())
    except (FormError, ApiError) as e:
        if isinstance(e, FormError):
            message, status = e.message, 400
        elif isinstance(e, ApiUnavailable):
            log.warning("household API unreachable during sign-in: %s", e.message)
            message, status = e.message, e.status_code
        else:
            log.info("authentication rejected: %s", e.message)
            message, status = "Authentication failed", 401
        form_echo = {k: v for k, v in data.items() if k != "password"}
        return render(request, "login.html",
                      {"sign_up": sign_up, "error": message, "form": form_echo},
                      status_code=status)

    token = session_from_response(resp)
    if not token:
        log.warning("household API accepted credentials but set no session cookie")
        return render(request, "login.html",
                      {"sign_up": sign_up, "error": "Authentication failed", "form": {}},
                      status_code=502)
    out = redirect(request, "/dashboard")
    set_session_cookie(out, token, secure=settings.secure_cookies)
    return out


@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    api: HouseholdApi = Depends(get_api),
    settings: Settings = Depends(get_settings),
):
    return _authenticate(request, api, settings, False, {"email": email, "password": password})


@router.post("/signup")
def signup(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    api: HouseholdApi = Depends(get_api),
    settings: Settings = Depends(get_settings),
):
    return _authenticate(request, api, settings, True,
                         {"name": name, "email": email, "password": password})


@router.post("/logout")
def logout(request: Request, api: HouseholdApi = Depends(get_api)):
    if api.session is not None:
        try:
            api.sign_out()
        except ApiError as e:
            log.warning("sign-out failed upstream: %s", e.message)
    request.session.clear()
    out = redirect(request, "/login")
    clear_session_cookies(out)
    return out
