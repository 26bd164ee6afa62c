# routers/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.web import redirect, render
from divwelly.routers.deps import get_api, require_session
from divwelly.schemas import SessionInfo
from divwelly.views.dashboard import DashboardView

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _page(request: Request, view: DashboardView, session: SessionInfo, status_code: int = 200):
    return render(request, "dashboard.html", {
        "households": view.households,
        "error": view.error,
        "open_form": view.open_form,
        "user": session.user,
    }, toasts=view.toasts, status_code=status_code)


@router.get("")
def dashboard(
    request: Request,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = DashboardView(api).load()
    return _page(request, view, session)


@router.post("/households")
def create_household(
    request: Request,
    name: str = Form(""),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = DashboardView(api).load()
    if not view.create({"name": name}):
        return _page(request, view, session, status_code=400)
    return redirect(request, "/dashboard", view.toasts)


@router.post("/join")
def join_household(
    request: Request,
    invite_code: str = Form("", alias="inviteCode"),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = DashboardView(api).load()
    if not view.join({"invite_code": invite_code}):
        return _page(request, view, session, status_code=400)
    return redirect(request, "/dashboard", view.toasts)
