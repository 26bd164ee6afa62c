# routers/households.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.web import redirect, render
from divwelly.routers.deps import get_api, require_session
from divwelly.schemas import SessionInfo
from divwelly.views.household import HouseholdView

router = APIRouter(prefix="/household", tags=["Households"])


def household_url(household_id: str) -> str:
    return f"/household/{household_id}"


def render_household(request: Request, view: HouseholdView, session: SessionInfo,
                     status_code: int = 200, open_form: str = ""):
    return render(request, "household.html", {
        "household": view.household,
        "members": view.members,
        "expenses": view.expenses,
        "balances": view.balances,
        "recurring": view.recurring,
        "error": view.error,
        "open_form": open_form,
        "user": session.user,
    }, toasts=view.toasts, status_code=status_code)


@router.get("/{household_id}")
def household_detail(
    request: Request,
    household_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user).load()
    return render_household(request, view, session)


@router.post("/{household_id}/info")
def edit_household_info(
    request: Request,
    household_id: str,
    address: str = Form(""),
    postcode: str = Form(""),
    wifi_name: str = Form("", alias="wifiName"),
    wifi_password: str = Form("", alias="wifiPassword"),
    bin_collection: str = Form("", alias="binCollection"),
    emergency_contacts: str = Form("", alias="emergencyContacts"),
    notes: str = Form(""),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    ok = view.update_info({
        "address": address, "postcode": postcode,
        "wifi_name": wifi_name, "wifi_password": wifi_password,
        "bin_collection": bin_collection, "emergency_contacts": emergency_contacts,
        "notes": notes,
    })
    if not ok:
        view.load()
        return render_household(request, view, session, status_code=400, open_form="info")
    return redirect(request, household_url(household_id), view.toasts)


@router.post("/{household_id}/members/{member_id}/promote")
def promote_member(
    request: Request,
    household_id: str,
    member_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    view.promote_member(member_id)
    return redirect(request, household_url(household_id), view.toasts)
