# routers/recurring.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.web import redirect, render
from divwelly.routers.deps import get_api, require_session
from divwelly.schemas import SessionInfo
from divwelly.views.household import HouseholdView, current_month

router = APIRouter(prefix="/household/{household_id}/recurring", tags=["Recurring bills"])


def _list_url(household_id: str) -> str:
    return f"/household/{household_id}/recurring"


def _page(request: Request, view: HouseholdView, session: SessionInfo,
          status_code: int = 200, form: dict = None):
    return render(request, "recurring.html", {
        "household": view.household,
        "recurring": view.recurring,
        "error": view.error,
        "form": form or {},
        "this_month": current_month(),
        "user": session.user,
    }, toasts=view.toasts, status_code=status_code)


@router.get("")
def recurring_bills(
    request: Request,
    household_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    view.ensure("household")
    view.load_recurring()
    return _page(request, view, session)


@router.post("")
def add_recurring_bill(
    request: Request,
    household_id: str,
    description: str = Form(""),
    amount: str = Form(""),
    frequency: str = Form("monthly"),
    start_date: str = Form("", alias="startDate"),
    end_date: str = Form("", alias="endDate"),
    day_of_month: str = Form("", alias="dayOfMonth"),
    day_of_week: str = Form("", alias="dayOfWeek"),
    notes: str = Form(""),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    data = {
        "description": description, "amount": amount, "frequency": frequency,
        "start_date": start_date, "end_date": end_date,
        "day_of_month": day_of_month, "day_of_week": day_of_week, "notes": notes,
    }
    if not view.add_recurring(data):
        view.ensure("household")
        view.load_recurring()
        return _page(request, view, session, status_code=400, form=data)
    return redirect(request, _list_url(household_id), view.toasts)


@router.post("/{recurring_id}/delete")
def delete_recurring_bill(
    request: Request,
    household_id: str,
    recurring_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    view.delete_recurring(recurring_id)
    return redirect(request, _list_url(household_id), view.toasts)


# ---------- per-month payment records (JSON) ----------
@router.get("/{recurring_id}/payments")
def list_bill_payments(
    household_id: str,
    recurring_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    records = view.load_recurring_payments(recurring_id)
    return {"ok": True, "data": {"payments": [r.to_api() for r in records]}, "toasts": []}


@router.post("/{recurring_id}/mark-paid")
def mark_bill_paid(
    household_id: str,
    recurring_id: str,
    month: str = Form(""),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    ok = view.mark_recurring_paid(recurring_id, month or None)
    records = view.load_recurring_payments(recurring_id)
    body = {"ok": ok, "data": {"payments": [r.to_api() for r in records]},
            "toasts": view.toasts.as_list()}
    if not ok:
        return JSONResponse(body, status_code=view.error_status or 400)
    return body
