# routers/expenses.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.web import redirect
from divwelly.routers.deps import get_api, require_session
from divwelly.routers.households import household_url, render_household
from divwelly.schemas import SessionInfo
from divwelly.views.household import HouseholdView

router = APIRouter(prefix="/household/{household_id}/expenses", tags=["Expenses"])


def _payments_payload(view: HouseholdView, expense_id: str) -> dict:
    return {
        "payments": [p.model_dump(mode="json") for p in view.load_payments(expense_id)],
        "balances": [b.model_dump(mode="json", by_alias=True) for b in view.balances],
    }


@router.post("")
def add_expense(
    request: Request,
    household_id: str,
    description: str = Form(""),
    amount: str = Form(""),
    due_date: str = Form("", alias="dueDate"),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    if not view.add_expense({"description": description, "amount": amount, "due_date": due_date}):
        view.load()
        return render_household(request, view, session, status_code=400, open_form="expense")
    return redirect(request, household_url(household_id), view.toasts)


@router.post("/{expense_id}")
def edit_expense(
    request: Request,
    household_id: str,
    expense_id: str,
    description: str = Form(""),
    amount: str = Form(""),
    due_date: str = Form("", alias="dueDate"),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    data = {"description": description, "amount": amount, "due_date": due_date}
    if not view.update_expense(expense_id, data):
        view.load()
        return render_household(request, view, session, status_code=400,
                                open_form=f"edit-{expense_id}")
    return redirect(request, household_url(household_id), view.toasts)


@router.post("/{expense_id}/delete")
def delete_expense(
    request: Request,
    household_id: str,
    expense_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    view.delete_expense(expense_id)
    return redirect(request, household_url(household_id), view.toasts)


# ---------- payments (JSON, used by the expanded expense row) ----------
@router.get("/{expense_id}/payments")
def list_payments(
    household_id: str,
    expense_id: str,
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    view = HouseholdView(api, household_id, user=session.user)
    payments = view.load_payments(expense_id)
    return {"ok": True, "data": {"payments": [p.model_dump(mode="json") for p in payments]}, "toasts": []}


@router.post("/{expense_id}/payments/{payment_id}/mark-paid")
def mark_paid(
    household_id: str,
    expense_id: str,
    payment_id: str,
    receipt_url: str = Form("", alias="receiptUrl"),
    session: SessionInfo = Depends(require_session),
    api: HouseholdApi = Depends(get_api),
):
    """On failure the answer carries the payment list as it was before the click."""
    view = HouseholdView(api, household_id, user=session.user)
    ok = view.mark_paid(expense_id, payment_id, receipt_url=receipt_url or None)
    body = {"ok": ok, "data": _payments_payload(view, expense_id), "toasts": view.toasts.as_list()}
    if not ok:
        return JSONResponse(body, status_code=view.error_status or 400)
    return body
