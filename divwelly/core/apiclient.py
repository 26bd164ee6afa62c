# core/apiclient.py
"""
Thin typed client for the household API.

Every call forwards the browser's session cookie. Non-2xx answers become
ApiError with the API's own `error` message when it sends one.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import httpx

from divwelly.core.errors import ApiError, ApiUnavailable
from divwelly.core.session import SessionCookie
from divwelly.schemas import (
    Balance, Expense, Household, HouseholdMembership, Member, Payment,
    RecurringBillPayment, RecurringExpense, SessionInfo,
)

log = logging.getLogger("uvicorn.error")


def _error_message(resp: httpx.Response, default: str) -> str:
    try:
        data = resp.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        msg = data.get("error") or data.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg
    return default


class HouseholdApi:
    def __init__(
        self,
        base_url: str,
        session: Optional[SessionCookie] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if session is not None:
            headers["Cookie"] = session.header()
        self.session = session
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HouseholdApi":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------- transport ----------
    def _send(self, method: str, path: str, default_error: str,
              json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            resp = self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            log.warning("household API unreachable: %s %s (%s)", method, path, e)
            raise ApiUnavailable()
        if resp.is_error:
            log.warning("household API %s %s -> %s", method, path, resp.status_code)
            raise ApiError(resp.status_code, _error_message(resp, default_error))
        return resp

    def _json(self, method: str, path: str, default_error: str,
              json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        resp = self._send(method, path, default_error, json=json)
        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError:
            raise ApiError(502, default_error)
        return data if isinstance(data, dict) else {}

    # ---------- auth ----------
    def sign_in(self, body: Dict[str, Any]) -> httpx.Response:
        return self._send("POST", "/api/auth/sign-in/email", "Authentication failed", json=body)

    def sign_up(self, body: Dict[str, Any]) -> httpx.Response:
        return self._send("POST", "/api/auth/sign-up/email", "Authentication failed", json=body)

    def sign_out(self) -> None:
        self._send("POST", "/api/auth/sign-out", "Logout failed")

    def get_session(self) -> Optional[SessionInfo]:
        data = self._json("GET", "/api/auth/get-session", "Failed to get session")
        if not data or not data.get("user"):
            return None
        return SessionInfo.model_validate(data)

    # ---------- households ----------
    def list_households(self) -> List[HouseholdMembership]:
        data = self._json("GET", "/api/households", "Failed to load households")
        return [HouseholdMembership.model_validate(h) for h in data.get("households") or []]

    def create_household(self, body: Dict[str, Any]) -> Optional[Household]:
        data = self._json("POST", "/api/households", "Failed to create household", json=body)
        return Household.model_validate(data["household"]) if data.get("household") else None

    def join_household(self, body: Dict[str, Any]) -> Optional[Household]:
        data = self._json("POST", "/api/households/join", "Failed to join household", json=body)
        return Household.model_validate(data["household"]) if data.get("household") else None

    def get_household(self, household_id: str) -> Household:
        data = self._json("GET", f"/api/households/{household_id}", "Failed to load household")
        if not data.get("household"):
            raise ApiError(404, "Household not found")
        return Household.model_validate(data["household"])

    def list_members(self, household_id: str) -> List[Member]:
        data = self._json("GET", f"/api/households/{household_id}/members", "Failed to load members")
        return [Member.model_validate(m) for m in data.get("members") or []]

    def list_expenses(self, household_id: str) -> List[Expense]:
        data = self._json("GET", f"/api/households/{household_id}/expenses", "Failed to load expenses")
        return [Expense.model_validate(e) for e in data.get("expenses") or []]

    def list_balances(self, household_id: str) -> List[Balance]:
        data = self._json("GET", f"/api/households/{household_id}/balances", "Failed to load balances")
        return [Balance.model_validate(b) for b in data.get("balances") or []]

    def update_household_info(self, household_id: str, body: Dict[str, Any]) -> Optional[Household]:
        data = self._json("PATCH", f"/api/households/{household_id}/info",
                          "Failed to update household info", json=body)
        return Household.model_validate(data["household"]) if data.get("household") else None

    def promote_member(self, household_id: str, member_id: str) -> None:
        self._send("PATCH", f"/api/households/{household_id}/members/{member_id}/promote",
                   "Failed to promote member")

    # ---------- expenses ----------
    def create_expense(self, body: Dict[str, Any]) -> Optional[Expense]:
        data = self._json("POST", "/api/expenses", "Failed to add expense", json=body)
        return Expense.model_validate(data["expense"]) if data.get("expense") else None

    def update_expense(self, expense_id: str, body: Dict[str, Any]) -> Optional[Expense]:
        data = self._json("PATCH", f"/api/expenses/{expense_id}", "Failed to update expense", json=body)
        return Expense.model_validate(data["expense"]) if data.get("expense") else None

    def delete_expense(self, expense_id: str) -> None:
        self._send("DELETE", f"/api/expenses/{expense_id}", "Failed to delete expense")

    def list_payments(self, expense_id: str) -> List[Payment]:
        data = self._json("GET", f"/api/expenses/{expense_id}/payments", "Failed to load payments")
        return [Payment.from_api(p) for p in data.get("payments") or []]

    def mark_payment_paid(self, expense_id: str, payment_id: str,
                          receipt_url: Optional[str] = None) -> None:
        body: Dict[str, Any] = {}
        if receipt_url:
            body["receiptUrl"] = receipt_url
        self._send("PATCH", f"/api/expenses/{expense_id}/payments/{payment_id}/mark-paid",
                   "Failed to mark as paid", json=body)

    # ---------- recurring bills ----------
    def list_recurring(self, household_id: str) -> List[RecurringExpense]:
        data = self._json("GET", f"/api/recurring-expenses/household/{household_id}",
                          "Failed to load recurring expenses")
        return [RecurringExpense.model_validate(r) for r in data.get("recurringExpenses") or []]

    def create_recurring(self, body: Dict[str, Any]) -> Optional[RecurringExpense]:
        data = self._json("POST", "/api/recurring-expenses", "Failed to add recurring expense", json=body)
        item = data.get("recurringExpense")
        return RecurringExpense.model_validate(item) if item else None

    def delete_recurring(self, recurring_id: str) -> None:
        self._send("DELETE", f"/api/recurring-expenses/{recurring_id}", "Failed to delete")

    def list_recurring_payments(self, recurring_id: str) -> List[RecurringBillPayment]:
        data = self._json("GET", f"/api/recurring-expenses/{recurring_id}/payments",
                          "Failed to load bill payments")
        return [RecurringBillPayment.model_validate(p) for p in data.get("payments") or []]

    def mark_recurring_paid(self, recurring_id: str, month: str) -> Optional[RecurringBillPayment]:
        data = self._json("POST", f"/api/recurring-expenses/{recurring_id}/mark-paid",
                          "Failed to mark bill as paid", json={"month": month})
        item = data.get("payment")
        return RecurringBillPayment.model_validate(item) if item else None
