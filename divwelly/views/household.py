# views/household.py
"""
Household detail page state.

Every mutation follows the same pattern: change local state first, send
the request, roll back and raise an error toast if it fails, refetch the
derived data (balances, payment lists) if it succeeds. Nothing here
computes a balance or a schedule; those always come from the API.
"""
from __future__ import annotations
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.errors import ApiError, FormError, HouseholdUnavailable, LoginRequired
from divwelly.core.money import to_minor
from divwelly.core.state import OptimisticList, Toasts
from divwelly.schemas import (
    Balance, Expense, ExpenseForm, Household, HouseholdInfoForm, Member,
    Payment, RecurringBillPayment, RecurringExpense, RecurringExpenseForm,
    UserRef, parse_form,
)

log = logging.getLogger("uvicorn.error")

T = TypeVar("T")

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def current_month(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime("%Y-%m")


class HouseholdView:
    def __init__(self, api: HouseholdApi, household_id: str, user: Optional[UserRef] = None):
        self.api = api
        self.household_id = household_id
        self.user = user
        self.household: Optional[Household] = None
        self.members: OptimisticList[Member] = OptimisticList()
        self.expenses: OptimisticList[Expense] = OptimisticList()
        self.balances: List[Balance] = []
        self.recurring: OptimisticList[RecurringExpense] = OptimisticList()
        self.payments: Dict[str, OptimisticList[Payment]] = {}
        self.recurring_payments: Dict[str, OptimisticList[RecurringBillPayment]] = {}
        self.toasts = Toasts()
        self.error = ""
        self.error_status = 0
        self._loaded: set = set()

    # ---------------- loading ----------------
    def load(self) -> "HouseholdView":
        """Household, members, expenses, balances and recurring bills, in parallel."""
        hid = self.household_id
        with ThreadPoolExecutor(max_workers=5) as pool:
            household = pool.submit(self.api.get_household, hid)
            members = pool.submit(self.api.list_members, hid)
            expenses = pool.submit(self.api.list_expenses, hid)
            balances = pool.submit(self.api.list_balances, hid)
            recurring = pool.submit(self.api.list_recurring, hid)

        try:
            self.household = household.result()
        except ApiError as e:
            if e.unauthorized:
                raise LoginRequired() from e
            raise HouseholdUnavailable(hid, e.message, e.status_code) from e
        self._loaded.add("household")

        self.members.replace_all(self._or_empty("members", members.result))
        self.expenses.replace_all(self._or_empty("expenses", expenses.result))
        self.balances = self._or_empty("balances", balances.result)
        self.recurring.replace_all(self._or_empty("recurring", recurring.result))
        return self

    def _or_empty(self, what: str, fetch: Callable[[], List[T]]) -> List[T]:
        try:
            items = fetch()
        except ApiError as e:
            log.warning("could not load %s for household %s: %s", what, self.household_id, e.message)
            return []
        self._loaded.add(what)
        return items

    def ensure(self, what: str) -> None:
        if what in self._loaded:
            return
        if what == "household":
            try:
                self.household = self.api.get_household(self.household_id)
            except ApiError as e:
                if e.unauthorized:
                    raise LoginRequired() from e
                raise HouseholdUnavailable(self.household_id, e.message, e.status_code) from e
            self._loaded.add(what)
        elif what == "members":
            self.members.replace_all(self._or_empty("members", lambda: self.api.list_members(self.household_id)))
        elif what == "expenses":
            self.expenses.replace_all(self._or_empty("expenses", lambda: self.api.list_expenses(self.household_id)))
        elif what == "recurring":
            self.recurring.replace_all(self._or_empty("recurring", lambda: self.api.list_recurring(self.household_id)))

    def refresh_balances(self) -> None:
        try:
            self.balances = self.api.list_balances(self.household_id)
        except ApiError as e:
            log.warning("could not refresh balances for %s: %s", self.household_id, e.message)

    def refresh_expenses(self) -> None:
        self._loaded.discard("expenses")
        self.ensure("expenses")
        self.refresh_balances()

    def _fail(self, e: ApiError, *lists: OptimisticList) -> bool:
        for items in lists:
            items.rollback()
        if e.unauthorized:
            raise LoginRequired() from e
        self.error = e.message
        self.error_status = e.status_code
        self.toasts.error(e.message)
        return False

    def _form_error(self, e: FormError) -> bool:
        self.error = e.message
        self.error_status = 400
        self.toasts.error(e.message)
        return False

    # ---------------- expenses ----------------
    def add_expense(self, data: Dict[str, Any]) -> bool:
        self.error = ""
        try:
            form = parse_form(ExpenseForm, data)
        except FormError as e:
            return self._form_error(e)
        try:
            self.api.create_expense(form.to_api(self.household_id))
        except ApiError as e:
            return self._fail(e)
        self.refresh_expenses()
        self.toasts.success(f"Added {form.description}")
        return True

    def update_expense(self, expense_id: str, data: Dict[str, Any]) -> bool:
        self.error = ""
        try:
            form = parse_form(ExpenseForm, data)
        except FormError as e:
            return self._form_error(e)
        self.ensure("expenses")

        changes = {"description": form.description, "amount": to_minor(form.amount)}
        if form.due_date:
            changes["due_date"] = datetime(form.due_date.year, form.due_date.month,
                                           form.due_date.day, tzinfo=timezone.utc)
        self.expenses.apply(lambda items: [
            x.model_copy(update=changes) if x.id == expense_id else x for x in items
        ])
        try:
            updated = self.api.update_expense(expense_id, form.to_api())
        except ApiError as e:
            return self._fail(e, self.expenses)
        self.expenses.commit()
        if updated is not None:
            i = self.expenses.index_of(lambda x: x.id == expense_id)
            if i >= 0:
                self.expenses.items[i] = updated
        self.payments.pop(expense_id, None)
        self.refresh_balances()
        self.toasts.success("Expense updated")
        return True

    def delete_expense(self, expense_id: str) -> bool:
        self.error = ""
        self.ensure("expenses")
        self.expenses.apply(lambda items: [x for x in items if x.id != expense_id])
        try:
            self.api.delete_expense(expense_id)
        except ApiError as e:
            return self._fail(e, self.expenses)
        self.expenses.commit()
        # payment rows go with the expense upstream
        self.payments.pop(expense_id, None)
        self.refresh_balances()
        self.toasts.success("Expense deleted")
        return True

    # ---------------- payments ----------------
    def load_payments(self, expense_id: str, force: bool = False) -> OptimisticList[Payment]:
        if not force and expense_id in self.payments:
            return self.payments[expense_id]
        try:
            items = self.api.list_payments(expense_id)
        except ApiError as e:
            if e.unauthorized:
                raise LoginRequired() from e
            log.warning("could not load payments for expense %s: %s", expense_id, e.message)
            items = []
        self.payments[expense_id] = OptimisticList(items)
        return self.payments[expense_id]

    def mark_paid(self, expense_id: str, payment_id: str, receipt_url: Optional[str] = None) -> bool:
        self.error = ""
        payments = self.load_payments(expense_id)
        target = payments.find(lambda p: p.id == payment_id)
        if target is not None and target.is_paid:
            self.toasts.info("Already marked as paid")
            return True

        paid_at = _now()
        payments.apply(lambda items: [
            p.model_copy(update={"is_paid": True, "paid_at": paid_at}) if p.id == payment_id else p
            for p in items
        ])
        try:
            self.api.mark_payment_paid(expense_id, payment_id, receipt_url=receipt_url)
        except ApiError as e:
            return self._fail(e, payments)
        payments.commit()
        self.load_payments(expense_id, force=True)
        self.refresh_balances()
        self.toasts.success("Marked as paid")
        return True

    # ---------------- household info / members ----------------
    def update_info(self, data: Dict[str, Any]) -> bool:
        self.error = ""
        form = parse_form(HouseholdInfoForm, data)
        self.ensure("household")

        previous = self.household
        changes = {k: v for k, v in form.model_dump().items() if v is not None}
        self.household = previous.model_copy(update=changes)
        try:
            updated = self.api.update_household_info(self.household_id, form.to_api())
        except ApiError as e:
            self.household = previous
            return self._fail(e)
        if updated is not None:
            self.household = updated
        self.toasts.success("Household info saved")
        return True

    def promote_member(self, member_id: str) -> bool:
        self.error = ""
        self.ensure("members")
        member = self.members.find(lambda m: m.id == member_id)
        if member is None:
            return self._form_error(FormError("Member not found"))
        if member.role != "member":
            return self._form_error(FormError(f"{member.name} is already an admin"))

        self.members.apply(lambda items: [
            m.model_copy(update={"role": "admin"}) if m.id == member_id else m for m in items
        ])
        try:
            self.api.promote_member(self.household_id, member_id)
        except ApiError as e:
            return self._fail(e, self.members)
        self.members.commit()
        self.toasts.success(f"{member.name} is now an admin")
        return True

    # ---------------- recurring bills ----------------
    def load_recurring(self) -> OptimisticList[RecurringExpense]:
        self._loaded.discard("recurring")
        self.ensure("recurring")
        return self.recurring

    def add_recurring(self, data: Dict[str, Any]) -> bool:
        self.error = ""
        try:
            form = parse_form(RecurringExpenseForm, data)
        except FormError as e:
            return self._form_error(e)
        try:
            self.api.create_recurring(form.to_api(self.household_id))
        except ApiError as e:
            return self._fail(e)
        self.load_recurring()
        self.toasts.success(f"Added recurring bill {form.description}")
        return True

    def delete_recurring(self, recurring_id: str) -> bool:
        self.error = ""
        self.ensure("recurring")
        self.recurring.apply(lambda items: [r for r in items if r.id != recurring_id])
        try:
            self.api.delete_recurring(recurring_id)
        except ApiError as e:
            return self._fail(e, self.recurring)
        self.recurring.commit()
        self.recurring_payments.pop(recurring_id, None)
        self.toasts.success("Recurring bill deleted")
        return True

    def load_recurring_payments(self, recurring_id: str, force: bool = False) -> OptimisticList[RecurringBillPayment]:
        if not force and recurring_id in self.recurring_payments:
            return self.recurring_payments[recurring_id]
        try:
            items = self.api.list_recurring_payments(recurring_id)
        except ApiError as e:
            if e.unauthorized:
                raise LoginRequired() from e
            log.warning("could not load payments for bill %s: %s", recurring_id, e.message)
            items = []
        self.recurring_payments[recurring_id] = OptimisticList(items)
        return self.recurring_payments[recurring_id]

    def mark_recurring_paid(self, recurring_id: str, month: Optional[str] = None) -> bool:
        self.error = ""
        month = (month or "").strip() or current_month()
        if not MONTH_RE.match(month):
            return self._form_error(FormError("Month must look like YYYY-MM", field="month"))

        records = self.load_recurring_payments(recurring_id)
        me = self.user.id if self.user else None
        if me and records.find(lambda r: r.month == month and r.user is not None and r.user.id == me):
            self.toasts.info(f"{month} is already marked as paid")
            return True

        pending = RecurringBillPayment(id="pending", month=month, paid_at=_now(), user=self.user)
        records.apply(lambda items: items + [pending])
        try:
            created = self.api.mark_recurring_paid(recurring_id, month)
        except ApiError as e:
            return self._fail(e, records)
        records.commit()
        if created is not None:
            records.items[-1] = created
        else:
            self.load_recurring_payments(recurring_id, force=True)
        self.toasts.success(f"Marked {month} as paid")
        return True
