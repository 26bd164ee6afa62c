# views/dashboard.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from divwelly.core.apiclient import HouseholdApi
from divwelly.core.errors import ApiError, FormError, LoginRequired
from divwelly.core.state import OptimisticList, Toasts
from divwelly.schemas import (
    CreateHouseholdForm, Household, HouseholdMembership, JoinHouseholdForm,
    MembershipRole, parse_form,
)

log = logging.getLogger("uvicorn.error")


class DashboardView:
    """Households the user belongs to, plus the create / join actions."""

    def __init__(self, api: HouseholdApi):
        self.api = api
        self.households: OptimisticList[HouseholdMembership] = OptimisticList()
        self.toasts = Toasts()
        self.error = ""
        self.open_form: Optional[str] = None  # "create" | "join" when re-rendered with an error

    def load(self) -> "DashboardView":
        try:
            self.households.replace_all(self.api.list_households())
        except ApiError as e:
            if e.unauthorized:
                raise LoginRequired() from e
            raise
        return self

    def _splice_pending(self, name: str, role: str) -> HouseholdMembership:
        pending = HouseholdMembership(
            household=Household(id=f"pending-{uuid4().hex[:8]}", name=name),
            member=MembershipRole(role=role),
            pending=True,
        )
        self.households.apply(lambda items: items + [pending])
        return pending

    def _settle(self, pending: HouseholdMembership, household: Optional[Household], role: str) -> None:
        self.households.commit()
        if household is None:
            # nothing to splice in, ask the API for the list again
            try:
                self.load()
            except ApiError as e:
                log.warning("could not refresh households: %s", e.message)
            return
        i = self.households.index_of(lambda m: m.household.id == pending.household.id)
        entry = HouseholdMembership(household=household, member=MembershipRole(role=role))
        if i >= 0:
            self.households.items[i] = entry
        else:
            self.households.items.append(entry)

    def _fail(self, e: ApiError, form: str) -> bool:
        self.households.rollback()
        if e.unauthorized:
            raise LoginRequired() from e
        self.error = e.message
        self.open_form = form
        self.toasts.error(e.message)
        return False

    def create(self, data: Dict[str, Any]) -> bool:
        self.error = ""
        try:
            form = parse_form(CreateHouseholdForm, data)
        except FormError as e:
            self.error, self.open_form = e.message, "create"
            return False

        pending = self._splice_pending(form.name, "admin")
        try:
            household = self.api.create_household(form.to_api())
        except ApiError as e:
            return self._fail(e, "create")
        self._settle(pending, household, "admin")
        self.toasts.success(f"Created {form.name}")
        return True

    def join(self, data: Dict[str, Any]) -> bool:
        self.error = ""
        try:
            form = parse_form(JoinHouseholdForm, data)
        except FormError as e:
            self.error, self.open_form = e.message, "join"
            return False

        pending = self._splice_pending(form.invite_code, "member")
        try:
            household = self.api.join_household(form.to_api())
        except ApiError as e:
            return self._fail(e, "join")
        self._settle(pending, household, "member")
        self.toasts.success(f"Joined {household.name}" if household else "Joined household")
        return True
