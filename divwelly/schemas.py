# divwelly/schemas.py
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Literal, Optional, Type, TypeVar

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, ValidationError,
    field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from divwelly.core.errors import FormError
from divwelly.core.money import parse_amount

Role = Literal["admin", "member"]
Frequency = Literal["monthly", "weekly", "yearly"]


class ApiModel(BaseModel):
    """Mirror of a household API shape (camelCase on the wire)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# -------- Households / members --------
class Household(ApiModel):
    id: str
    name: str
    invite_code: str = ""
    created_at: Optional[datetime] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    wifi_name: Optional[str] = None
    wifi_password: Optional[str] = None
    bin_collection: Optional[str] = None
    emergency_contacts: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("invite_code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return (v or "").upper()

    @property
    def has_info(self) -> bool:
        return any(getattr(self, f) for f in INFO_FIELDS)


INFO_FIELDS = (
    "address", "postcode", "wifi_name", "wifi_password",
    "bin_collection", "emergency_contacts", "notes",
)


class MembershipRole(ApiModel):
    role: Role = "member"
    joined_at: Optional[datetime] = None


class HouseholdMembership(ApiModel):
    """One row of GET /api/households: the household plus my role in it."""
    household: Household
    member: MembershipRole = Field(default_factory=MembershipRole)
    pending: bool = False


class Member(ApiModel):
    id: str
    name: str
    email: str = ""
    role: Role = "member"


# -------- Expenses / payments --------
class Expense(ApiModel):
    id: str
    description: str
    amount: int  # minor units
    paid_by_id: Optional[str] = None
    paid_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    due_date: Optional[datetime] = None


class UserRef(ApiModel):
    id: str
    name: str = ""
    email: str = ""


class Payment(BaseModel):
    id: str
    amount: int  # minor units
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    receipt_url: Optional[str] = None
    user: UserRef

    @classmethod
    def from_api(cls, entry: Dict[str, Any]) -> "Payment":
        # the payments endpoint nests the row: {"payment": {...}, "user": {...}}
        if "payment" in entry:
            return cls(**entry["payment"], user=entry.get("user") or {})
        return cls.model_validate(entry)


class Balance(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(alias="from")
    to: str
    amount: int  # minor units


# -------- Recurring bills --------
class RecurringExpense(ApiModel):
    id: str
    description: str
    amount: int  # minor units
    frequency: Frequency = "monthly"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    notes: Optional[str] = None
    is_active: bool = True
    last_generated: Optional[datetime] = None


class RecurringBillPayment(ApiModel):
    id: str
    month: str  # YYYY-MM
    paid_at: Optional[datetime] = None
    user: Optional[UserRef] = None


# -------- Auth --------
class SessionInfo(BaseModel):
    user: UserRef
    session: Dict[str, Any] = Field(default_factory=dict)


# ======================= Forms =======================
F = TypeVar("F", bound=BaseModel)


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def parse_form(model: Type[F], data: Dict[str, Any]) -> F:
    """Validate form input; the first problem becomes a FormError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or None
        msg = err.get("msg", "Invalid input")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        raise FormError(msg, field=field)


class CreateHouseholdForm(BaseModel):
    name: str

    @field_validator("name", mode="before")
    @classmethod
    def required(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Household name is required")
        return v

    def to_api(self) -> Dict[str, Any]:
        return {"name": self.name}


class JoinHouseholdForm(BaseModel):
    invite_code: str

    @field_validator("invite_code", mode="before")
    @classmethod
    def normalise(cls, v):
        v = (v or "").strip().upper()
        if not v:
            raise ValueError("Invite code is required")
        if len(v) != 6 or not v.isalnum():
            raise ValueError("Invite code must be 6 letters or digits")
        return v

    def to_api(self) -> Dict[str, Any]:
        return {"inviteCode": self.invite_code}


def _iso_midnight(d: date) -> str:
    return f"{d.isoformat()}T00:00:00.000Z"


class ExpenseForm(BaseModel):
    description: str
    amount: Decimal
    due_date: Optional[date] = None

    @field_validator("description", mode="before")
    @classmethod
    def description_required(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Description is required")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, v):
        return parse_amount(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return _blank_to_none(v)

    def to_api(self, household_id: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "description": self.description,
            "amount": float(self.amount),
        }
        if household_id is not None:
            body["householdId"] = household_id
        if self.due_date:
            body["dueDate"] = _iso_midnight(self.due_date)
        return body


class HouseholdInfoForm(BaseModel):
    address: Optional[str] = None
    postcode: Optional[str] = None
    wifi_name: Optional[str] = None
    wifi_password: Optional[str] = None
    bin_collection: Optional[str] = None
    emergency_contacts: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank(cls, v):
        return _blank_to_none(v)

    def to_api(self) -> Dict[str, Any]:
        """Blank fields are left out of the PATCH body."""
        return {to_camel(k): v for k, v in self.model_dump().items() if v is not None}


class RecurringExpenseForm(BaseModel):
    description: str
    amount: Decimal
    frequency: Frequency = "monthly"
    start_date: date
    end_date: Optional[date] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    notes: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def description_required(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Description is required")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def check_amount(cls, v):
        return parse_amount(v)

    @field_validator("start_date", mode="before")
    @classmethod
    def start_required(cls, v):
        v = _blank_to_none(v)
        if v is None:
            raise ValueError("Start date is required")
        return v

    @field_validator("end_date", "day_of_month", "day_of_week", "notes", mode="before")
    @classmethod
    def blank(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def schedule(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after the start date")
        if self.frequency == "monthly":
            if self.day_of_month is None:
                self.day_of_month = self.start_date.day
            self.day_of_week = None
        elif self.frequency == "weekly":
            if self.day_of_week is None:
                # 0 = Sunday
                self.day_of_week = (self.start_date.weekday() + 1) % 7
            self.day_of_month = None
        else:
            self.day_of_month = None
            self.day_of_week = None
        return self

    def to_api(self, household_id: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "householdId": household_id,
            "description": self.description,
            "amount": float(self.amount),
            "frequency": self.frequency,
            "startDate": _iso_midnight(self.start_date),
        }
        if self.end_date:
            body["endDate"] = _iso_midnight(self.end_date)
        if self.day_of_month is not None:
            body["dayOfMonth"] = self.day_of_month
        if self.day_of_week is not None:
            body["dayOfWeek"] = self.day_of_week
        if self.notes:
            body["notes"] = self.notes
        return body


class SignInForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Email is required")
        return v

    @field_validator("password", mode="before")
    @classmethod
    def password_required(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v

    def to_api(self) -> Dict[str, Any]:
        return {"email": self.email, "password": self.password}


class SignUpForm(SignInForm):
    name: str

    @field_validator("name", mode="before")
    @classmethod
    def name_required(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Name is required")
        return v

    def to_api(self) -> Dict[str, Any]:
        return {"email": self.email, "password": self.password, "name": self.name}
