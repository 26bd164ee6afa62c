"""Tests for API shapes and form validation."""

from datetime import date
from decimal import Decimal

import pytest

from divwelly.core.errors import FormError
from divwelly.schemas import (
    Balance, CreateHouseholdForm, ExpenseForm, Household, HouseholdInfoForm,
    JoinHouseholdForm, Payment, RecurringExpenseForm, SignUpForm, parse_form,
)

from conftest import BALANCES, HOUSEHOLD, PAYMENTS


class TestApiShapes:
    def test_household_from_camel_case(self):
        household = Household.model_validate(HOUSEHOLD)
        assert household.invite_code == "ABC123"
        assert household.wifi_password == "hunter2"
        assert household.has_info

    def test_household_without_info(self):
        household = Household.model_validate({"id": "h2", "name": "Empty", "inviteCode": "ZZZ999"})
        assert not household.has_info

    def test_payment_rows_are_flattened(self):
        payment = Payment.from_api(PAYMENTS[1])
        assert payment.id == "p2"
        assert payment.amount == 2125
        assert payment.is_paid is False
        assert payment.user.name == "Bob Jones"

    def test_balance_uses_from_key(self):
        balance = Balance.model_validate(BALANCES[0])
        assert balance.from_ == "Bob Jones"
        assert balance.model_dump(by_alias=True)["from"] == "Bob Jones"


class TestHouseholdForms:
    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_is_rejected(self, name):
        with pytest.raises(FormError) as exc:
            parse_form(CreateHouseholdForm, {"name": name})
        assert exc.value.message == "Household name is required"

    def test_name_is_stripped(self):
        assert parse_form(CreateHouseholdForm, {"name": "  Flat 42 "}).to_api() == {"name": "Flat 42"}

    def test_invite_code_is_upper_cased(self):
        form = parse_form(JoinHouseholdForm, {"invite_code": " abc12x "})
        assert form.to_api() == {"inviteCode": "ABC12X"}

    @pytest.mark.parametrize("code", ["ABC", "ABC1234", "AB-123"])
    def test_invite_code_must_be_six_alphanumerics(self, code):
        with pytest.raises(FormError):
            parse_form(JoinHouseholdForm, {"invite_code": code})


class TestExpenseForm:
    def test_payload(self):
        form = parse_form(ExpenseForm, {"description": "Milk", "amount": "3.20", "due_date": "2024-03-01"})
        assert form.amount == Decimal("3.20")
        assert form.to_api("h1") == {
            "householdId": "h1",
            "description": "Milk",
            "amount": 3.2,
            "dueDate": "2024-03-01T00:00:00.000Z",
        }

    def test_blank_due_date_is_left_out(self):
        form = parse_form(ExpenseForm, {"description": "Milk", "amount": "3", "due_date": ""})
        assert "dueDate" not in form.to_api("h1")

    def test_bad_amount(self):
        with pytest.raises(FormError) as exc:
            parse_form(ExpenseForm, {"description": "Milk", "amount": "-1"})
        assert exc.value.field == "amount"


class TestHouseholdInfoForm:
    def test_blank_fields_are_omitted(self):
        form = parse_form(HouseholdInfoForm, {"address": " 1 High St ", "postcode": "", "wifi_name": "Net"})
        assert form.to_api() == {"address": "1 High St", "wifiName": "Net"}


class TestRecurringExpenseForm:
    def _form(self, **overrides):
        data = {"description": "Rent", "amount": "1200", "frequency": "monthly",
                "start_date": "2024-01-15"}
        data.update(overrides)
        return parse_form(RecurringExpenseForm, data)

    def test_monthly_defaults_day_from_start_date(self):
        form = self._form()
        assert form.day_of_month == 15
        body = form.to_api("h1")
        assert body["dayOfMonth"] == 15
        assert "dayOfWeek" not in body
        assert body["startDate"] == "2024-01-15T00:00:00.000Z"

    def test_day_of_month_only_sent_for_monthly(self):
        form = self._form(frequency="yearly", day_of_month="3")
        assert "dayOfMonth" not in form.to_api("h1")

    def test_weekly_day_counts_from_sunday(self):
        # 2024-01-15 was a Monday
        form = self._form(frequency="weekly")
        assert form.day_of_week == 1

    def test_start_date_required(self):
        with pytest.raises(FormError) as exc:
            self._form(start_date="")
        assert exc.value.message == "Start date is required"

    def test_end_before_start(self):
        with pytest.raises(FormError):
            self._form(end_date="2023-12-31")

    def test_unknown_frequency(self):
        with pytest.raises(FormError):
            self._form(frequency="daily")

    def test_day_of_month_range(self):
        with pytest.raises(FormError):
            self._form(day_of_month="32")


class TestAuthForms:
    def test_sign_up_requires_name(self):
        with pytest.raises(FormError):
            parse_form(SignUpForm, {"email": "a@example.com", "password": "pw", "name": " "})

    def test_sign_up_payload(self):
        form = parse_form(SignUpForm, {"email": "a@example.com", "password": "pw", "name": "Al"})
        assert form.to_api() == {"email": "a@example.com", "password": "pw", "name": "Al"}
