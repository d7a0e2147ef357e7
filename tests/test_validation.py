"""Tests for the invoice and registration form validators."""
import pytest

from app.billing.validation import (
    AMOUNT_NAN_MSG,
    AMOUNT_POSITIVE_MSG,
    AMOUNT_TOO_LARGE_MSG,
    CUSTOMER_REQUIRED_MSG,
    REGISTER_FAILED_MSG,
    STATUS_MSG,
    Failure,
    InvoiceInput,
    Success,
    validate_invoice_form,
    validate_registration_form,
)


def _invoice(**overrides):
    form = {"customerId": "c1", "amount": "12.50", "status": "pending"}
    form.update(overrides)
    return form


class TestInvoiceValidation:
    def test_valid_input(self):
        result = validate_invoice_form(_invoice())
        assert isinstance(result, Success)
        assert result.ok is True
        assert result.data == InvoiceInput(customer_id="c1", amount_cents=1250, status="pending")

    @pytest.mark.parametrize("amount", ["0", "-1", "-0.01", "", None, "0.00"])
    def test_non_positive_amount(self, amount):
        result = validate_invoice_form(_invoice(amount=amount))
        assert isinstance(result, Failure)
        assert result.field_errors == {"amount": [AMOUNT_POSITIVE_MSG]}

    @pytest.mark.parametrize("amount", ["0.004", "0.0049", "1e-9"])
    def test_amount_rounding_to_zero_cents(self, amount):
        result = validate_invoice_form(_invoice(amount=amount))
        assert isinstance(result, Failure)
        assert result.field_errors == {"amount": [AMOUNT_POSITIVE_MSG]}

    def test_amount_rounding_up_to_one_cent(self):
        result = validate_invoice_form(_invoice(amount="0.006"))
        assert isinstance(result, Success)
        assert result.data.amount_cents == 1

    @pytest.mark.parametrize("amount", ["1e308", "21474836.48", "99999999999"])
    def test_amount_beyond_column_range(self, amount):
        result = validate_invoice_form(_invoice(amount=amount))
        assert isinstance(result, Failure)
        assert result.field_errors == {"amount": [AMOUNT_TOO_LARGE_MSG]}

    def test_largest_storable_amount(self):
        result = validate_invoice_form(_invoice(amount="21474836.47"))
        assert isinstance(result, Success)
        assert result.data.amount_cents == 2_147_483_647

    def test_huge_negative_amount(self):
        result = validate_invoice_form(_invoice(amount="-1e308"))
        assert result.field_errors == {"amount": [AMOUNT_POSITIVE_MSG]}

    def test_amount_not_a_number(self):
        result = validate_invoice_form(_invoice(amount="twelve"))
        assert isinstance(result, Failure)
        assert result.field_errors["amount"] == [AMOUNT_NAN_MSG]

    @pytest.mark.parametrize("status", ["", None, "overdue", "PAID", " paid"])
    def test_bad_status(self, status):
        result = validate_invoice_form(_invoice(status=status))
        assert isinstance(result, Failure)
        assert result.field_errors == {"status": [STATUS_MSG]}

    @pytest.mark.parametrize("customer_id", [None, "", "   ", 42])
    def test_missing_customer(self, customer_id):
        result = validate_invoice_form(_invoice(customerId=customer_id))
        assert isinstance(result, Failure)
        assert result.field_errors == {"customerId": [CUSTOMER_REQUIRED_MSG]}

    def test_all_fields_missing_reports_each(self):
        result = validate_invoice_form({})
        assert isinstance(result, Failure)
        assert set(result.field_errors) == {"customerId", "amount", "status"}
        assert result.message == "Missing Fields. Failed to Create Invoice."

    def test_update_summary_message(self):
        result = validate_invoice_form({}, action="Update")
        assert result.message == "Missing Fields. Failed to Update Invoice."

    def test_is_pure(self):
        form = _invoice(amount="-5")
        assert validate_invoice_form(form) == validate_invoice_form(form)
        assert form == _invoice(amount="-5")


class TestRegistrationValidation:
    def test_valid(self):
        result = validate_registration_form({"email": "new@example.com", "password": "hunter2", "name": "Jo"})
        assert isinstance(result, Success)
        assert result.data.email == "new@example.com"

    @pytest.mark.parametrize(
        "form,field",
        [
            ({"email": "not-an-email", "password": "hunter2", "name": "Jo"}, "email"),
            ({"email": "a@b", "password": "hunter2", "name": "Jo"}, "email"),
            ({"email": "new@example.com", "password": "12345", "name": "Jo"}, "password"),
            ({"email": "new@example.com", "password": "hunter2", "name": "J"}, "name"),
            ({"password": "hunter2", "name": "Jo"}, "email"),
        ],
    )
    def test_single_field_failures(self, form, field):
        result = validate_registration_form(form)
        assert isinstance(result, Failure)
        assert list(result.field_errors) == [field]
        assert result.message == REGISTER_FAILED_MSG
