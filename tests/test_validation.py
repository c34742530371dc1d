import pytest

from findocs.core.errors import ValidationError
from findocs.schemas.submission_schema import parse_submission_form
from tests.fakes import VALID_FORM


def form(**overrides):
    data = dict(VALID_FORM)
    data.update(overrides)
    return data


def test_valid_form_is_normalized():
    parsed = parse_submission_form(form(customerName="  John Doe  ", vehicleNumber="mh 12 ab 1234"))

    assert parsed.customer_name == "John Doe"
    assert parsed.vehicle_number == "MH12AB1234"
    assert parsed.mobile_number == "9876543210"
    assert parsed.bank_name == "State Bank"


@pytest.mark.parametrize("mobile", ["9876543210", "6000000000", "7123456789"])
def test_mobile_numbers_accepted(mobile):
    assert parse_submission_form(form(mobileNumber=mobile)).mobile_number == mobile


@pytest.mark.parametrize("mobile", ["1234567890", "5876543210", "98765", "98765432100", "98765abcde", "+919876543210"])
def test_mobile_numbers_rejected(mobile):
    with pytest.raises(ValidationError) as exc_info:
        parse_submission_form(form(mobileNumber=mobile))

    assert list(exc_info.value.field_errors) == ["mobileNumber"]
    assert "Invalid Indian mobile number" in exc_info.value.field_errors["mobileNumber"][0]


@pytest.mark.parametrize("vehicle, expected", [
    ("MH12AB1234", "MH12AB1234"),
    ("ka01 ab 0001", "KA01AB0001"),
    ("DL1C1234", "DL1C1234"),
    ("TN9ABC9999", "TN9ABC9999"),
    ("HR260000", "HR260000"),
])
def test_vehicle_numbers_accepted(vehicle, expected):
    assert parse_submission_form(form(vehicleNumber=vehicle)).vehicle_number == expected


@pytest.mark.parametrize("vehicle", ["MH1ABCDE1234", "MH12ABCD1234", "12MH1234", "MH12AB123", "M12AB1234", "MH-12-AB-1234"])
def test_vehicle_numbers_rejected(vehicle):
    with pytest.raises(ValidationError) as exc_info:
        parse_submission_form(form(vehicleNumber=vehicle))

    assert exc_info.value.field_errors["vehicleNumber"] == ["Invalid Indian vehicle number format (e.g., MH12AB1234)"]


def test_short_and_long_names_rejected():
    with pytest.raises(ValidationError) as exc_info:
        parse_submission_form(form(customerName=" J ", bankName="B" * 101))

    errors = exc_info.value.field_errors
    assert errors["customerName"] == ["Customer name must be at least 2 characters"]
    assert errors["bankName"] == ["Bank name must be less than 100 characters"]


def test_missing_fields_are_reported_by_form_name():
    with pytest.raises(ValidationError) as exc_info:
        parse_submission_form({"customerName": "John Doe", "mobileNumber": None})

    errors = exc_info.value.field_errors
    assert set(errors) == {"mobileNumber", "vehicleNumber", "bankName"}
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Validation failed"
