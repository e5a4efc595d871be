import pytest
from bson import ObjectId

from schemas import Enquiry, parse_model
from validation import (
    ValidationError,
    is_valid_email,
    is_valid_phone,
    parse_object_id,
    validate_required_fields,
)


@pytest.mark.parametrize("email", ["a@b.co", "student.name+tag@mail.example.org"])
def test_valid_emails(email):
    assert is_valid_email(email)


@pytest.mark.parametrize("email", ["foo@bar", "no-at-sign.com", "two words@x.io", "a@b.c\n", "", None])
def test_invalid_emails(email):
    assert not is_valid_email(email)


@pytest.mark.parametrize("phone", ["+1 (555) 123-4567", "9876543210", "+91 98765-43210"])
def test_valid_phones(phone):
    assert is_valid_phone(phone)


@pytest.mark.parametrize("phone", ["abc123", "555.123.4567", "12#34", ""])
def test_invalid_phones(phone):
    assert not is_valid_phone(phone)


def test_required_fields_lists_every_missing_field():
    with pytest.raises(ValidationError) as exc:
        validate_required_fields({"name": "Asha", "email": "  ", "city": None}, ["name", "email", "phone", "city"])
    assert exc.value.status_code == 400
    assert exc.value.details == {"missing_fields": ["email", "phone", "city"]}
    assert "email, phone, city" in exc.value.message


def test_required_fields_pass():
    validate_required_fields({"name": "Asha", "count": 0}, ["name", "count"])


def test_parse_object_id():
    oid = ObjectId()
    assert parse_object_id(str(oid)) == oid
    with pytest.raises(ValidationError, match="Invalid enquiry ID"):
        parse_object_id("not-an-id", "enquiry")


def test_parse_model_reports_field():
    with pytest.raises(ValidationError) as exc:
        parse_model(Enquiry, {"name": "A", "email": "a@b.co", "phone": "1", "city": "X", "interest": "mba"})
    assert exc.value.details["errors"][0]["field"] == "interest"


def test_enquiry_schema_trims_and_lowercases():
    e = Enquiry(name="  Asha  ", email=" Asha@Mail.COM ", phone=" 123 ", city=" Pune ", interest="mbbs-abroad")
    assert (e.name, e.email, e.phone, e.city) == ("Asha", "asha@mail.com", "123", "Pune")
    assert e.message == ""
    assert e.status == "pending"
