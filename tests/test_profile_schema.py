"""ProfileUpdate request parsing."""

import pytest

from staffdesk.schemas.staff import ProfileUpdate


@pytest.mark.parametrize("value", ["", 0, False, None])
def test_falsy_age_parses_as_not_supplied(value):
    assert ProfileUpdate.model_validate({"age": value}).age is None


def test_falsy_text_fields_parse_as_not_supplied():
    update = ProfileUpdate.model_validate(
        {"fullName": "", "contactNo": 0, "username": False, "currentPassword": ""}
    )
    assert update.full_name is None
    assert update.contact_no is None
    assert update.username is None
    assert not update.wants_password_change


def test_real_values_are_kept():
    update = ProfileUpdate.model_validate({"age": "42", "fullName": "Alice"})
    assert update.age == 42
    assert update.full_name == "Alice"
