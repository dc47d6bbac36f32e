import pytest

from app.errors import ValidationError
from app.utils.form_validator import (
    parse_security_answers,
    validate_create_organization_form,
    validate_verification_proof,
)


def test_security_answers_are_typed():
    answers = parse_security_answers('{"purchase_date": "2025-02-01", "specific_details": "dent on the lid"}')

    assert answers.purchase_date == "2025-02-01"
    assert answers.purchase_location is None
    assert answers.specific_details == "dent on the lid"


@pytest.mark.parametrize("raw", ['{"favourite_colour": "blue"}', "[1, 2]", "not json"])
def test_security_answers_reject_unknown_shapes(raw):
    with pytest.raises(ValidationError):
        parse_security_answers(raw)


def test_empty_security_answers():
    assert parse_security_answers(None) is None
    assert parse_security_answers("") is None


def test_proof_blank_text_becomes_none():
    proof = validate_verification_proof(identification_marks="   ", claimant_phone="")

    assert proof.identification_marks is None
    assert proof.claimant_phone is None
    assert proof.photo_with_item_urls == []


def test_organization_needs_valid_email():
    with pytest.raises(ValidationError, match="contact_email"):
        validate_create_organization_form(
            name="Forum Mall",
            type="mall",
            address="Koramangala",
            city="Bangalore",
            contact_email="not-an-email",
            contact_phone="0801234567",
        )
