import pytest

from app.exceptions import InvalidInputError
from app.models import Mode
from app.validation import validate_letter_request


def test_valid_request_normalizes_fields() -> None:
    request = validate_letter_request(
        {"text": "  Mijn pakket is niet geleverd.  ", "type": "response", "additionalInfo": "  order 12 "},
        max_text_length=7000,
    )

    assert request.text == "Mijn pakket is niet geleverd."
    assert request.mode is Mode.RESPONSE
    assert request.additional_context == "order 12"


def test_missing_context_becomes_empty_string() -> None:
    request = validate_letter_request({"text": "brief", "type": "rewrite"}, max_text_length=100)

    assert request.additional_context == ""


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "rewrite"},
        {"text": "   ", "type": "rewrite"},
        {"text": 42, "type": "rewrite"},
        None,
        ["text"],
    ],
)
def test_text_must_be_present(raw) -> None:
    with pytest.raises(InvalidInputError) as exc:
        validate_letter_request(raw, max_text_length=100)

    assert exc.value.status_code == 400


def test_text_length_limit_states_the_limit() -> None:
    with pytest.raises(InvalidInputError) as exc:
        validate_letter_request({"text": "a" * 11, "type": "rewrite"}, max_text_length=10)

    assert "10" in exc.value.message


@pytest.mark.parametrize("mode", ["Rewrite", "summary", "", None, 1])
def test_unknown_mode_rejected(mode) -> None:
    with pytest.raises(InvalidInputError) as exc:
        validate_letter_request({"text": "brief", "type": mode}, max_text_length=100)

    assert "rewrite" in exc.value.message


def test_length_checked_before_mode() -> None:
    with pytest.raises(InvalidInputError) as exc:
        validate_letter_request({"text": "a" * 20, "type": "nope"}, max_text_length=10)

    assert "karakters" in exc.value.message


def test_non_string_context_rejected() -> None:
    with pytest.raises(InvalidInputError):
        validate_letter_request(
            {"text": "brief", "type": "rewrite", "additionalInfo": {"x": 1}}, max_text_length=100
        )
