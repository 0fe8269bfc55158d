import uuid

import pytest

from app.exceptions import InvalidIdentifier
from app.utils.identifiers import parse_identifier


def test_parse_identifier_accepts_canonical_uuid():
    value = uuid.uuid4()
    assert parse_identifier(str(value)) == value


def test_parse_identifier_is_case_insensitive():
    value = uuid.uuid4()
    assert parse_identifier(str(value).upper()) == value


def test_parse_identifier_passes_uuid_through():
    value = uuid.uuid4()
    assert parse_identifier(value) is value


@pytest.mark.parametrize("raw", ["", "   ", None, "not-an-id", "12345"])
def test_parse_identifier_rejects_malformed_values(raw):
    with pytest.raises(InvalidIdentifier) as exc_info:
        parse_identifier(raw, "subTodo")
    assert "subTodo" in exc_info.value.message
    assert exc_info.value.status_code == 400
