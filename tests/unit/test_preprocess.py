"""
Unit tests for id parsing helpers.
"""

import pytest
from bson import ObjectId

from content_engine.data.preprocess import parse_id_list, parse_object_id
from content_engine.errors import ValidationError

VALID = "65a1f0c2e4b0a1b2c3d4e5f6"
OTHER = "65a1f0c2e4b0a1b2c3d4e5f7"


class TestParseObjectId:
    def test_valid_hex(self):
        assert parse_object_id(VALID) == ObjectId(VALID)

    def test_surrounding_whitespace_and_case(self):
        assert parse_object_id(f"  {VALID.upper()} ") == ObjectId(VALID)

    def test_object_id_passthrough(self):
        oid = ObjectId(VALID)
        assert parse_object_id(oid) is oid

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing(self, value):
        with pytest.raises(ValidationError, match="userId is required"):
            parse_object_id(value, "userId")

    @pytest.mark.parametrize("value", ["abc", "zzzzzzzzzzzzzzzzzzzzzzzz", VALID + "0"])
    def test_invalid_format(self, value):
        with pytest.raises(ValidationError, match="Invalid capsuleId"):
            parse_object_id(value, "capsuleId")


class TestParseIdList:
    def test_none_and_empty(self):
        assert parse_id_list(None) == []
        assert parse_id_list("") == []

    def test_comma_separated_with_blanks(self):
        assert parse_id_list(f"{VALID},,{OTHER},") == [ObjectId(VALID), ObjectId(OTHER)]

    def test_duplicates_removed_first_seen_order(self):
        assert parse_id_list([OTHER, VALID, OTHER]) == [ObjectId(OTHER), ObjectId(VALID)]

    def test_one_bad_id_rejects_the_list(self):
        with pytest.raises(ValidationError):
            parse_id_list(f"{VALID},nope", "intentId")
