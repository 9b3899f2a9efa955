"""
Unit tests for the pagination helper and the response envelope.
"""

import pytest

from dental_clinic.errors import ValidationError
from dental_clinic.pagination import skip_take
from dental_clinic.responses import message_response


class TestSkipTake:
    """limit/page -> (skip, take)."""

    def test_page_times_limit(self):
        assert skip_take("10", "2") == (20, 10)

    def test_page_defaults_to_zero(self):
        assert skip_take("5") == (0, 5)
        assert skip_take("5", "") == (0, 5)

    def test_accepts_integers(self):
        assert skip_take(3, 1) == (3, 3)

    @pytest.mark.parametrize("limit", [None, ""])
    def test_missing_limit(self, limit):
        with pytest.raises(ValidationError) as exc:
            skip_take(limit, "0")
        assert exc.value.message == "limit is required"
        assert exc.value.status_code == 400

    def test_limit_is_capped(self):
        skip, take = skip_take("1000", "2", max_limit=100)
        assert take == 100
        assert skip == 200

    def test_non_numeric_values(self):
        with pytest.raises(ValidationError, match="limit must be a number"):
            skip_take("ten")
        with pytest.raises(ValidationError, match="page must be a number"):
            skip_take("10", "first")

    def test_negative_values(self):
        with pytest.raises(ValidationError, match="page must not be negative"):
            skip_take("10", "-1")


class TestMessageResponse:
    """Envelope shape for success and error payloads."""

    def test_data_payload(self):
        assert message_response(200, {"list": [], "total": 0}) == {
            "status": 200,
            "data": {"list": [], "total": 0},
        }

    def test_list_payload(self):
        assert message_response(200, [{"id": 1}]) == {"status": 200, "data": [{"id": 1}]}

    def test_message_payload(self):
        assert message_response(400, "Room is not exist") == {"status": 400, "message": "Room is not exist"}
