"""Unit tests for Datetime Helpers (src/utils/datetime_helpers.py)"""
import pytest
from datetime import datetime, date, timezone

from src.exceptions import ValidationError
from src.utils.datetime_helpers import (
    now_utc,
    utc_today,
    parse_log_date,
    parse_date_filter,
)


TODAY = date(2025, 3, 10)


# ============================================================================
# UTC Time Tests
# ============================================================================

def test_now_utc_returns_utc_time():
    """Test that now_utc returns UTC datetime"""
    result = now_utc()

    assert result.tzinfo == timezone.utc
    assert isinstance(result, datetime)


def test_utc_today_matches_utc_date():
    """Test that the server date is the UTC calendar date"""
    before = datetime.now(timezone.utc).date()
    result = utc_today()
    after = datetime.now(timezone.utc).date()

    assert before <= result <= after


# ============================================================================
# Completion Date Parsing
# ============================================================================

@pytest.mark.parametrize("value,expected", [
    (None, TODAY),
    ("", TODAY),
    ("2025-03-01", date(2025, 3, 1)),
    (" 2025-03-01 ", date(2025, 3, 1)),
    ("2025-03-01T23:15:00", date(2025, 3, 1)),
    (date(2025, 2, 14), date(2025, 2, 14)),
    (datetime(2025, 2, 14, 9, 30), date(2025, 2, 14)),
    ("2025-04-01", date(2025, 4, 1)),  # future dates are accepted
])
def test_parse_log_date(value, expected):
    """Test accepted completion date formats"""
    assert parse_log_date(value, TODAY) == expected


@pytest.mark.parametrize("value", ["yesterday", "2025-13-01", "2025-02-30", "03/01/2025"])
def test_parse_log_date_invalid_falls_back(value, caplog):
    """Test invalid completion dates mean today"""
    with caplog.at_level("WARNING"):
        assert parse_log_date(value, TODAY) == TODAY

    assert "Ignoring invalid log date" in caplog.text


# ============================================================================
# Filter Parsing
# ============================================================================

def test_parse_date_filter_valid():
    """Test strict YYYY-MM-DD filters"""
    assert parse_date_filter("2025-03-01", "start_date") == date(2025, 3, 1)


@pytest.mark.parametrize("value", [None, ""])
def test_parse_date_filter_missing(value):
    """Test missing filters are None"""
    assert parse_date_filter(value, "end_date") is None


@pytest.mark.parametrize("value", ["2025-3-1", "2025-03-01T00:00:00", "03/01/2025", "2025-02-30"])
def test_parse_date_filter_invalid(value):
    """Test anything but a real YYYY-MM-DD date is rejected"""
    with pytest.raises(ValidationError) as exc_info:
        parse_date_filter(value, "start_date")

    assert exc_info.value.field == "start_date"
