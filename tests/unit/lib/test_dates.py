from datetime import date, datetime

import pytest

from cadence.core.errors import ValidationError
from cadence.lib.dates import (
    add_days,
    days_between,
    format_date,
    parse_date,
    parse_date_arg,
    parse_weekday,
    week_dates,
    week_start_for,
    weekday_index,
)


def test_format_date_zero_pads():
    assert format_date(date(2024, 3, 5)) == "2024-03-05"


def test_format_date_uses_local_fields_of_datetime():
    assert format_date(datetime(2024, 1, 5, 23, 30)) == "2024-01-05"


def test_format_date_accepts_valid_string():
    assert format_date("2024-01-05") == "2024-01-05"


@pytest.mark.parametrize("bad", ["2024-1-5", "05-01-2024", "2024-02-30", "", "tomorrow"])
def test_parse_date_rejects_malformed(bad):
    with pytest.raises(ValidationError):
        parse_date(bad)


def test_days_between_simple():
    assert days_between("2024-01-01", "2024-01-10") == 9


def test_days_between_negative():
    assert days_between("2024-01-02", "2024-01-01") == -1


def test_days_between_across_dst_change():
    assert days_between("2024-03-09", "2024-03-11") == 2
    assert days_between("2024-10-26", "2024-10-28") == 2


def test_days_between_across_year():
    assert days_between("2023-12-31", "2024-01-01") == 1


def test_add_days_rolls_over_month_and_year():
    assert add_days("2024-02-28", 1) == "2024-02-29"
    assert add_days("2024-12-31", 1) == "2025-01-01"
    assert add_days("2024-03-01", -1) == "2024-02-29"


def test_weekday_index_sunday_is_zero():
    assert weekday_index("2024-01-07") == 0
    assert weekday_index("2024-01-01") == 1
    assert weekday_index("2024-01-06") == 6


def test_week_dates_seven_consecutive():
    assert week_dates("2024-01-29") == [
        "2024-01-29",
        "2024-01-30",
        "2024-01-31",
        "2024-02-01",
        "2024-02-02",
        "2024-02-03",
        "2024-02-04",
    ]


def test_week_start_for():
    assert week_start_for("2024-01-10") == "2024-01-07"
    assert week_start_for("2024-01-10", "monday") == "2024-01-08"
    assert week_start_for("2024-01-07", "monday") == "2024-01-01"


def test_parse_weekday_names_and_indices():
    assert parse_weekday("mon") == 1
    assert parse_weekday("Sunday") == 0
    assert parse_weekday("6") == 6
    with pytest.raises(ValidationError):
        parse_weekday("7")
    with pytest.raises(ValidationError):
        parse_weekday("someday")


def test_parse_date_arg_relative(freeze):
    freeze("2024-01-10T09:00:00")
    assert parse_date_arg(None) == "2024-01-10"
    assert parse_date_arg("today") == "2024-01-10"
    assert parse_date_arg("yesterday") == "2024-01-09"
    assert parse_date_arg("tomorrow") == "2024-01-11"


def test_parse_date_arg_weekday_is_most_recent(freeze):
    freeze("2024-01-10T09:00:00")
    assert parse_date_arg("mon") == "2024-01-08"
    assert parse_date_arg("wed") == "2024-01-10"
    assert parse_date_arg("thursday") == "2024-01-04"


def test_parse_date_arg_free_text(freeze):
    freeze("2024-01-10T09:00:00")
    assert parse_date_arg("2024-02-03") == "2024-02-03"
    assert parse_date_arg("Jan 3") == "2024-01-03"


def test_parse_date_arg_garbage(freeze):
    freeze("2024-01-10T09:00:00")
    with pytest.raises(ValidationError):
        parse_date_arg("gibberish")
