"""Tests for helpers.py utilities."""

import json
from datetime import datetime, timezone, timedelta
from decimal import Decimal

import helpers


def _utc(*args):
    """Shorthand for timezone-aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


# ------------------------------------------------------------------ #
#  Timestamp conversion
# ------------------------------------------------------------------ #
def test_ms_to_datetime_utc():
    assert helpers.ms_to_datetime(0, timezone.utc) == _utc(1970, 1, 1)
    assert helpers.ms_to_datetime(1_500, timezone.utc) == _utc(1970, 1, 1, 0, 0, 1, 500000)


def test_ms_to_datetime_local_is_naive():
    dt = helpers.ms_to_datetime(1_700_000_000_000)
    assert dt.tzinfo is None
    assert helpers.datetime_to_ms(dt) == 1_700_000_000_000


def test_datetime_to_ms_aware():
    assert helpers.datetime_to_ms(_utc(2026, 1, 1)) == 1_767_225_600_000


def test_to_ms_accepts_ints_and_iso_strings():
    assert helpers.to_ms(1234) == 1234
    assert helpers.to_ms("1234") == 1234
    assert helpers.to_ms("2026-01-01T00:00:00.000Z") == 1_767_225_600_000
    assert helpers.to_ms("2026-01-01T00:00:00") == 1_767_225_600_000


def test_hours_since():
    now = _utc(2026, 1, 10, 12, 0)
    then = _utc(2026, 1, 10, 6, 30)
    assert abs(helpers.hours_since(now, then) - 5.5) < 0.001


# ------------------------------------------------------------------ #
#  Formatting
# ------------------------------------------------------------------ #
def test_fmt_duration():
    span = timedelta(days=1, hours=2, minutes=5, seconds=40)
    ms = int(span.total_seconds() * 1000)
    assert helpers.fmt_duration(ms) == "1 day, 2 hours, 5 minutes"


def test_fmt_duration_zero():
    assert helpers.fmt_duration(100) == "0 days, 0 hours, 0 minutes"


def test_fmt_amount():
    assert helpers.fmt_amount(10.0) == "10"
    assert helpers.fmt_amount(12.34) == "12.3"
    assert helpers.fmt_amount(0.1 + 0.2) == "0.3"
    assert helpers.fmt_amount(Decimal("30.3")) == "30.3"
    assert helpers.fmt_amount(Decimal("10.0")) == "10"
    assert helpers.fmt_amount(Decimal("1.25")) == "1.3"


def test_join_names():
    assert helpers.join_names(["Alice"]) == "Alice"
    assert helpers.join_names(["Alice", "Bob"]) == "Alice and Bob"
    assert helpers.join_names(["Alice", "Bob", "Carol"]) == "Alice, Bob and Carol"


def test_plural():
    assert helpers.plural(1, "hour") == "1 hour"
    assert helpers.plural(3, "hour") == "3 hours"


# ------------------------------------------------------------------ #
#  Config
# ------------------------------------------------------------------ #
def test_load_settings_defaults():
    s = helpers.load_settings({})
    assert s["report_header"] == "Quest Stats"
    assert s["pending_quest_timer_hours"] == 24
    assert s["report_history"] == 1
    assert s["healing_spells"] == helpers.HEALING_SPELLS


def test_load_settings_overrides():
    s = helpers.load_settings({"settings": {"report_header": "Loot Log", "pending_quest_timer_hours": 12}})
    assert s["report_header"] == "Loot Log"
    assert s["pending_quest_timer_hours"] == 12


def test_load_settings_relative_queue_path():
    s = helpers.load_settings({"settings": {"queue_path": "data/q.json"}})
    assert s["queue_path"] == str(helpers.CONFIG_PATH.parent / "data" / "q.json")


def test_load_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"group_id": "abc"}))
    assert helpers.load_config(path) == {"group_id": "abc"}


def test_load_credentials():
    creds = helpers.load_credentials({"HABITICA_USER_ID": "u", "HABITICA_API_TOKEN": "t"})
    assert creds == {"user_id": "u", "api_token": "t"}


def test_validate_config_valid():
    assert helpers.validate_config({"group_id": "party", "settings": {"pending_quest_timer_hours": 24}}) == []


def test_validate_config_bad_timer():
    issues = helpers.validate_config({"settings": {"pending_quest_timer_hours": 0}})
    assert any(i.startswith("ERROR:") and "pending_quest_timer_hours" in i for i in issues)


def test_validate_config_bad_history():
    issues = helpers.validate_config({"settings": {"report_history": -1}})
    assert any("report_history" in i for i in issues)


def test_validate_config_same_headers():
    issues = helpers.validate_config({"settings": {"report_header": "X", "pending_header": "X"}})
    assert any("must differ" in i for i in issues)


def test_validate_config_unknown_setting_warns():
    issues = helpers.validate_config({"settings": {"colour": "blue"}})
    assert issues == ["WARNING: Unknown setting 'colour' will be ignored"]
