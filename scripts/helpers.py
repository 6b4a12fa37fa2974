"""Shared utilities, constants, and config loading."""

import json
import os
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

# ------------------------------------------------------------------ #
#  Paths
# ------------------------------------------------------------------ #
CONFIG_PATH = Path(__file__).parent.parent / "config.json"
QUEUE_PATH = Path(__file__).parent.parent / "data" / "quest_queue.json"

# ------------------------------------------------------------------ #
#  Tunable settings (defaults, overridden by config.json settings block)
# ------------------------------------------------------------------ #
REPORT_HEADER = "Quest Stats"
PENDING_HEADER = "Quest Pending"
PENDING_QUEST_TIMER_HOURS = 24
REPORT_HISTORY = 1

# Party buff spells per support award, by the name shown in chat
RESILIENT_SPELLS = ["Protective Aura", "Intimidating Glare"]
HEALING_SPELLS = ["Blessing", "Healing Light"]
REFRESHING_SPELLS = ["Ethereal Surge"]
WISE_SPELLS = ["Earthquake"]
CRAFTY_SPELLS = ["Tools of the Trade"]
INSPIRING_SPELLS = ["Valorous Presence"]

_SETTING_DEFAULTS = {
    "report_header": REPORT_HEADER,
    "pending_header": PENDING_HEADER,
    "pending_quest_timer_hours": PENDING_QUEST_TIMER_HOURS,
    "report_history": REPORT_HISTORY,
    "queue_path": str(QUEUE_PATH),
    "resilient_spells": RESILIENT_SPELLS,
    "healing_spells": HEALING_SPELLS,
    "refreshing_spells": REFRESHING_SPELLS,
    "wise_spells": WISE_SPELLS,
    "crafty_spells": CRAFTY_SPELLS,
    "inspiring_spells": INSPIRING_SPELLS,
}


# ------------------------------------------------------------------ #
#  Config loading
# ------------------------------------------------------------------ #
def load_config(path: Path | None = None) -> dict:
    with open(path or CONFIG_PATH) as f:
        return json.load(f)


def load_settings(config: dict) -> dict:
    """Return the settings block of config with defaults for any missing keys."""
    s = config.get("settings", {})
    settings = {key: s.get(key, default) for key, default in _SETTING_DEFAULTS.items()}

    # Relative queue paths are relative to the repo root, not the cwd
    queue_path = Path(settings["queue_path"])
    if not queue_path.is_absolute():
        settings["queue_path"] = str(CONFIG_PATH.parent / queue_path)
    return settings


def load_credentials(env=None) -> dict:
    """Read Habitica API credentials from the environment."""
    env = os.environ if env is None else env
    return {
        "user_id": env.get("HABITICA_USER_ID", ""),
        "api_token": env.get("HABITICA_API_TOKEN", ""),
    }


def validate_config(config: dict) -> list[str]:
    """Sanity-check config. Returns a list of 'ERROR: ...' / 'WARNING: ...' strings."""
    issues = []
    group_id = config.get("group_id", "party")
    if not isinstance(group_id, str) or not group_id:
        issues.append(f"ERROR: group_id must be a non-empty string, got {group_id!r}")

    s = config.get("settings", {})
    unknown = set(s) - set(_SETTING_DEFAULTS)
    for key in sorted(unknown):
        issues.append(f"WARNING: Unknown setting '{key}' will be ignored")

    timer = s.get("pending_quest_timer_hours", PENDING_QUEST_TIMER_HOURS)
    if not isinstance(timer, (int, float)) or timer <= 0:
        issues.append(f"ERROR: pending_quest_timer_hours must be a positive number, got {timer!r}")

    history = s.get("report_history", REPORT_HISTORY)
    if not isinstance(history, int) or history < 0:
        issues.append(f"ERROR: report_history must be an integer >= 0, got {history!r}")

    for key in ("report_header", "pending_header"):
        if key in s and not str(s[key]).strip():
            issues.append(f"ERROR: {key} must not be empty")

    if s.get("report_header") and s.get("report_header") == s.get("pending_header"):
        issues.append("ERROR: report_header and pending_header must differ")

    return issues


# ------------------------------------------------------------------ #
#  Timestamp conversion (the API speaks milliseconds since epoch)
# ------------------------------------------------------------------ #
def ms_to_datetime(ms: int, tz=None) -> datetime:
    """Convert epoch milliseconds to a datetime. Local wall-clock time unless tz is given."""
    if tz is None:
        return datetime.fromtimestamp(ms / 1000)
    return datetime.fromtimestamp(ms / 1000, tz)


def datetime_to_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are read as local time."""
    return int(round(dt.timestamp() * 1000))


def to_ms(value) -> int:
    """Normalise an API timestamp (epoch ms or ISO-8601 string) to epoch ms."""
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        if value.isdigit():
            return int(value)
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return datetime_to_ms(dt)
    raise ValueError(f"Unsupported timestamp: {value!r}")


def hours_since(now: datetime, then: datetime) -> float:
    """Hours elapsed between then and now."""
    return (now - then).total_seconds() / 3600


# ------------------------------------------------------------------ #
#  Formatting helpers
# ------------------------------------------------------------------ #
def plural(n: int, word: str) -> str:
    """Return '1 day' or 'N days'."""
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def fmt_duration(ms: int) -> str:
    """Render a millisecond span as '1 day, 2 hours, 5 minutes'."""
    minutes_total = max(0, ms) // 60000
    days, rem = divmod(minutes_total, 1440)
    hours, minutes = divmod(rem, 60)
    return f"{plural(days, 'day')}, {plural(hours, 'hour')}, {plural(minutes, 'minute')}"


def fmt_amount(value) -> str:
    """Render a damage/item total: whole numbers bare, otherwise one decimal."""
    rounded = Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    if rounded == rounded.to_integral_value():
        return str(int(rounded))
    return str(rounded)


def join_names(names) -> str:
    """Join names as 'A', 'A and B' or 'A, B and C'."""
    names = list(names)
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]
