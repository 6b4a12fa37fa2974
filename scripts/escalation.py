"""Pending-quest detection and the escalation decision.

A quest is pending once invitations have gone out but nobody has started it.
Each run picks one step: do nothing, post a chat notice, or (after the timer
runs out) try to force-start the quest. A failed force-start is followed by a
private escalation message, handled by the caller.
"""

from datetime import datetime

from helpers import hours_since, ms_to_datetime

NONE = "none"
PENDING = "pending"
ACTIVE = "active"

NOOP = "noop"
POST_NOTICE = "post_notice"
ATTEMPT_START = "attempt_start"
STARTED = "started"
ESCALATED = "escalated"

# Hourly cron runs drift by a few minutes
TIMER_EPSILON_HOURS = 0.1


def quest_status(group: dict) -> str:
    quest = group.get("quest") or {}
    if quest.get("active"):
        return ACTIVE
    if quest.get("key"):
        return PENDING
    return NONE


def next_step(status: str, notice_ms: int | None, now: datetime, timer_hours: float) -> str:
    """Pick the step for this run.

    notice_ms is the timestamp of the latest notice posted since the previous
    quest ended, or None if there is none yet.
    The start is attempted once more than timer_hours have passed since the
    notice, less a small allowance for cron drift.
    """
    if status != PENDING:
        return NOOP
    if notice_ms is None:
        return POST_NOTICE
    elapsed = hours_since(now, ms_to_datetime(notice_ms, now.tzinfo))
    if elapsed > timer_hours - TIMER_EPSILON_HOURS:
        return ATTEMPT_START
    return NOOP


def leader_ids(group: dict) -> list[str]:
    """Quest leader then party leader, without duplicates."""
    ids = []
    quest_leader = (group.get("quest") or {}).get("leader")
    party_leader = group.get("leader")
    if isinstance(party_leader, dict):
        party_leader = party_leader.get("_id") or party_leader.get("id")
    for uid in (quest_leader, party_leader):
        if uid and uid not in ids:
            ids.append(uid)
    return ids
