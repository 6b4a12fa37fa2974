"""Duplicate-post checks against messages already in chat or in the inbox."""

from models import ChatMessage


def last_posted(transcript, marker: str) -> ChatMessage | None:
    """Most recent message whose text contains marker, or None."""
    matches = [m for m in transcript if marker in m.text]
    if not matches:
        return None
    return max(matches, key=lambda m: m.timestamp)


def report_needed(transcript, records, header: str) -> bool:
    """True unless a report was already posted after the window's latest action."""
    previous = last_posted(transcript, header)
    if previous is None:
        return True
    records = list(records)
    if not records:
        return False
    latest = max(r.timestamp for r in records)
    return previous.timestamp < latest


def escalation_already_sent(inbox, text: str, since_ms: int) -> bool:
    """True if an identical message reached the inbox at or after since_ms."""
    return any(m.text == text and m.timestamp >= since_ms for m in inbox)
