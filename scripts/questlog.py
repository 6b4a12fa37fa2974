"""Quest log parsing: locate a quest in party chat and classify its messages.

The chat transcript is free text. Quest boundaries are recognised from the
system messages the service posts when a quest starts and when the party
receives its rewards; everything in between is run through an ordered list
of verb detectors, each a small pure function from text to an ActionRecord.
"""

import re
from decimal import Decimal, InvalidOperation

from models import ActionRecord, ChatMessage, QuestWindow

# ------------------------------------------------------------------ #
#  Errors
# ------------------------------------------------------------------ #
class QuestNotFound(LookupError):
    """No quest start/completion marker in the transcript."""


class ParseError(ValueError):
    """A recognised action message had a missing or malformed number."""


# ------------------------------------------------------------------ #
#  Quest boundaries
# ------------------------------------------------------------------ #
_START_PATTERNS = [
    re.compile(r"Quest\b.*\bStarted"),
    re.compile(r"Your quest, .+, has started"),
]
_COMPLETE_PATTERNS = [
    re.compile(r"receive the rewards"),
    re.compile(r"received their rewards"),  # older phrasing, same event
]
_QUEST_NAME_RE = re.compile(r"quest, (.+?), has ")


def is_quest_start(text: str) -> bool:
    return any(p.search(text) for p in _START_PATTERNS)


def is_quest_complete(text: str) -> bool:
    return any(p.search(text) for p in _COMPLETE_PATTERNS)


def chronological(transcript) -> list[ChatMessage]:
    """Return messages oldest first. The API lists newest first."""
    return sorted(transcript, key=lambda m: m.timestamp)


def extract_window(transcript, history: int = 1) -> QuestWindow:
    """Slice the transcript to one quest.

    history=1 is the most recently completed quest, 2 the one before, etc.
    history=0 is the quest in progress: everything since the latest start.
    Raises QuestNotFound when the needed markers are missing.
    """
    if history < 0:
        raise ValueError(f"history must be >= 0, got {history}")

    messages = chronological(transcript)

    if history == 0:
        starts = [m for m in messages if is_quest_start(m.text)]
        if not starts:
            raise QuestNotFound("No quest start found in chat")
        start = starts[-1]
        window = [m for m in messages if m.timestamp >= start.timestamp]
        return QuestWindow(messages=tuple(window), start=start)

    completions = [m for m in messages if is_quest_complete(m.text)]
    if len(completions) < history:
        raise QuestNotFound(
            f"Only {len(completions)} completed quest(s) in chat, asked for #{history}"
        )
    completion = completions[-history]

    starts = [
        m for m in messages
        if is_quest_start(m.text) and m.timestamp < completion.timestamp
    ]
    if not starts:
        raise QuestNotFound("No quest start found before the completion message")
    start = starts[-1]

    window = [
        m for m in messages
        if start.timestamp <= m.timestamp <= completion.timestamp
    ]
    return QuestWindow(messages=tuple(window), start=start, completion=completion)


def quest_name(window: QuestWindow, default: str = "Quest") -> str:
    """Pull the quest name out of the boundary messages ('Your quest, X, has ...')."""
    for msg in (window.completion, window.start):
        if msg is None:
            continue
        m = _QUEST_NAME_RE.search(_strip_formatting(msg.text))
        if m:
            return m.group(1).strip()
    return default


# ------------------------------------------------------------------ #
#  Action classification
# ------------------------------------------------------------------ #
_CAST_RE = re.compile(r"^(?P<user>.+?) casts (?P<rest>.+)$")
_ATTACK_RE = re.compile(r"^(?P<user>.+?) attacks (?P<target>.+?) for (?P<tail>.*)$")
_DAMAGE_RE = re.compile(r"(\S+) damage")
_FOUND_RE = re.compile(r"^(?P<user>.+?) found (?P<amount>\S+) (?P<item>.+)$")


def _strip_formatting(text: str) -> str:
    return text.replace("`", "").strip()


def _parse_number(raw: str, field: str, text: str) -> Decimal:
    # Exact decimals so equal totals compare equal
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite():
        raise ParseError(f"Bad {field} {raw!r} in: {text}")
    return value


def _detect_cast(text: str, timestamp: int) -> ActionRecord | None:
    if "casts" not in text:
        return None
    m = _CAST_RE.match(text)
    if not m:
        return None
    target = m.group("rest")
    target = target.split(" for the party.")[0]
    target = target.split(" on ")[0]
    target = target.rstrip(".!").strip()
    return ActionRecord(
        user=m.group("user").strip(),
        verb="casts",
        target=target,
        timestamp=timestamp,
    )


def _detect_attack(text: str, timestamp: int) -> ActionRecord | None:
    if "attacks" not in text:
        return None
    m = _ATTACK_RE.match(text)
    if not m:
        return None
    # Damage to the target, then damage to the party, in order of appearance
    amounts = _DAMAGE_RE.findall(m.group("tail"))
    if not amounts:
        raise ParseError(f"No damage amount in: {text}")
    damage = _parse_number(amounts[0], "damage", text)
    party_damage = _parse_number(amounts[1], "party damage", text) if len(amounts) > 1 else None
    return ActionRecord(
        user=m.group("user").strip(),
        verb="attacks",
        target=m.group("target").strip(),
        timestamp=timestamp,
        damage=damage,
        party_damage=party_damage,
    )


def _detect_find(text: str, timestamp: int) -> ActionRecord | None:
    if "found" not in text:
        return None
    m = _FOUND_RE.match(text)
    if not m:
        return None
    amount = _parse_number(m.group("amount"), "item count", text)
    item = m.group("item").rstrip(".!").strip()
    return ActionRecord(
        user=m.group("user").strip(),
        verb="found",
        target=item,
        timestamp=timestamp,
        damage=amount,
    )


_DETECTORS = [_detect_cast, _detect_attack, _detect_find]


def classify_message(message: ChatMessage) -> list[ActionRecord]:
    """Run every detector over one message. Raises ParseError on bad numbers."""
    text = _strip_formatting(message.text)
    records = []
    for detect in _DETECTORS:
        record = detect(text, message.timestamp)
        if record is not None:
            records.append(record)
    return records


def classify(message: ChatMessage) -> ActionRecord | None:
    """Return the first action found in message, or None."""
    records = classify_message(message)
    return records[0] if records else None


def classify_window(window: QuestWindow) -> list[ActionRecord]:
    """Classify every message in the window, skipping ones that fail to parse."""
    records = []
    for msg in window.messages:
        try:
            records.extend(classify_message(msg))
        except ParseError as e:
            print(f"Warning: skipping unparseable message: {e}")
    return records
