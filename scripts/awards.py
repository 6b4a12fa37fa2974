"""Award engine and report formatting for a classified quest window."""

from collections import defaultdict
from decimal import Decimal

import helpers
from helpers import fmt_amount, fmt_duration, join_names
from models import ActionRecord, AwardResult, QuestWindow
from questlog import quest_name


# ------------------------------------------------------------------ #
#  Aggregation
# ------------------------------------------------------------------ #
def top_users(records) -> set[str]:
    """Users with the most records; every user tied at the maximum is returned."""
    counts = defaultdict(int)
    for r in records:
        counts[r.user] += 1
    if not counts:
        return set()
    best = max(counts.values())
    return {user for user, n in counts.items() if n == best}


def sum_by_user(records, field: str) -> dict[str, Decimal]:
    """Sum a numeric ActionRecord field per user. Records without the field are skipped."""
    totals = defaultdict(Decimal)
    for r in records:
        value = getattr(r, field)
        if value is None:
            continue
        totals[r.user] += value
    return dict(totals)


def _leaders(totals: dict) -> tuple[tuple, Decimal] | None:
    """Return (sorted winners, winning value) for a user -> value mapping."""
    if not totals:
        return None
    best = max(totals.values())
    winners = tuple(sorted(user for user, v in totals.items() if v == best))
    return winners, best


def _count_by_user(records) -> dict[str, int]:
    counts = defaultdict(int)
    for r in records:
        counts[r.user] += 1
    return dict(counts)


# ------------------------------------------------------------------ #
#  Award categories
# ------------------------------------------------------------------ #
def _attacks(records) -> list[ActionRecord]:
    return [r for r in records if r.verb == "attacks"]


def most_brutal(records) -> AwardResult | None:
    result = _leaders(sum_by_user(_attacks(records), "damage"))
    if not result:
        return None
    return AwardResult("Most Brutal", result[0], result[1], "total damage")


def first_hit(records) -> AwardResult | None:
    attacks = _attacks(records)
    if not attacks:
        return None
    earliest = min(r.timestamp for r in attacks)
    opening = [r for r in attacks if r.timestamp == earliest]
    # Same-millisecond hits: the bigger one takes it
    result = _leaders({r.user: r.damage for r in opening})
    return AwardResult("First Hit", result[0], result[1], "damage")


def hardest_hit(records) -> AwardResult | None:
    best = {}
    for r in _attacks(records):
        if r.user not in best or r.damage > best[r.user]:
            best[r.user] = r.damage
    result = _leaders(best)
    if not result:
        return None
    return AwardResult("Hardest Hit", result[0], result[1], "damage in a single hit")


def stop_hitting_yourself(records) -> AwardResult | None:
    result = _leaders(sum_by_user(_attacks(records), "party_damage"))
    if not result:
        return None
    return AwardResult("Stop Hitting Yourself", result[0], result[1], "damage dealt to the party")


def shiny_hoarder(records) -> AwardResult | None:
    finds = [r for r in records if r.verb == "found"]
    result = _leaders(sum_by_user(finds, "damage"))
    if not result:
        return None
    return AwardResult("Shiny Hoarder", result[0], result[1], "items collected")


def most_casts(title: str, records, spells=None, label: str = "casts") -> AwardResult | None:
    """Most casts of the given spells, or of any spell when spells is None."""
    casts = [r for r in records if r.verb == "casts"]
    if spells is not None:
        casts = [r for r in casts if r.target in spells]
    winners = top_users(casts)
    if not winners:
        return None
    count = _count_by_user(casts)[next(iter(winners))]
    return AwardResult(title, tuple(sorted(winners)), count, label)


def combat_awards(records) -> list[AwardResult]:
    awards = [
        most_brutal(records),
        first_hit(records),
        hardest_hit(records),
        stop_hitting_yourself(records),
        shiny_hoarder(records),
    ]
    return [a for a in awards if a is not None]


def support_awards(records, settings: dict | None = None) -> list[AwardResult]:
    s = settings or {}
    awards = [
        most_casts("Most Resilient", records, s.get("resilient_spells", helpers.RESILIENT_SPELLS)),
        most_casts("Most Healing", records, s.get("healing_spells", helpers.HEALING_SPELLS)),
        most_casts("Most Refreshing", records, s.get("refreshing_spells", helpers.REFRESHING_SPELLS)),
        most_casts("Most Wise", records, s.get("wise_spells", helpers.WISE_SPELLS)),
        most_casts("Most Crafty", records, s.get("crafty_spells", helpers.CRAFTY_SPELLS)),
        most_casts("Most Inspiring", records, s.get("inspiring_spells", helpers.INSPIRING_SPELLS)),
        most_casts("Most Supportive", records, None, "buffs cast"),
    ]
    return [a for a in awards if a is not None]


# ------------------------------------------------------------------ #
#  Report lines
# ------------------------------------------------------------------ #
_SINGULAR = {
    "casts": "cast",
    "buffs cast": "buff cast",
    "items collected": "item collected",
}


def award_line(award: AwardResult) -> str:
    """'Most Brutal: Alice with 10 total damage' or the 'Tie! ... each' form."""
    amount = fmt_amount(award.count)
    label = _SINGULAR.get(award.label, award.label) if amount == "1" else award.label
    if award.is_tie:
        return f"{award.title}: Tie! {join_names(award.winners)} with {amount} {label} each"
    return f"{award.title}: {award.winners[0]} with {amount} {label}"


def format_report(window: QuestWindow, records, header: str, settings: dict | None = None) -> list[str]:
    """Build the ordered report lines for one quest. Markup is applied separately."""
    records = list(records)
    lines = [f"{header}: {quest_name(window)}", ""]

    if records:
        timestamps = [r.timestamp for r in records]
        lines.append(f"Duration: {fmt_duration(max(timestamps) - min(timestamps))}")
    participants = {r.user for r in records}
    lines.append(f"Participants: {len(participants)}")

    lines.extend(award_line(a) for a in combat_awards(records))
    support = support_awards(records, settings)
    if support:
        lines.append("")
        lines.extend(award_line(a) for a in support)
    return lines


# ------------------------------------------------------------------ #
#  Destination markup
# ------------------------------------------------------------------ #
def _split_title(line: str) -> tuple[str, str] | None:
    title, sep, rest = line.partition(": ")
    if not sep:
        return None
    return title, rest


def to_habitica(lines: list[str]) -> str:
    """Habitica chat markdown: heading title, bold award names."""
    out = []
    for i, line in enumerate(lines):
        if i == 0:
            out.append(f"### {line}")
            continue
        parts = _split_title(line)
        out.append(f"**{parts[0]}:** {parts[1]}" if parts else line)
    return "\n".join(out)


def to_discord(lines: list[str]) -> str:
    """Discord markdown: bold title, award names underlined."""
    out = []
    for i, line in enumerate(lines):
        if i == 0:
            out.append(f"**{line}**")
            continue
        parts = _split_title(line)
        out.append(f"__{parts[0]}__: {parts[1]}" if parts else line)
    return "\n".join(out)
