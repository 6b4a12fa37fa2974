"""Data shapes shared by the quest log parser, award engine and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class ChatMessage:
    """One party chat entry. author is None for system messages."""

    text: str
    timestamp: int  # ms since epoch
    author: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class ActionRecord:
    """A single classified quest action: an attack, a cast or an item find."""

    user: str
    verb: str
    target: str
    timestamp: int
    damage: Optional[Decimal] = None
    party_damage: Optional[Decimal] = None


@dataclass(frozen=True)
class QuestWindow:
    """Chat messages between a quest start and its completion, ascending.

    completion is None for the in-progress window, which has no upper bound.
    """

    messages: tuple
    start: ChatMessage
    completion: Optional[ChatMessage] = None


@dataclass(frozen=True)
class AwardResult:
    """One leaderboard line. More than one winner means a tie."""

    title: str
    winners: tuple
    count: Decimal
    label: str

    @property
    def is_tie(self) -> bool:
        return len(self.winners) > 1
