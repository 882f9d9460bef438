"""Core data models for Blueprint Share."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SkipReason(str, Enum):
    UNKNOWN_PLAYER = "unknown_player"
    SHARING_DISABLED = "sharing_disabled"
    ALREADY_KNOWN = "already_known"
    ALREADY_QUEUED = "already_queued"
    OFFLINE = "offline"


@dataclass(frozen=True)
class BlueprintDefinition:
    """Catalogue entry for a craftable item's blueprint."""

    shortname: str
    display_name: str


@dataclass
class SkippedRecipient:
    player_id: str
    reason: SkipReason


@dataclass
class ShareOutcome:
    """Result of sharing one studied blueprint."""

    blueprint: str
    actor_id: str
    unlocked: List[str] = field(default_factory=list)
    queued: List[str] = field(default_factory=list)
    skipped: List[SkippedRecipient] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when someone learned the blueprint or was newly promised it."""

        return bool(self.unlocked or self.queued)

    def skip(self, player_id: str, reason: SkipReason) -> None:
        self.skipped.append(SkippedRecipient(player_id, reason))

    def skipped_for(self, reason: SkipReason) -> List[str]:
        return [entry.player_id for entry in self.skipped if entry.reason == reason]


@dataclass
class FlushOutcome:
    """Result of delivering a player's offline queue on connect."""

    player_id: str
    delivered: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)

    @property
    def notified(self) -> bool:
        return bool(self.delivered)


@dataclass
class CommandResult:
    replies: List[str] = field(default_factory=list)
    handled: bool = False


__all__ = [
    "BlueprintDefinition",
    "CommandResult",
    "FlushOutcome",
    "ShareOutcome",
    "SkipReason",
    "SkippedRecipient",
]
