"""Social graph integrations and recipient resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Optional, Protocol, TypeVar, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ClanProvider(Protocol):
    def get_clan_of(self, player_id: str) -> Optional[str]:
        ...

    def get_clan_members(self, tag: str) -> Optional[Iterable[Any]]:
        ...


@runtime_checkable
class FriendsProvider(Protocol):
    def get_friends(self, player_id: str) -> Optional[Iterable[Any]]:
        ...


@runtime_checkable
class TeamProvider(Protocol):
    def get_team_members(self, player_id: str) -> Optional[Iterable[Any]]:
        ...


P = TypeVar("P")


@dataclass
class Integration(Generic[P]):
    """Gate around an optional provider: attached/loaded and switched on."""

    name: str
    provider: Optional[P] = None
    enabled: bool = True

    @property
    def present(self) -> bool:
        if self.provider is None:
            return False
        return bool(getattr(self.provider, "is_loaded", True))

    @property
    def available(self) -> bool:
        return self.enabled and self.present


def _normalise_ids(values: Optional[Iterable[Any]]) -> List[str]:
    if values is None:
        return []
    if isinstance(values, (str, bytes)):
        values = [values]
    ids: List[str] = []
    for value in values:
        if value is None:
            continue
        text = str(value).strip()
        if text:
            ids.append(text)
    return ids


class RecipientResolver:
    """Merge clan, friends and team membership into one recipient list."""

    CLAN_SOURCES = ("clans", "clans_reborn")

    def __init__(
        self,
        *,
        clans: Optional[ClanProvider] = None,
        clans_reborn: Optional[ClanProvider] = None,
        friends: Optional[FriendsProvider] = None,
        teams: Optional[TeamProvider] = None,
        clans_enabled: bool = True,
        friends_enabled: bool = True,
        teams_enabled: bool = True,
    ) -> None:
        self._integrations: Dict[str, Integration[Any]] = {
            "clans": Integration("clans", clans, clans_enabled),
            "clans_reborn": Integration("clans_reborn", clans_reborn, clans_enabled),
            "friends": Integration("friends", friends, friends_enabled),
            "teams": Integration("teams", teams, teams_enabled),
        }

    @classmethod
    def from_settings(cls, settings, **providers: Any) -> "RecipientResolver":
        return cls(
            clans_enabled=settings.clans_enabled,
            friends_enabled=settings.friends_enabled,
            teams_enabled=settings.teams_enabled,
            **providers,
        )

    def integration(self, name: str) -> Integration[Any]:
        try:
            return self._integrations[name]
        except KeyError:
            raise ValueError(f"Unknown integration {name}") from None

    def attach(self, name: str, provider: Any) -> None:
        """Attach a provider, e.g. when its plugin finishes loading."""

        self.integration(name).provider = provider
        logger.info("Attached %s integration", name)

    def detach(self, name: str) -> None:
        self.integration(name).provider = None
        logger.info("Detached %s integration", name)

    def _call(self, name: str, method: str, *args: Any) -> Any:
        gate = self._integrations[name]
        if not gate.available:
            return None
        try:
            return getattr(gate.provider, method)(*args)
        except Exception:
            logger.exception("%s integration failed during %s", name, method)
            return None

    def clan_members(self, player_id: str) -> List[str]:
        for name in self.CLAN_SOURCES:
            tag = self._call(name, "get_clan_of", player_id)
            if not tag:
                continue
            return _normalise_ids(self._call(name, "get_clan_members", tag))
        return []

    def friends(self, player_id: str) -> List[str]:
        return _normalise_ids(self._call("friends", "get_friends", player_id))

    def team_members(self, player_id: str) -> List[str]:
        return _normalise_ids(self._call("teams", "get_team_members", player_id))

    def resolve(self, player_id: str) -> List[str]:
        """Return the de-duplicated union of every available source."""

        player_id = str(player_id)
        recipients: List[str] = []
        seen = set()
        for source in (self.clan_members, self.friends, self.team_members):
            for member in source(player_id):
                if member in seen:
                    continue
                seen.add(member)
                recipients.append(member)
        logger.debug("Resolved %d recipients for %s", len(recipients), player_id)
        return recipients


__all__ = [
    "ClanProvider",
    "FriendsProvider",
    "Integration",
    "RecipientResolver",
    "TeamProvider",
]
