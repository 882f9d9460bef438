"""Fake host objects shared by the Blueprint Share tests."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

import pytest

from blueprint_share.config import Settings
from blueprint_share.integrations import RecipientResolver
from blueprint_share.models import BlueprintDefinition
from blueprint_share.service import BlueprintShareService
from blueprint_share.telemetry import TelemetryCollector


class FakePlayer:
    def __init__(self, player_id: str, display_name: Optional[str] = None, *, connected: bool = True,
                 blueprints: Iterable[str] = ()) -> None:
        self.id = player_id
        self.display_name = display_name or player_id.title()
        self.connected = connected
        self.blueprints = set(blueprints)
        self.unlocks: List[str] = []
        self.chat: List[str] = []
        self.effects: List[str] = []

    @property
    def is_connected(self) -> bool:
        return self.connected

    def has_blueprint(self, definition: BlueprintDefinition) -> bool:
        return definition.shortname in self.blueprints

    def unlock_blueprint(self, definition: BlueprintDefinition) -> None:
        self.blueprints.add(definition.shortname)
        self.unlocks.append(definition.shortname)

    def send_chat(self, text: str) -> None:
        self.chat.append(text)

    def play_effect(self, prefab: str) -> None:
        self.effects.append(prefab)


class FakeCaller:
    def __init__(self, player_id: str) -> None:
        self.id = player_id
        self.replies: List[str] = []

    def reply(self, text: str) -> None:
        self.replies.append(text)


class FakeDirectory:
    def __init__(self) -> None:
        self.players: Dict[str, FakePlayer] = {}

    def add(self, *players: FakePlayer) -> None:
        for player in players:
            self.players[player.id] = player

    def find_player(self, player_id: str) -> Optional[FakePlayer]:
        return self.players.get(player_id)


class FakeCatalog:
    def __init__(self) -> None:
        self.definitions = {
            "rifle.ak": BlueprintDefinition("rifle.ak", "Assault Rifle"),
            "pistol.revolver": BlueprintDefinition("pistol.revolver", "Revolver"),
            "explosive.timed": BlueprintDefinition("explosive.timed", "Timed Explosive Charge"),
        }

    def find_definition(self, shortname: str) -> Optional[BlueprintDefinition]:
        return self.definitions.get(shortname)


class FakeItem:
    def __init__(self, target: Optional[str], *, is_blueprint: bool = True) -> None:
        self._target = target
        self._is_blueprint = is_blueprint
        self.removed = False

    @property
    def is_blueprint(self) -> bool:
        return self._is_blueprint

    @property
    def blueprint_target(self) -> Optional[str]:
        return self._target

    def remove(self) -> None:
        self.removed = True


class FakePermissions:
    def __init__(self) -> None:
        self.registered: List[str] = []
        self.grants: Dict[str, set] = {}

    def register_permission(self, name: str, owner: object) -> None:
        self.registered.append(name)

    def grant(self, player_id: str, name: str) -> None:
        self.grants.setdefault(player_id, set()).add(name)

    def user_has_permission(self, player_id: str, name: str) -> bool:
        return name in self.grants.get(player_id, set())


class FakeClans:
    def __init__(self, clans: Dict[str, List[str]]) -> None:
        self.clans = clans
        self.is_loaded = True

    def get_clan_of(self, player_id: str) -> Optional[str]:
        for tag, members in self.clans.items():
            if player_id in members:
                return tag
        return None

    def get_clan_members(self, tag: str) -> Optional[List[str]]:
        return self.clans.get(tag)


class FakeFriends:
    def __init__(self, friends: Dict[str, List[str]]) -> None:
        self.friends = friends

    def get_friends(self, player_id: str) -> Optional[List[str]]:
        return self.friends.get(player_id)


class FakeTeams:
    def __init__(self, teams: List[List[str]]) -> None:
        self.teams = teams

    def get_team_members(self, player_id: str) -> Optional[List[str]]:
        for team in self.teams:
            if player_id in team:
                return list(team)
        return None


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def permissions() -> FakePermissions:
    return FakePermissions()


@pytest.fixture
def telemetry(tmp_path) -> TelemetryCollector:
    return TelemetryCollector(tmp_path / "telemetry.db")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", telemetry_db=tmp_path / "telemetry.db")


@pytest.fixture
def build_service(settings, directory, catalog, permissions, telemetry):
    """Factory building a service over the fake host."""

    def _build(*, clans=None, friends=None, teams=None, **overrides) -> BlueprintShareService:
        configured = replace(settings, **overrides)
        resolver = RecipientResolver.from_settings(
            configured, clans=clans, friends=friends, teams=teams
        )
        return BlueprintShareService(
            configured,
            directory=directory,
            catalog=catalog,
            permissions=permissions,
            resolver=resolver,
            telemetry=telemetry,
        )

    return _build
