"""Host Protocols.

Interfaces the game host implements so the plugin can reach players, items,
the blueprint catalogue and the permission system without importing the host.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .models import BlueprintDefinition


@runtime_checkable
class HostPlayer(Protocol):
    """A player known to the host, connected or not."""

    id: str
    display_name: str

    @property
    def is_connected(self) -> bool:
        ...

    def has_blueprint(self, definition: BlueprintDefinition) -> bool:
        ...

    def unlock_blueprint(self, definition: BlueprintDefinition) -> None:
        ...

    def send_chat(self, text: str) -> None:
        ...

    def play_effect(self, prefab: str) -> None:
        ...


@runtime_checkable
class PlayerDirectory(Protocol):
    def find_player(self, player_id: str) -> Optional[HostPlayer]:
        """
        Look a player up by identifier.

        Returns ``None`` when the identifier does not belong to any player the
        host knows about. Offline players are returned with
        ``is_connected == False``.
        """
        ...


@runtime_checkable
class ItemCatalog(Protocol):
    def find_definition(self, shortname: str) -> Optional[BlueprintDefinition]:
        ...


@runtime_checkable
class StudyItem(Protocol):
    """The item a player is studying."""

    @property
    def is_blueprint(self) -> bool:
        ...

    @property
    def blueprint_target(self) -> Optional[str]:
        ...

    def remove(self) -> None:
        ...


@runtime_checkable
class PermissionService(Protocol):
    def register_permission(self, name: str, owner: object) -> None:
        ...

    def user_has_permission(self, player_id: str, name: str) -> bool:
        ...


@runtime_checkable
class CommandCaller(Protocol):
    id: str

    def reply(self, text: str) -> None:
        ...


__all__ = [
    "CommandCaller",
    "HostPlayer",
    "ItemCatalog",
    "PermissionService",
    "PlayerDirectory",
    "StudyItem",
]
