"""Host entry point wiring the sharing service to game hooks."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from .commands import ShareCommands
from .config import Settings, SettingsLoader, get_settings
from .host import CommandCaller, HostPlayer, ItemCatalog, PermissionService, PlayerDirectory, StudyItem
from .integrations import ClanProvider, FriendsProvider, RecipientResolver, TeamProvider
from .messages import MessageCatalog
from .models import CommandResult
from .service import BlueprintShareService
from .telemetry import TelemetryCollector, set_telemetry

logger = logging.getLogger(__name__)

# Host plugin names mapped onto resolver integrations.
PLUGIN_INTEGRATIONS = {
    "Clans": "clans",
    "ClansReborn": "clans_reborn",
    "Friends": "friends",
}


class BlueprintSharePlugin:
    """Thin adapter exposing the host hook surface."""

    title = "Blueprint Share"
    description = "Allows players to share researched blueprints with their friends, clan or team"

    def __init__(self, service: BlueprintShareService, commands: ShareCommands) -> None:
        self.service = service
        self.commands = commands

    def on_item_action(self, item: StudyItem, action: str, player: Optional[HostPlayer]) -> Optional[bool]:
        """Return ``True`` to stop the host's default handling of the action."""

        return True if self.service.on_item_action(item, action, player) else None

    def on_player_connected(self, player: HostPlayer) -> None:
        self.service.on_player_connected(player)

    def on_plugin_loaded(self, name: str, provider: Any) -> None:
        integration = PLUGIN_INTEGRATIONS.get(name)
        if integration is not None:
            self.service.attach_integration(integration, provider)

    def on_plugin_unloaded(self, name: str) -> None:
        integration = PLUGIN_INTEGRATIONS.get(name)
        if integration is not None:
            self.service.detach_integration(integration)

    def on_command(self, caller: CommandCaller, command: str, args: Sequence[str]) -> CommandResult:
        return self.commands.handle(caller, command, args)

    def sharing_enabled(self, player_id: str) -> bool:
        """Public API for other plugins."""

        return self.service.sharing_enabled(player_id)

    def unload(self) -> None:
        self.service.telemetry.flush()


def build_plugin(
    *,
    directory: PlayerDirectory,
    catalog: ItemCatalog,
    permissions: PermissionService,
    settings: Optional[Settings] = None,
    settings_path: Optional[Path] = None,
    clans: Optional[ClanProvider] = None,
    clans_reborn: Optional[ClanProvider] = None,
    friends: Optional[FriendsProvider] = None,
    teams: Optional[TeamProvider] = None,
    formatter: Optional[Callable[[str], str]] = None,
    language_for: Optional[Callable[[str], Optional[str]]] = None,
    telemetry: Optional[TelemetryCollector] = None,
) -> BlueprintSharePlugin:
    if settings is None:
        settings = SettingsLoader(settings_path).load() if settings_path else get_settings()
    if telemetry is None:
        telemetry = TelemetryCollector(settings.telemetry_db)
        set_telemetry(telemetry)
    resolver = RecipientResolver.from_settings(
        settings,
        clans=clans,
        clans_reborn=clans_reborn,
        friends=friends,
        teams=teams,
    )
    messages = MessageCatalog(settings.messages, formatter=formatter, language_for=language_for)
    service = BlueprintShareService(
        settings,
        directory=directory,
        catalog=catalog,
        permissions=permissions,
        resolver=resolver,
        messages=messages,
        telemetry=telemetry,
    )
    logger.info("Blueprint Share loaded with data file %s", settings.data_file)
    return BlueprintSharePlugin(service, ShareCommands(service))


__all__ = ["BlueprintSharePlugin", "PLUGIN_INTEGRATIONS", "build_plugin"]
