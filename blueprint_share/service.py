"""High-level sharing service reacting to host events."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from .config import Settings
from .host import HostPlayer, ItemCatalog, PermissionService, PlayerDirectory, StudyItem
from .integrations import RecipientResolver
from .messages import MessageCatalog
from .models import BlueprintDefinition, FlushOutcome, ShareOutcome, SkipReason
from .state import ShareState
from .telemetry import TelemetryCollector, get_telemetry, track_duration

logger = logging.getLogger(__name__)

STUDY_ACTION = "study"


class BlueprintShareService:
    """Coordinates recipient resolution, unlock delivery and preferences."""

    class PermissionDeniedError(PermissionError):
        """Raised when a player lacks the toggle permission."""

    def __init__(
        self,
        settings: Settings,
        *,
        directory: PlayerDirectory,
        catalog: ItemCatalog,
        permissions: PermissionService,
        resolver: Optional[RecipientResolver] = None,
        state: Optional[ShareState] = None,
        messages: Optional[MessageCatalog] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self.settings = settings
        self.directory = directory
        self.catalog = catalog
        self.permissions = permissions
        self.resolver = resolver or RecipientResolver.from_settings(settings)
        self.state = state or ShareState(
            settings.data_file, enabled_by_default=settings.enabled_by_default
        )
        self.state.load()
        self.messages = messages or MessageCatalog(settings.messages)
        self.telemetry = telemetry or get_telemetry()
        self.permissions.register_permission(settings.toggle_permission, self)

    # Preferences -----------------------------------------------------

    def sharing_enabled(self, player_id: str) -> bool:
        return self.state.is_enabled(str(player_id))

    def has_toggle_permission(self, player_id: str) -> bool:
        return self.permissions.user_has_permission(str(player_id), self.settings.toggle_permission)

    def toggle_sharing(self, player_id: str, *, check_permission: bool = False) -> bool:
        """Flip a player's sharing preference and return the new state."""

        player_id = str(player_id)
        if check_permission and not self.has_toggle_permission(player_id):
            raise BlueprintShareService.PermissionDeniedError(
                f"{player_id} lacks {self.settings.toggle_permission}"
            )
        enabled = self.state.toggle(player_id)
        self.telemetry.track_preference_toggle(player_id, enabled)
        return enabled

    def pending_blueprints(self, player_id: str) -> List[str]:
        return self.state.pending(str(player_id))

    # Integrations ----------------------------------------------------

    def attach_integration(self, name: str, provider: Any) -> None:
        self.resolver.attach(name, provider)

    def detach_integration(self, name: str) -> None:
        self.resolver.detach(name)

    # Sharing ---------------------------------------------------------

    def find_definition(self, shortname: Optional[str]) -> Optional[BlueprintDefinition]:
        if not shortname or not shortname.strip():
            return None
        return self.catalog.find_definition(shortname.strip().lower())

    def on_item_action(self, item: StudyItem, action: str, player: Optional[HostPlayer]) -> bool:
        """Handle an item action; returns True when the studied item was consumed."""

        if player is None or action != STUDY_ACTION:
            return False
        if not item.is_blueprint:
            return False
        if not self.sharing_enabled(player.id):
            return False
        shortname = item.blueprint_target
        if not shortname:
            return False
        outcome = self.unlock_blueprint(player, shortname)
        if not outcome.success:
            return False
        item.remove()
        return True

    def unlock_blueprint(self, actor: HostPlayer, shortname: str) -> ShareOutcome:
        """Share a blueprint with every recipient resolved for ``actor``."""

        actor_id = str(actor.id)
        outcome = ShareOutcome(blueprint=shortname, actor_id=actor_id)
        definition = self.find_definition(shortname)
        if definition is None:
            logger.debug("Ignoring unknown blueprint %r studied by %s", shortname, actor_id)
            return outcome
        outcome.blueprint = definition.shortname

        recipients = self.resolver.resolve(actor_id)
        if not recipients:
            return outcome
        if actor_id not in recipients:
            recipients.insert(0, actor_id)

        for recipient_id in recipients:
            self._deliver(actor, recipient_id, definition, outcome)

        self.telemetry.track_share(
            definition.shortname,
            actor_id,
            unlocked=len(outcome.unlocked),
            queued=len(outcome.queued),
            skipped=len(outcome.skipped),
        )
        if outcome.queued:
            self.telemetry.track_queue_depth(
                self.state.queue_depth(), players=len(self.state.queued_players())
            )
        logger.info(
            "%s shared %s: %d unlocked, %d queued, %d skipped",
            actor_id,
            definition.shortname,
            len(outcome.unlocked),
            len(outcome.queued),
            len(outcome.skipped),
        )
        return outcome

    def _deliver(
        self,
        actor: HostPlayer,
        recipient_id: str,
        definition: BlueprintDefinition,
        outcome: ShareOutcome,
    ) -> None:
        is_actor = recipient_id == outcome.actor_id
        player = actor if is_actor else self.directory.find_player(recipient_id)
        if player is None:
            logger.debug("Skipping unknown recipient %s", recipient_id)
            outcome.skip(recipient_id, SkipReason.UNKNOWN_PLAYER)
            return
        if not is_actor and not self.sharing_enabled(recipient_id):
            outcome.skip(recipient_id, SkipReason.SHARING_DISABLED)
            return
        if player.has_blueprint(definition):
            outcome.skip(recipient_id, SkipReason.ALREADY_KNOWN)
            return
        if not player.is_connected:
            if not self.settings.offline_delivery:
                outcome.skip(recipient_id, SkipReason.OFFLINE)
            elif self.state.enqueue(recipient_id, definition.shortname):
                outcome.queued.append(recipient_id)
            else:
                outcome.skip(recipient_id, SkipReason.ALREADY_QUEUED)
            return

        player.unlock_blueprint(definition)
        if not is_actor:
            player.send_chat(
                self.messages.get(
                    "NewBlueprintLearned",
                    recipient_id,
                    actor.display_name,
                    definition.display_name,
                )
            )
        player.play_effect(self.settings.unlock_effect)
        outcome.unlocked.append(recipient_id)

    # Offline delivery ------------------------------------------------

    def on_player_connected(self, player: HostPlayer) -> Optional[FlushOutcome]:
        """Deliver blueprints queued while ``player`` was offline."""

        player_id = str(player.id)
        pending = self.state.pending(player_id)
        if not pending:
            return None

        with track_duration("offline_flush", {"player_id": player_id}, self.telemetry):
            outcome = self._flush(player, pending)
        self.telemetry.track_offline_delivery(
            player_id, delivered=len(outcome.delivered), dropped=len(outcome.dropped)
        )
        return outcome

    def _flush(self, player: HostPlayer, pending: List[str]) -> FlushOutcome:
        player_id = str(player.id)
        outcome = FlushOutcome(player_id=player_id)
        learned: List[str] = []
        if self.sharing_enabled(player_id):
            for shortname in pending:
                definition = self.find_definition(shortname)
                if definition is None or player.has_blueprint(definition):
                    outcome.dropped.append(shortname)
                    continue
                player.unlock_blueprint(definition)
                outcome.delivered.append(definition.shortname)
                learned.append(definition.display_name)
        else:
            outcome.dropped.extend(pending)
            logger.info(
                "Dropping %d queued blueprints for %s; sharing disabled", len(pending), player_id
            )

        if learned:
            player.send_chat(
                self.messages.get(
                    "QueuedBlueprintsLearned", player_id, len(learned), ", ".join(learned)
                )
            )
            player.play_effect(self.settings.unlock_effect)

        self.state.pop_pending(player_id)
        return outcome


__all__ = ["BlueprintShareService", "STUDY_ACTION"]
