"""Chat command surface for Blueprint Share."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Sequence

from .host import CommandCaller
from .messages import MessageCatalog
from .models import CommandResult
from .service import BlueprintShareService
from .telemetry import TelemetryCollector
from .telemetry_decorator import track_command

logger = logging.getLogger(__name__)


class ShareCommands:
    """Dispatches ``/bs`` style chat commands to the sharing service."""

    def __init__(
        self,
        service: BlueprintShareService,
        *,
        messages: Optional[MessageCatalog] = None,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self.service = service
        self.messages = messages or service.messages
        self.telemetry = telemetry or service.telemetry
        self.names = tuple(service.settings.command_names)
        self._subcommands: Dict[str, Callable[[CommandCaller, CommandResult], None]] = {
            "help": self.help,
            "toggle": self.toggle,
        }

    def handles(self, command: str) -> bool:
        return (command or "").lower() in self.names

    def handle(self, caller: CommandCaller, command: str, args: Sequence[str]) -> CommandResult:
        if not self.handles(command):
            return CommandResult()
        result = CommandResult(handled=True)
        if not args:
            self._reply(caller, result, self.messages.prefixed("ArgumentsErrorMessage", caller.id))
            return result
        handler = self._subcommands.get(args[0].lower())
        if handler is None:
            logger.debug("Ignoring unknown subcommand %r from %s", args[0], caller.id)
            return result
        handler(caller, result)
        return result

    def _reply(self, caller: CommandCaller, result: CommandResult, text: str) -> None:
        result.replies.append(text)
        caller.reply(text)

    @track_command
    def help(self, caller: CommandCaller, result: CommandResult) -> None:
        self._reply(caller, result, self.messages.get("HelpMessage", caller.id))

    @track_command
    def toggle(self, caller: CommandCaller, result: CommandResult) -> None:
        try:
            enabled = self.service.toggle_sharing(caller.id, check_permission=True)
        except BlueprintShareService.PermissionDeniedError:
            self._reply(caller, result, self.messages.prefixed("NoPermissionMessage", caller.id))
            return
        key = "ToggleOnMessage" if enabled else "ToggleOffMessage"
        self._reply(caller, result, self.messages.prefixed(key, caller.id))


__all__ = ["ShareCommands"]
