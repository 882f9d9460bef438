"""Player-facing message catalogue."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

DEFAULT_MESSAGES: Dict[str, str] = {
    "Prefix": "[#D85540][Blueprint Share] [/#]",
    "ArgumentsErrorMessage": "Error, incorrect arguments. Try /bs help.",
    "HelpMessage": (
        "[#D85540]Blueprint Share Help:[/#]\n\n"
        "[#D85540]/bs toggle[/#] - Toggles the sharing of blueprints."
    ),
    "ToggleOnMessage": "You have enabled sharing blueprints.",
    "ToggleOffMessage": "You have disabled sharing blueprints.",
    "NoPermissionMessage": "You don't have permission to use this command!",
    "NewBlueprintLearned": "[#55aaff]{0} learned a new blueprint: <size=18>{1}</size>[/#]",
    "QueuedBlueprintsLearned": (
        "[#55aaff]While you were away your group shared {0} blueprint(s): "
        "<size=18>{1}</size>[/#]"
    ),
}


class MessageCatalog:
    """Per-language message tables with fallback to the default language."""

    def __init__(
        self,
        overrides: Optional[Mapping[str, Mapping[str, str]]] = None,
        *,
        formatter: Optional[Callable[[str], str]] = None,
        language_for: Optional[Callable[[str], Optional[str]]] = None,
        default_language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.default_language = default_language
        self._tables: Dict[str, Dict[str, str]] = {default_language: dict(DEFAULT_MESSAGES)}
        self._formatter = formatter or (lambda text: text)
        self._language_for = language_for
        for language, table in (overrides or {}).items():
            self.register(language, table)

    def register(self, language: str, messages: Mapping[str, str]) -> None:
        self._tables.setdefault(language, {}).update(messages)

    def language(self, player_id: Optional[str]) -> str:
        if player_id is None or self._language_for is None:
            return self.default_language
        return self._language_for(player_id) or self.default_language

    def get(self, key: str, player_id: Optional[str] = None, *args: object) -> str:
        table = self._tables.get(self.language(player_id), {})
        template = table.get(key)
        if template is None:
            template = self._tables[self.default_language].get(key)
        if template is None:
            logger.warning("Missing message %s", key)
            template = key
        try:
            text = template.format(*args)
        except (IndexError, KeyError):
            logger.warning("Message %s does not accept %d arguments", key, len(args))
            text = template
        return self._formatter(text)

    def prefixed(self, key: str, player_id: Optional[str] = None, *args: object) -> str:
        return self.get("Prefix", player_id) + self.get(key, player_id, *args)


__all__ = ["DEFAULT_MESSAGES", "MessageCatalog"]
