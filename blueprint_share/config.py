"""Configuration loading utilities for Blueprint Share."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
DEFAULT_UNLOCK_EFFECT = "assets/prefabs/deployable/research table/effects/research-success.prefab"

# Flat keys used by 1.x config files.
_LEGACY_KEYS = {
    "ClansEnabled": ("integrations", "clans"),
    "FriendsEnabled": ("integrations", "friends"),
    "TeamsEnabled": ("integrations", "teams"),
    "EnableByDefault": ("sharing", "enabled_by_default"),
}

DEFAULT_SETTINGS: Dict[str, Any] = {
    "integrations": {"clans": True, "friends": True, "teams": True},
    "sharing": {"enabled_by_default": True, "offline_delivery": True},
    "storage": {"data_dir": "data", "plugin_name": "BlueprintShare"},
    "effects": {"unlock": DEFAULT_UNLOCK_EFFECT},
    "command": {
        "names": ["blueprintshare", "bs"],
        "toggle_permission": "blueprintshare.toggle",
    },
    "telemetry": {"db_path": "blueprint_share_telemetry.db"},
    "messages": {},
}


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        logger.warning("Unrecognised boolean %r in settings; using %s", value, default)
        return default
    return bool(value)


@dataclass(frozen=True)
class Settings:
    """Typed view over the settings YAML file."""

    clans_enabled: bool = True
    friends_enabled: bool = True
    teams_enabled: bool = True
    enabled_by_default: bool = True
    offline_delivery: bool = True
    data_dir: Path = Path("data")
    plugin_name: str = "BlueprintShare"
    unlock_effect: str = DEFAULT_UNLOCK_EFFECT
    command_names: List[str] = field(default_factory=lambda: ["blueprintshare", "bs"])
    toggle_permission: str = "blueprintshare.toggle"
    telemetry_db: Path = Path("blueprint_share_telemetry.db")
    messages: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @property
    def data_file(self) -> Path:
        return self.data_dir / f"{self.plugin_name}.json"

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Settings":
        data = dict(data or {})
        for legacy_key, (section, option) in _LEGACY_KEYS.items():
            if legacy_key not in data:
                continue
            nested = dict(data.get(section) or {})
            nested.setdefault(option, data[legacy_key])
            data[section] = nested

        integrations = data.get("integrations") or {}
        sharing = data.get("sharing") or {}
        storage = data.get("storage") or {}
        effects = data.get("effects") or {}
        command = data.get("command") or {}
        telemetry = data.get("telemetry") or {}
        messages = data.get("messages") or {}

        names = command.get("names") or ["blueprintshare", "bs"]
        if isinstance(names, str):
            names = [names]
        return Settings(
            clans_enabled=_as_bool(integrations.get("clans"), True),
            friends_enabled=_as_bool(integrations.get("friends"), True),
            teams_enabled=_as_bool(integrations.get("teams"), True),
            enabled_by_default=_as_bool(sharing.get("enabled_by_default"), True),
            offline_delivery=_as_bool(sharing.get("offline_delivery"), True),
            data_dir=Path(storage.get("data_dir", "data")),
            plugin_name=str(storage.get("plugin_name", "BlueprintShare")),
            unlock_effect=str(effects.get("unlock", DEFAULT_UNLOCK_EFFECT)),
            command_names=[str(name).lower() for name in names],
            toggle_permission=str(command.get("toggle_permission", "blueprintshare.toggle")),
            telemetry_db=Path(telemetry.get("db_path", "blueprint_share_telemetry.db")),
            messages={
                str(language): {str(k): str(v) for k, v in (table or {}).items()}
                for language, table in messages.items()
            },
        )


class SettingsLoader:
    """Loads and caches settings from YAML configuration files."""

    def __init__(self, path: Path | None = None) -> None:
        self._explicit = path is not None
        self._path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
        self._cache: Settings | None = None

    @property
    def path(self) -> Path:
        return self._path

    def write_defaults(self) -> None:
        """Write the default configuration to the loader path."""

        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(DEFAULT_SETTINGS, fh, sort_keys=False)
        logger.info("Wrote default Blueprint Share settings to %s", self._path)

    def load(self, force: bool = False) -> Settings:
        if self._cache is not None and not force:
            return self._cache
        if self._explicit and not self._path.exists():
            self.write_defaults()
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {self._path} must contain a mapping")
        self._cache = Settings.from_dict(data)
        return self._cache


def get_settings(path: Optional[Path] = None) -> Settings:
    """Convenience accessor honouring ``BLUEPRINT_SHARE_SETTINGS``."""

    if path is None:
        env_path = os.environ.get("BLUEPRINT_SHARE_SETTINGS")
        if env_path:
            path = Path(env_path)
    return SettingsLoader(path).load()


__all__ = ["DEFAULT_SETTINGS", "Settings", "SettingsLoader", "get_settings"]
