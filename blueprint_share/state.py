"""Sharing preferences and offline delivery queue persistence."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Set

logger = logging.getLogger(__name__)


class ShareStateError(ValueError):
    """Raised when the data file cannot be interpreted."""


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ShareStateError(f"Expected a list, got {type(value).__name__}")
    return value


class ShareState:
    """Preference deviations and pending blueprint deliveries.

    Only players whose sharing flag differs from the configured default are
    stored. Every mutation rewrites the whole data file.
    """

    def __init__(self, path: Path, *, enabled_by_default: bool = True) -> None:
        self._path = Path(path)
        self.enabled_by_default = enabled_by_default
        self._preferences: Set[str] = set()
        self._queue: Dict[str, List[str]] = {}

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> "ShareState":
        self._preferences = set()
        self._queue = {}
        if not self._path.exists():
            logger.debug("No data file at %s; starting empty", self._path)
            return self
        with self._path.open("r", encoding="utf-8") as fh:
            try:
                payload = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ShareStateError(f"Corrupt data file {self._path}: {exc}") from exc

        if isinstance(payload, list):
            # 1.x data files hold only the preference list.
            self._preferences = {str(player_id) for player_id in payload}
        elif isinstance(payload, dict):
            self._preferences = {
                str(player_id) for player_id in _as_list(payload.get("preferences"))
            }
            for player_id, blueprints in (payload.get("offline_queue") or {}).items():
                pending: List[str] = []
                for shortname in _as_list(blueprints):
                    if shortname and str(shortname) not in pending:
                        pending.append(str(shortname))
                if pending:
                    self._queue[str(player_id)] = pending
        else:
            raise ShareStateError(f"Unexpected data in {self._path}")
        logger.info(
            "Loaded %d sharing preferences and %d queued players from %s",
            len(self._preferences),
            len(self._queue),
            self._path,
        )
        return self

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "preferences": sorted(self._preferences),
            "offline_queue": {player_id: list(items) for player_id, items in self._queue.items()},
        }
        tmp = self._path.with_name(self._path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        os.replace(tmp, self._path)

    # Preferences -----------------------------------------------------

    def is_enabled(self, player_id: str) -> bool:
        if str(player_id) in self._preferences:
            return not self.enabled_by_default
        return self.enabled_by_default

    def has_record(self, player_id: str) -> bool:
        return str(player_id) in self._preferences

    def toggle(self, player_id: str) -> bool:
        """Flip the effective flag for a player and return the new value."""

        player_id = str(player_id)
        enabled = not self.is_enabled(player_id)
        if enabled == self.enabled_by_default:
            self._preferences.discard(player_id)
        else:
            self._preferences.add(player_id)
        self.save()
        logger.info("Sharing %s for %s", "enabled" if enabled else "disabled", player_id)
        return enabled

    def deviations(self) -> List[str]:
        return sorted(self._preferences)

    # Offline queue ---------------------------------------------------

    def enqueue(self, player_id: str, shortname: str) -> bool:
        """Queue a blueprint; returns False when it was already pending."""

        pending = self._queue.setdefault(str(player_id), [])
        if shortname in pending:
            return False
        pending.append(shortname)
        self.save()
        return True

    def pending(self, player_id: str) -> List[str]:
        return list(self._queue.get(str(player_id), []))

    def pop_pending(self, player_id: str) -> List[str]:
        """Remove and return the whole entry for a player."""

        items = self._queue.pop(str(player_id), None)
        if items is None:
            return []
        self.save()
        return items

    def clear_pending(self, player_id: str) -> int:
        return len(self.pop_pending(player_id))

    def queued_players(self) -> List[str]:
        return sorted(self._queue)

    def queue_depth(self) -> int:
        return sum(len(items) for items in self._queue.values())


__all__ = ["ShareState", "ShareStateError"]
