"""Management utilities for sharing preferences and the offline queue."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import SettingsLoader, get_settings
from ..state import ShareState


def _load_state(settings_path: Optional[Path], data_file: Optional[Path]) -> ShareState:
    settings = SettingsLoader(settings_path).load() if settings_path else get_settings()
    state = ShareState(
        data_file or settings.data_file,
        enabled_by_default=settings.enabled_by_default,
    )
    return state.load()


def _summary(state: ShareState) -> Dict[str, Any]:
    players = state.queued_players()
    return {
        "data_file": str(state.path),
        "enabled_by_default": state.enabled_by_default,
        "preference_records": len(state.deviations()),
        "queued_players": len(players),
        "queued_blueprints": state.queue_depth(),
    }


def cmd_summary(args: argparse.Namespace) -> None:
    state = _load_state(args.settings, args.data_file)
    summary = _summary(state)
    if args.json:
        print(json.dumps(summary, indent=2))
        return

    default_label = "enabled" if summary["enabled_by_default"] else "disabled"
    lines: List[str] = []
    lines.append(f"Data file: {summary['data_file']}")
    lines.append(f"Sharing by default: {default_label}")
    lines.append(f"Players deviating from default: {summary['preference_records']}")
    lines.append(
        f"Offline queue: {summary['queued_blueprints']} blueprints for {summary['queued_players']} players"
    )
    print("\n".join(lines))


def cmd_queue(args: argparse.Namespace) -> None:
    state = _load_state(args.settings, args.data_file)
    players = [args.player] if args.player else state.queued_players()
    queue = {player_id: state.pending(player_id) for player_id in players}
    if args.json:
        print(json.dumps(queue, indent=2))
        return
    if not any(queue.values()):
        print("Offline queue is empty.")
        return
    for player_id, items in queue.items():
        if not items:
            continue
        print(f"{player_id}:")
        for shortname in items:
            print(f"  - {shortname}")


def cmd_preferences(args: argparse.Namespace) -> None:
    state = _load_state(args.settings, args.data_file)
    records = state.deviations()
    effective = not state.enabled_by_default
    if args.json:
        print(json.dumps({"sharing_enabled": effective, "players": records}, indent=2))
        return
    label = "enabled" if effective else "disabled"
    print(f"Players with sharing {label} ({len(records)}):")
    for player_id in records:
        print(f"  - {player_id}")


def cmd_clear_queue(args: argparse.Namespace) -> None:
    state = _load_state(args.settings, args.data_file)
    removed = state.clear_pending(args.player)
    print(f"Removed {removed} queued blueprints for {args.player}.")


def cmd_toggle(args: argparse.Namespace) -> None:
    state = _load_state(args.settings, args.data_file)
    enabled = state.toggle(args.player)
    print(f"Sharing {'enabled' if enabled else 'disabled'} for {args.player}.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and edit Blueprint Share data.")
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to the settings YAML (default: $BLUEPRINT_SHARE_SETTINGS or packaged defaults).",
    )
    parser.add_argument(
        "--data-file",
        type=Path,
        default=None,
        help="Override the data file location from settings.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Summarise preferences and the offline queue.")
    summary.add_argument("--json", action="store_true", help="Output JSON for automation.")
    summary.set_defaults(func=cmd_summary)

    queue = subparsers.add_parser("queue", help="List blueprints waiting for offline players.")
    queue.add_argument("--player", type=str, help="Only show one player.")
    queue.add_argument("--json", action="store_true", help="Output JSON for automation.")
    queue.set_defaults(func=cmd_queue)

    preferences = subparsers.add_parser("preferences", help="List players deviating from the default.")
    preferences.add_argument("--json", action="store_true", help="Output JSON for automation.")
    preferences.set_defaults(func=cmd_preferences)

    clear = subparsers.add_parser("clear-queue", help="Drop every queued blueprint for a player.")
    clear.add_argument("player", type=str)
    clear.set_defaults(func=cmd_clear_queue)

    toggle = subparsers.add_parser("toggle", help="Flip a player's sharing preference.")
    toggle.add_argument("player", type=str)
    toggle.set_defaults(func=cmd_toggle)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO)
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
