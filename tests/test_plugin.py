"""Tests for the host-facing plugin wiring."""
from __future__ import annotations

from blueprint_share.plugin import build_plugin

from conftest import FakeCaller, FakeClans, FakeFriends, FakeItem, FakePlayer, FakeTeams


def _plugin(settings, directory, catalog, permissions, telemetry, **providers):
    return build_plugin(
        directory=directory,
        catalog=catalog,
        permissions=permissions,
        settings=settings,
        telemetry=telemetry,
        **providers,
    )


def test_study_hook_consumes_item(settings, directory, catalog, permissions, telemetry):
    alice = FakePlayer("A", "Alice")
    bob = FakePlayer("B")
    directory.add(alice, bob)
    plugin = _plugin(settings, directory, catalog, permissions, telemetry, teams=FakeTeams([["A", "B"]]))
    item = FakeItem("rifle.ak")

    assert plugin.on_item_action(item, "study", alice) is True
    assert item.removed is True
    assert plugin.on_item_action(FakeItem("rifle.ak"), "study", alice) is None


def test_plugin_load_events_swap_integrations(settings, directory, catalog, permissions, telemetry):
    alice = FakePlayer("A")
    bob = FakePlayer("B")
    carol = FakePlayer("C")
    directory.add(alice, bob, carol)
    plugin = _plugin(settings, directory, catalog, permissions, telemetry)

    plugin.on_plugin_loaded("Friends", FakeFriends({"A": ["B"]}))
    plugin.on_plugin_loaded("ClansReborn", FakeClans({"RB": ["A", "C"]}))
    plugin.on_plugin_loaded("Economics", object())

    assert sorted(plugin.service.resolver.resolve("A")) == ["A", "B", "C"]

    plugin.on_plugin_unloaded("Friends")
    assert plugin.service.resolver.resolve("A") == ["A", "C"]


def test_connect_hook_flushes_queue(settings, directory, catalog, permissions, telemetry):
    alice = FakePlayer("A")
    carol = FakePlayer("C", connected=False)
    directory.add(alice, carol)
    plugin = _plugin(settings, directory, catalog, permissions, telemetry, teams=FakeTeams([["A", "C"]]))
    plugin.on_item_action(FakeItem("rifle.ak"), "study", alice)

    carol.connected = True
    plugin.on_player_connected(carol)

    assert carol.unlocks == ["rifle.ak"]
    assert plugin.service.pending_blueprints("C") == []


def test_command_and_api(settings, directory, catalog, permissions, telemetry):
    permissions.grant("A", "blueprintshare.toggle")
    plugin = _plugin(settings, directory, catalog, permissions, telemetry)
    caller = FakeCaller("A")

    result = plugin.on_command(caller, "bs", ["toggle"])
    plugin.unload()

    assert result.handled is True
    assert plugin.sharing_enabled("A") is False
    assert telemetry.get_command_stats()["toggle"]["usage_count"] == 1


def test_settings_path_is_loaded(tmp_path, directory, catalog, permissions, telemetry):
    settings_path = tmp_path / "BlueprintShare.yaml"
    settings_path.write_text(
        f"storage:\n  data_dir: {tmp_path / 'store'}\nsharing:\n  enabled_by_default: false\n",
        encoding="utf-8",
    )

    plugin = build_plugin(
        directory=directory,
        catalog=catalog,
        permissions=permissions,
        settings_path=settings_path,
        telemetry=telemetry,
    )

    assert plugin.sharing_enabled("anyone") is False
    assert plugin.service.state.path == tmp_path / "store" / "BlueprintShare.json"
