import logging

import pytest

from config import (
    APP_PICKER_LAYOUT_KEY,
    ENABLED_KEY,
    FOLDER_CHILDREN_KEY,
    FOLDER_IDS,
    ORIGINAL_FOLDER_CHILDREN_KEY,
    SNAPSHOT_TAKEN_KEY,
)
from wizard_toggle import ChangeMonitor, ToggleController

LAYOUT = [{"org.gnome.Terminal.desktop": {"position": 0}}]


@pytest.fixture
def make_controller(ext_settings, organizer, app_system, scheduler):
    controllers = []

    def _make(**kwargs):
        controller = ToggleController(ext_settings, organizer, app_system, scheduler, **kwargs)
        controllers.append(controller)
        return controller

    yield _make
    for controller in controllers:
        controller.destroy()


@pytest.fixture
def controller(make_controller):
    return make_controller()


def _applied(membership_writes):
    """Number of full applies, recognised by the complete folder list."""
    return sum(1 for value in membership_writes.values if value == list(FOLDER_IDS))


def test_starts_inactive_without_monitoring(controller, app_system):
    assert controller.active is False
    assert controller.monitor.monitoring is False
    assert app_system.handler_count == 0


def test_starts_monitoring_when_enabled_flag_is_persisted(ext_settings, make_controller, app_system):
    ext_settings.set_boolean(ENABLED_KEY, True)

    controller = make_controller()

    assert controller.active is True
    assert app_system.handler_count == 1


def test_toggle_on_snapshots_applies_and_monitors(controller, ext_settings, folder_settings, app_system):
    folder_settings.set_strv(FOLDER_CHILDREN_KEY, ["Utilities"])
    states = []
    controller.active_changed.connect(lambda active: states.append(active))

    controller.set_active(True)

    assert states == [True]
    assert ext_settings.get_boolean(ENABLED_KEY)
    assert ext_settings.get_boolean(SNAPSHOT_TAKEN_KEY)
    assert ext_settings.get_strv(ORIGINAL_FOLDER_CHILDREN_KEY) == ["Utilities"]
    assert folder_settings.get_strv(FOLDER_CHILDREN_KEY) == list(FOLDER_IDS)
    assert controller.monitor.monitoring
    assert app_system.handler_count == 1


def test_own_enabled_write_is_not_replayed(controller, membership_writes):
    controller.set_active(True)
    controller.set_active(True)

    assert _applied(membership_writes) == 1


def test_toggle_off_keeps_folders_and_compacts_layout(controller, scheduler, folder_settings, app_system,
                                                      layout_writes):
    controller.set_active(True)
    scheduler.advance(1000)
    layout_writes.values.clear()

    controller.set_active(False)

    assert folder_settings.get_strv(FOLDER_CHILDREN_KEY) == list(FOLDER_IDS)
    assert controller.monitor.monitoring is False
    assert app_system.handler_count == 0
    scheduler.advance(300)
    assert layout_writes.values == [[]]


def test_toggle_off_and_on_keeps_first_snapshot(controller, ext_settings, folder_settings):
    folder_settings.set_strv(FOLDER_CHILDREN_KEY, ["Utilities", "YaST"])

    controller.set_active(True)
    controller.set_active(False)
    controller.set_active(True)

    assert ext_settings.get_strv(ORIGINAL_FOLDER_CHILDREN_KEY) == ["Utilities", "YaST"]


def test_install_bursts_are_coalesced(controller, scheduler, app_system, membership_writes):
    controller.set_active(True)
    assert _applied(membership_writes) == 1

    for _ in range(5):
        app_system.emit_installed_changed()
        scheduler.advance(500)

    # 500 ms after the last event: still waiting.
    assert _applied(membership_writes) == 1
    scheduler.advance(1499)
    assert _applied(membership_writes) == 1
    scheduler.advance(1)
    assert _applied(membership_writes) == 2
    scheduler.advance(10000)
    assert _applied(membership_writes) == 2


def test_folder_preference_change_reapplies_while_active(controller, ext_settings, scheduler, folder_settings):
    controller.set_active(True)

    ext_settings.set_boolean("folder-games", False)
    ext_settings.set_boolean("folder-wine", False)
    assert "agw-games" in folder_settings.get_strv(FOLDER_CHILDREN_KEY)

    scheduler.advance(2000)
    current = folder_settings.get_strv(FOLDER_CHILDREN_KEY)
    assert "agw-games" not in current
    assert "agw-wine" not in current


def test_preference_change_while_inactive_does_nothing(controller, ext_settings, scheduler, membership_writes):
    ext_settings.set_boolean("folder-games", False)

    assert controller.monitor.update_pending is False
    assert scheduler.pending_count() == 0
    scheduler.advance(5000)
    assert membership_writes.values == []


def test_debounced_update_rechecks_active_flag(scheduler, app_system):
    state = {"active": True}
    calls = []
    monitor = ChangeMonitor(app_system, scheduler, lambda: state["active"], lambda: calls.append(True))
    monitor.start()
    monitor.start()
    assert app_system.handler_count == 1

    app_system.emit_installed_changed()
    state["active"] = False  # flipped while the timer is pending
    scheduler.advance(5000)
    assert calls == []

    state["active"] = True
    app_system.emit_installed_changed()
    scheduler.advance(2000)
    assert calls == [True]

    monitor.stop()
    monitor.stop()
    assert app_system.handler_count == 0


def test_external_enable_replays_transition_once(controller, ext_settings, folder_settings, membership_writes):
    states = []
    controller.active_changed.connect(lambda active: states.append(active))

    ext_settings.set_boolean(ENABLED_KEY, True)
    ext_settings.set_boolean(ENABLED_KEY, True)

    assert controller.active is True
    assert states == [True]
    assert ext_settings.get_boolean(SNAPSHOT_TAKEN_KEY)
    assert _applied(membership_writes) == 1
    assert controller.monitor.monitoring


def test_external_disable_stops_monitoring(controller, ext_settings, scheduler, app_system, layout_writes):
    controller.set_active(True)
    scheduler.advance(1000)
    layout_writes.values.clear()

    ext_settings.set_boolean(ENABLED_KEY, False)

    assert controller.active is False
    assert app_system.handler_count == 0
    scheduler.advance(300)
    assert layout_writes.values == [[]]


def test_restore_clears_enable_state(controller, organizer, ext_settings, folder_settings, shell_settings,
                                     scheduler, app_system, layout_writes):
    folder_settings.set_strv(FOLDER_CHILDREN_KEY, ["x", "y"])
    shell_settings.set_value(APP_PICKER_LAYOUT_KEY, LAYOUT)
    controller.set_active(True)
    scheduler.advance(1000)
    states = []
    controller.active_changed.connect(lambda active: states.append(active))

    assert controller.restore() is True

    assert states == [False]
    assert controller.active is False
    assert app_system.handler_count == 0
    assert ext_settings.get_boolean(ENABLED_KEY) is False
    assert ext_settings.get_boolean(SNAPSHOT_TAKEN_KEY) is False
    assert folder_settings.get_strv(FOLDER_CHILDREN_KEY) == ["x", "y"]

    scheduler.advance(1000)
    assert layout_writes.last == LAYOUT

    folder_settings.set_strv(FOLDER_CHILDREN_KEY, ["z"])
    assert organizer.take_snapshot() is True
    assert ext_settings.get_strv(ORIGINAL_FOLDER_CHILDREN_KEY) == ["z"]


def test_restore_without_snapshot_removes_only_our_folders(controller, ext_settings, folder_settings,
                                                           scheduler, layout_writes):
    folder_settings.set_strv(FOLDER_CHILDREN_KEY, ["foo", "agw-games"])

    assert controller.restore() is True

    assert folder_settings.get_strv(FOLDER_CHILDREN_KEY) == ["foo"]
    assert ext_settings.get_boolean(ENABLED_KEY) is False
    scheduler.advance(300)
    assert layout_writes.values == [[]]


def test_restore_right_after_enable_keeps_original_layout(controller, shell_settings, scheduler):
    shell_settings.set_value(APP_PICKER_LAYOUT_KEY, LAYOUT)
    controller.set_active(True)
    scheduler.advance(50)

    assert controller.restore() is True
    scheduler.advance(5000)

    assert shell_settings.get_value(APP_PICKER_LAYOUT_KEY) == LAYOUT


def test_restore_failure_is_logged_and_disables(controller, ext_settings, folder_settings, monkeypatch,
                                                 caplog):
    controller.set_active(True)

    def _broken(key, value):
        raise RuntimeError("key not writable")

    monkeypatch.setattr(folder_settings, "set_strv", _broken)
    with caplog.at_level(logging.ERROR):
        assert controller.restore() is False

    assert "Failed to restore original layout" in caplog.text
    assert ext_settings.get_boolean(ENABLED_KEY) is False
    assert controller.active is False
    # The snapshot survives for another attempt.
    assert ext_settings.get_boolean(SNAPSHOT_TAKEN_KEY) is True


def test_destroy_cancels_all_pending_work(make_controller, scheduler, app_system, ext_settings,
                                          membership_writes, layout_writes):
    controller = make_controller()
    controller.set_active(True)
    app_system.emit_installed_changed()
    controller.restore()
    controller.set_active(True)
    app_system.emit_installed_changed()
    assert scheduler.pending_count() > 0

    controller.destroy()
    # One synchronous reset during teardown.
    assert layout_writes.values[-1] == []
    applies = len(membership_writes)
    layouts = len(layout_writes)

    scheduler.advance(60000)
    assert len(membership_writes) == applies
    assert len(layout_writes) == layouts
    assert app_system.handler_count == 0

    ext_settings.set_boolean(ENABLED_KEY, False)
    ext_settings.set_boolean("folder-games", False)
    assert scheduler.pending_count() == 0


def test_destroy_is_idempotent(controller, layout_writes):
    controller.destroy()
    controller.destroy()
    assert layout_writes.values == [[]]


def test_open_preferences_failure_is_logged(make_controller, caplog):
    def _broken():
        raise RuntimeError("no display")

    controller = make_controller(open_preferences=_broken)
    with caplog.at_level(logging.ERROR):
        controller.open_preferences()

    assert "Failed to open preferences" in caplog.text


def test_open_preferences_calls_opener(make_controller):
    calls = []
    controller = make_controller(open_preferences=lambda: calls.append(True))

    controller.open_preferences()

    assert calls == [True]
