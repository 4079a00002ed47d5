"""
The on/off state machine behind the tray toggle.

Inactive -> Active   snapshot (once), apply folders, start monitoring
Active   -> Inactive reset layout, stop monitoring; folders are kept
restore()            back to the snapshot, enabled and snapshot flags cleared

The persisted ``enabled`` key can also be flipped from the preferences
page; the controller replays the matching transition when the stored value
and its own flag disagree, so echoes of its own writes are ignored.
"""

import logging

from PySide6.QtCore import QObject, Signal

from app_monitor import INSTALLED_CHANGED
from config import DEBOUNCE_DELAY_MS, ENABLED_KEY, FOLDER_SETTINGS_KEYS, SNAPSHOT_TAKEN_KEY
from scheduler import TaskSlots

logger = logging.getLogger(__name__)

DEBOUNCE_SLOT = "debounce"


class ChangeMonitor:
    """Turns install and preference notifications into one debounced apply."""

    def __init__(self, app_system, scheduler, is_active, on_update, delay_ms=DEBOUNCE_DELAY_MS):
        self._app_system = app_system
        self._is_active = is_active
        self._on_update = on_update
        self._delay_ms = delay_ms
        self._sources = TaskSlots(scheduler)
        self._monitor_id = None

    @property
    def monitoring(self):
        return self._monitor_id is not None

    @property
    def update_pending(self):
        return self._sources.pending(DEBOUNCE_SLOT)

    def start(self):
        if self._monitor_id is not None:
            return
        self._monitor_id = self._app_system.connect(
            INSTALLED_CHANGED, lambda *_: self.schedule_update()
        )
        logger.debug("Monitoring started")

    def stop(self):
        if self._monitor_id is not None:
            self._app_system.disconnect(self._monitor_id)
            self._monitor_id = None
        self._sources.cancel(DEBOUNCE_SLOT)
        logger.debug("Monitoring stopped")

    def schedule_update(self):
        self._sources.schedule(DEBOUNCE_SLOT, self._delay_ms, self._fire)

    def _fire(self):
        # State may have changed while we were waiting.
        if self._is_active():
            self._on_update()

    def close(self):
        self.stop()
        self._sources.close()


class ToggleController(QObject):
    active_changed = Signal(bool)

    def __init__(self, extension_settings, organizer, app_system, scheduler,
                 open_preferences=None, parent=None):
        super().__init__(parent)
        self._settings = extension_settings
        self._organizer = organizer
        self._open_preferences = open_preferences
        self._monitor = ChangeMonitor(
            app_system, scheduler, lambda: self._active, self._organizer.apply_folders
        )
        self._settings_changed_ids = []
        self._destroyed = False

        self._active = self._settings.get_boolean(ENABLED_KEY)

        # Reflect external changes to the enabled flag (e.g. from preferences)
        self._enabled_changed_id = self._settings.connect(
            f"changed::{ENABLED_KEY}", self._on_enabled_changed
        )
        for key in FOLDER_SETTINGS_KEYS:
            self._settings_changed_ids.append(
                self._settings.connect(f"changed::{key}", self._on_folder_setting_changed)
            )

        if self._active:
            self._monitor.start()

    @property
    def active(self):
        return self._active

    @property
    def monitor(self):
        return self._monitor

    def has_snapshot(self):
        return self._settings.get_boolean(SNAPSHOT_TAKEN_KEY)

    def _set_flag(self, active):
        self._active = active
        self.active_changed.emit(active)

    def _activate(self):
        self._organizer.take_snapshot()
        self._organizer.apply_folders()
        self._monitor.start()

    def _deactivate(self):
        # Non-destructive: folders stay, only the grid is compacted.
        self._organizer.reset_layout()
        self._monitor.stop()

    def _transition(self, active):
        try:
            if active:
                self._activate()
            else:
                self._deactivate()
        except Exception:
            logger.exception("Failed to switch %s", "on" if active else "off")

    def set_active(self, active):
        """User toggle."""
        active = bool(active)
        if self._destroyed or active == self._active:
            return
        self._set_flag(active)
        self._settings.set_boolean(ENABLED_KEY, active)
        self._transition(active)
        logger.info("Toggled %s", "on" if active else "off")

    def _on_enabled_changed(self, settings, key):
        enabled = settings.get_boolean(key)
        if enabled == self._active:
            return
        logger.debug("External change of '%s' to %s", key, enabled)
        self._set_flag(enabled)
        self._transition(enabled)

    def _on_folder_setting_changed(self, settings, key):
        if self._active:
            self._monitor.schedule_update()

    def restore(self):
        """
        Explicit restore: brings back the pre-first-enable folders and layout
        and leaves the add-on disabled with no snapshot.
        """
        if self._destroyed:
            return False
        if self._active:
            self._set_flag(False)
        self._monitor.stop()

        try:
            if not self._organizer.restore_snapshot():
                # Nothing captured yet: strip our folders and keep the rest.
                self._organizer.remove_folders()
                self._organizer.reset_layout()
        except Exception:
            logger.exception("Failed to restore original layout")
            self._settings.set_boolean(ENABLED_KEY, False)
            return False

        self._settings.set_boolean(ENABLED_KEY, False)
        self._settings.set_boolean(SNAPSHOT_TAKEN_KEY, False)
        logger.info("Original layout restored")
        return True

    def open_preferences(self):
        if self._open_preferences is None:
            return
        try:
            self._open_preferences()
        except Exception:
            logger.exception("Failed to open preferences")

    def destroy(self):
        if self._destroyed:
            return
        self._destroyed = True
        self._monitor.close()

        for handler_id in self._settings_changed_ids:
            self._settings.disconnect(handler_id)
        self._settings_changed_ids = []
        if self._enabled_changed_id is not None:
            self._settings.disconnect(self._enabled_changed_id)
            self._enabled_changed_id = None

        # Cancel pending layout/restore work, then compact the grid once.
        self._organizer.cancel_sources()
        self._organizer.reset_layout(immediate=True)
        logger.debug("Toggle destroyed")
