"""
Snapshot / apply / restore of the GNOME Shell app grid folders.

The organizer never merges: ``apply_folders`` rewrites ``folder-children``
from scratch out of the enabled folder definitions, so re-applying after a
preference change is always safe. The pre-first-apply state is captured
once in the add-on settings and can be written back by ``restore_snapshot``.
"""

import logging

from config import (
    APP_PICKER_LAYOUT_KEY,
    EMPTY_LAYOUT,
    FOLDER_CATEGORIES_KEY,
    FOLDER_CHILDREN_KEY,
    FOLDER_DEFINITIONS,
    FOLDER_NAME_KEY,
    ORIGINAL_APP_LAYOUT_KEY,
    ORIGINAL_FOLDER_CHILDREN_KEY,
    RESET_LAYOUT_DELAY_MS,
    RESTORE_LAYOUT_DELAY_MS,
    SNAPSHOT_TAKEN_KEY,
)
from scheduler import TaskSlots

logger = logging.getLogger(__name__)

RESET_LAYOUT_SLOT = "reset-layout"
RESTORE_LAYOUT_SLOT = "restore-layout"


def layout_child_count(layout):
    """Number of pages in a layout blob; None counts as empty."""
    if layout is None:
        return 0
    return len(layout)


class FolderOrganizer:
    def __init__(self, extension_settings, folder_settings, shell_settings,
                 folder_store_for, scheduler, definitions=FOLDER_DEFINITIONS):
        self._extension_settings = extension_settings
        self._folder_settings = folder_settings
        self._shell_settings = shell_settings
        self._folder_store_for = folder_store_for
        self._definitions = tuple(definitions)
        self._sources = TaskSlots(scheduler)

    @property
    def known_ids(self):
        return [d.id for d in self._definitions]

    def has_snapshot(self):
        return self._extension_settings.get_boolean(SNAPSHOT_TAKEN_KEY)

    def _try_read_layout(self, store, key):
        """Returns the stored layout, or None when it is empty or unreadable."""
        try:
            layout = store.get_value(key)
            if layout_child_count(layout) > 0:
                return layout
        except Exception as e:
            logger.error("Failed to read %s from %r: %s", key, store, e)
        return None

    def take_snapshot(self):
        if self.has_snapshot():
            return False

        current = self._folder_settings.get_strv(FOLDER_CHILDREN_KEY)
        self._extension_settings.set_strv(ORIGINAL_FOLDER_CHILDREN_KEY, current)

        layout = self._try_read_layout(self._shell_settings, APP_PICKER_LAYOUT_KEY)
        try:
            self._extension_settings.set_value(
                ORIGINAL_APP_LAYOUT_KEY, list(EMPTY_LAYOUT) if layout is None else layout
            )
        except Exception as e:
            logger.error("Failed to snapshot %s: %s", APP_PICKER_LAYOUT_KEY, e)

        self._extension_settings.set_boolean(SNAPSHOT_TAKEN_KEY, True)
        logger.info("Snapshot saved (%d folders)", len(current))
        return True

    def enabled_definitions(self):
        return [d for d in self._definitions
                if self._extension_settings.get_boolean(d.settings_key)]

    def apply_folders(self):
        enabled = self.enabled_definitions()

        # Full replace: foreign folder ids are dropped on purpose.
        self._folder_settings.set_strv(FOLDER_CHILDREN_KEY, [d.id for d in enabled])

        for definition in enabled:
            store = self._folder_store_for(definition.id)
            store.set_string(FOLDER_NAME_KEY, definition.name)
            store.set_strv(FOLDER_CATEGORIES_KEY, list(definition.categories))

        logger.info("Folders applied: %s", ", ".join(d.id for d in enabled) or "none")
        self.reset_layout()

    def remove_folders(self):
        known = set(self.known_ids)
        current = self._folder_settings.get_strv(FOLDER_CHILDREN_KEY)
        filtered = [folder_id for folder_id in current if folder_id not in known]
        self._folder_settings.set_strv(FOLDER_CHILDREN_KEY, filtered)
        logger.info("Folders removed (%d kept)", len(filtered))

    def _write_empty_layout(self):
        self._shell_settings.set_value(APP_PICKER_LAYOUT_KEY, list(EMPTY_LAYOUT))
        logger.debug("Layout set to [] for auto-pagination")

    def reset_layout(self, immediate=False):
        if immediate:
            self._sources.cancel(RESET_LAYOUT_SLOT)
            try:
                self._write_empty_layout()
            except Exception as e:
                logger.error("Failed to reset app layout: %s", e)
            return
        self._sources.schedule(
            RESET_LAYOUT_SLOT, RESET_LAYOUT_DELAY_MS, self._write_empty_layout, low_priority=True
        )

    def restore_snapshot(self):
        if not self.has_snapshot():
            logger.info("No snapshot to restore")
            return False

        # A reset still queued from the last apply would wipe the restored layout.
        self._sources.cancel(RESET_LAYOUT_SLOT)
        original = self._extension_settings.get_strv(ORIGINAL_FOLDER_CHILDREN_KEY)
        self._folder_settings.set_strv(FOLDER_CHILDREN_KEY, original)
        # The layout refers to folders, so apply it once they are back.
        self._sources.schedule(
            RESTORE_LAYOUT_SLOT, RESTORE_LAYOUT_DELAY_MS, self._restore_layout, low_priority=True
        )
        logger.info("Snapshot restored (%d folders)", len(original))
        return True

    def _restore_layout(self):
        layout = self._try_read_layout(self._extension_settings, ORIGINAL_APP_LAYOUT_KEY)
        if layout is None:
            self.reset_layout()
            return
        self._sources.cancel(RESET_LAYOUT_SLOT)
        try:
            self._shell_settings.set_value(APP_PICKER_LAYOUT_KEY, layout)
            logger.debug("Original app layout applied")
        except Exception as e:
            logger.error("Failed to apply original app layout; falling back to auto layout: %s", e)
            self.reset_layout()

    def cancel_sources(self):
        self._sources.close()
