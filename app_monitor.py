import itertools
import logging
import os

from PySide6.QtCore import QFileSystemWatcher

logger = logging.getLogger(__name__)

INSTALLED_CHANGED = "installed-changed"


def application_dirs(environ=None):
    """Directories holding .desktop entries, in XDG lookup order."""
    environ = os.environ if environ is None else environ
    data_home = environ.get("XDG_DATA_HOME", "").strip() or os.path.join(
        environ.get("HOME", os.path.expanduser("~")), ".local", "share"
    )
    data_dirs = environ.get("XDG_DATA_DIRS", "").strip() or "/usr/local/share:/usr/share"

    roots = [data_home, os.path.join(data_home, "flatpak", "exports", "share")]
    roots += [d for d in data_dirs.split(":") if d]
    roots.append("/var/lib/flatpak/exports/share")

    dirs = []
    seen = set()
    for root in roots:
        path = os.path.join(root, "applications")
        if path in seen:
            continue
        seen.add(path)
        dirs.append(path)
    return dirs


class AppInstallWatcher:
    """
    Reports "installed-changed" whenever an application directory changes.

    Subscriptions use the GObject style ``connect("installed-changed", cb)``
    so the watcher can be handed around like the settings stores.
    """

    def __init__(self, dirs=None, parent=None):
        self._handlers = {}
        self._handler_ids = itertools.count(1)
        self._watcher = QFileSystemWatcher(parent)
        watched = [d for d in (dirs if dirs is not None else application_dirs()) if os.path.isdir(d)]
        if watched:
            self._watcher.addPaths(watched)
        logger.debug("Watching application dirs: %s", watched)
        self._watcher.directoryChanged.connect(self._on_directory_changed)

    def _on_directory_changed(self, path):
        logger.debug("Application dir changed: %s", path)
        self.emit_installed_changed()

    def emit_installed_changed(self):
        for handler_id, callback in list(self._handlers.items()):
            if handler_id in self._handlers:
                callback(self)

    def connect(self, signal, callback):
        if signal != INSTALLED_CHANGED:
            raise ValueError(f"Unknown signal: {signal}")
        handler_id = next(self._handler_ids)
        self._handlers[handler_id] = callback
        return handler_id

    def disconnect(self, handler_id):
        self._handlers.pop(handler_id, None)

    def close(self):
        self._handlers.clear()
        paths = self._watcher.directories()
        if paths:
            self._watcher.removePaths(paths)
