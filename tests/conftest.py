import itertools
import pathlib
import sys

import pytest

repo_root = pathlib.Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from PySide6.QtCore import QCoreApplication

from config import (
    APP_PICKER_LAYOUT_KEY,
    EXTENSION_DEFAULTS,
    FOLDER_CATEGORIES_KEY,
    FOLDER_CHILDREN_KEY,
    FOLDER_NAME_KEY,
)
from folder_organizer import FolderOrganizer
from scheduler import ScheduledTask
from settings_store import SettingsStore


class ManualScheduler:
    """Scheduler double driven by simulated milliseconds."""

    def __init__(self):
        self.now = 0
        self._queue = []
        self._seq = itertools.count()

    def schedule(self, delay_ms, callback, low_priority=False):
        task = ScheduledTask(callback)
        task.low_priority = low_priority
        self._queue.append((self.now + delay_ms, next(self._seq), task))
        return task

    def pending_count(self):
        return sum(1 for _, _, task in self._queue if task.pending)

    def advance(self, ms):
        target = self.now + ms
        while True:
            due = [entry for entry in self._queue if entry[0] <= target and entry[2].pending]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._queue.remove(entry)
            self.now = entry[0]
            entry[2].fire()
        self.now = target
        self._queue = [entry for entry in self._queue if entry[2].pending]


class FakeAppSystem:
    def __init__(self):
        self._handlers = {}
        self._ids = itertools.count(1)

    @property
    def handler_count(self):
        return len(self._handlers)

    def connect(self, signal, callback):
        assert signal == "installed-changed"
        handler_id = next(self._ids)
        self._handlers[handler_id] = callback
        return handler_id

    def disconnect(self, handler_id):
        del self._handlers[handler_id]

    def emit_installed_changed(self):
        for callback in list(self._handlers.values()):
            callback(self)


class WriteLog:
    """Records every value written to one key of a store."""

    def __init__(self, store, key):
        self.values = []
        store.connect(f"changed::{key}", lambda s, k: self.values.append(s.get_value(k)))

    def __len__(self):
        return len(self.values)

    @property
    def last(self):
        return self.values[-1]


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def app_system():
    return FakeAppSystem()


@pytest.fixture
def ext_settings():
    return SettingsStore(EXTENSION_DEFAULTS)


@pytest.fixture
def folder_settings():
    return SettingsStore({FOLDER_CHILDREN_KEY: []})


@pytest.fixture
def shell_settings():
    return SettingsStore({APP_PICKER_LAYOUT_KEY: []})


@pytest.fixture
def folder_stores():
    stores = {}

    def factory(folder_id):
        if folder_id not in stores:
            stores[folder_id] = SettingsStore({FOLDER_NAME_KEY: "", FOLDER_CATEGORIES_KEY: []})
        return stores[folder_id]

    factory.stores = stores
    return factory


@pytest.fixture
def organizer(ext_settings, folder_settings, shell_settings, folder_stores, scheduler):
    return FolderOrganizer(ext_settings, folder_settings, shell_settings, folder_stores, scheduler)


@pytest.fixture
def layout_writes(shell_settings):
    return WriteLog(shell_settings, APP_PICKER_LAYOUT_KEY)


@pytest.fixture
def membership_writes(folder_settings):
    return WriteLog(folder_settings, FOLDER_CHILDREN_KEY)
