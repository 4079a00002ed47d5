"""GSettings backed stores for the GNOME Shell app grid keys."""

import logging

import gi

gi.require_version("Gio", "2.0")
gi.require_version("GLib", "2.0")
from gi.repository import Gio, GLib  # noqa: E402

from config import (  # noqa: E402
    APP_FOLDER_CHILD_SCHEMA_ID,
    APP_FOLDER_SCHEMA_ID,
    SHELL_SCHEMA_ID,
    folder_settings_path,
)
from settings_store import SchemaNotFoundError, SettingsError  # noqa: E402

logger = logging.getLogger(__name__)


def lookup_schema(schema_id):
    source = Gio.SettingsSchemaSource.get_default()
    schema = source.lookup(schema_id, True) if source else None
    if schema is None:
        raise SchemaNotFoundError(schema_id)
    return schema


class GSettingsStore:
    """
    Thin adapter over Gio.Settings exposing the SettingsStore surface.

    Opaque values are GLib.Variant instances. ``set_value`` also accepts
    plain Python data and packs it with the key's declared type.
    """

    def __init__(self, schema_id, path=None):
        self.schema_id = schema_id
        self.path = path
        self._schema = lookup_schema(schema_id)
        self._settings = Gio.Settings.new_full(self._schema, None, path)

    def __repr__(self):
        where = f" at {self.path}" if self.path else ""
        return f"<GSettingsStore {self.schema_id}{where}>"

    def connect(self, signal, callback):
        return self._settings.connect(signal, lambda _settings, key: callback(self, key))

    def disconnect(self, handler_id):
        self._settings.disconnect(handler_id)

    def _check_key(self, key):
        if not self._schema.has_key(key):
            raise KeyError(f"{self.schema_id} has no key '{key}'")

    def _check_written(self, key, ok):
        if not ok:
            raise SettingsError(f"{self.schema_id}: key '{key}' is not writable")

    def type_string(self, key):
        self._check_key(key)
        return self._schema.get_key(key).get_value_type().dup_string()

    def get_boolean(self, key):
        self._check_key(key)
        return self._settings.get_boolean(key)

    def set_boolean(self, key, value):
        self._check_key(key)
        self._check_written(key, self._settings.set_boolean(key, bool(value)))

    def get_string(self, key):
        self._check_key(key)
        return self._settings.get_string(key)

    def set_string(self, key, value):
        self._check_key(key)
        self._check_written(key, self._settings.set_string(key, str(value)))

    def get_strv(self, key):
        self._check_key(key)
        return list(self._settings.get_strv(key))

    def set_strv(self, key, values):
        self._check_key(key)
        self._check_written(key, self._settings.set_strv(key, [str(v) for v in values]))

    def get_value(self, key):
        self._check_key(key)
        return self._settings.get_value(key)

    def set_value(self, key, value):
        if not isinstance(value, GLib.Variant):
            value = GLib.Variant(self.type_string(key), value)
        self._check_key(key)
        self._check_written(key, self._settings.set_value(key, value))


class VariantValueCodec:
    """Stores GLib.Variant values as GVariant text (type annotated)."""

    def __init__(self, type_string):
        self.type_string = type_string

    def encode(self, value):
        if value is None:
            value = []
        if not isinstance(value, GLib.Variant):
            value = GLib.Variant(self.type_string, value)
        return value.print_(True)

    def decode(self, text):
        return GLib.Variant.parse(GLib.VariantType.new(self.type_string), text, None, None)


class HostSettings:
    """The three GNOME Shell settings namespaces the organizer writes to."""

    def __init__(self):
        self.folders = GSettingsStore(APP_FOLDER_SCHEMA_ID)
        self.shell = GSettingsStore(SHELL_SCHEMA_ID)
        # Fail early rather than on the first apply.
        lookup_schema(APP_FOLDER_CHILD_SCHEMA_ID)
        self._folder_stores = {}

    def folder(self, folder_id):
        store = self._folder_stores.get(folder_id)
        if store is None:
            store = GSettingsStore(APP_FOLDER_CHILD_SCHEMA_ID, folder_settings_path(folder_id))
            self._folder_stores[folder_id] = store
        return store


def sync():
    """Flush pending GSettings writes to the backend."""
    Gio.Settings.sync()
