"""
Key/value settings stores with GSettings-style change notification.

Every store exposes the same small surface:

    get_boolean / set_boolean
    get_string  / set_string
    get_strv    / set_strv
    get_value   / set_value      (opaque values)
    connect("changed" | "changed::<key>", callback) -> handler id
    disconnect(handler id)

Callbacks are invoked as ``callback(store, key)`` after every write, also
when the written value equals the stored one. Listeners are expected to
tolerate echoes of their own writes.
"""

import configparser
import copy
import itertools
import json
import logging
import os

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    """Base class for settings access failures."""


class SchemaNotFoundError(SettingsError):
    def __init__(self, schema_id):
        super().__init__(f"Settings schema '{schema_id}' is not installed")
        self.schema_id = schema_id


class JsonValueCodec:
    """Encodes opaque values as JSON text."""

    def encode(self, value):
        return json.dumps(value)

    def decode(self, text):
        return json.loads(text)


class SettingsStore:
    """
    In-memory store. Keys must be declared up front through ``defaults``;
    touching an unknown key raises KeyError.
    """

    def __init__(self, defaults):
        self._defaults = dict(defaults)
        self._values = {}
        self._handlers = {}
        self._handler_ids = itertools.count(1)

    # -- subscriptions ------------------------------------------------------

    def connect(self, signal, callback):
        name, _, detail = signal.partition("::")
        if name != "changed":
            raise ValueError(f"Unknown signal: {signal}")
        if detail:
            self._check_key(detail)
        handler_id = next(self._handler_ids)
        self._handlers[handler_id] = (detail or None, callback)
        return handler_id

    def disconnect(self, handler_id):
        self._handlers.pop(handler_id, None)

    def _emit_changed(self, key):
        # Handlers may disconnect while we iterate.
        for handler_id, (detail, callback) in list(self._handlers.items()):
            if handler_id not in self._handlers:
                continue
            if detail is None or detail == key:
                callback(self, key)

    # -- raw access ---------------------------------------------------------

    def keys(self):
        return list(self._defaults)

    def _check_key(self, key):
        if key not in self._defaults:
            raise KeyError(f"Unknown settings key: {key}")

    def _read(self, key):
        self._check_key(key)
        if key in self._values:
            return self._values[key]
        return copy.deepcopy(self._defaults[key])

    def _write(self, key, value):
        self._check_key(key)
        self._values[key] = value
        self._persist(key)
        self._emit_changed(key)

    def _persist(self, key):
        pass

    # -- typed access -------------------------------------------------------

    def get_boolean(self, key):
        return bool(self._read(key))

    def set_boolean(self, key, value):
        self._write(key, bool(value))

    def get_string(self, key):
        value = self._read(key)
        return "" if value is None else str(value)

    def set_string(self, key, value):
        self._write(key, str(value))

    def get_strv(self, key):
        return [str(item) for item in (self._read(key) or [])]

    def set_strv(self, key, values):
        self._write(key, [str(item) for item in values])

    def get_value(self, key):
        return self._read(key)

    def set_value(self, key, value):
        self._write(key, value)


class IniSettingsStore(SettingsStore):
    """
    Store persisted to an INI file, one option per key in a single section.

    Booleans are written as true/false, string lists as JSON arrays and
    opaque values through ``value_codec``. Values are decoded lazily so a
    malformed entry only fails the read that touches it (ValueError).
    """

    def __init__(self, path, defaults, section="Settings", value_codec=None):
        super().__init__(defaults)
        self.path = path
        self.section = section
        self.value_codec = value_codec or JsonValueCodec()
        self._config = configparser.ConfigParser(interpolation=None)
        self._config.optionxform = str
        self._load()

    def _load(self):
        if not os.path.exists(self.path):
            return
        try:
            self._config.read(self.path, encoding="utf-8")
        except configparser.Error as e:
            logger.error("Error reading %s: %s", self.path, e)
            self._config = configparser.ConfigParser(interpolation=None)
            self._config.optionxform = str

    def _kind(self, key):
        default = self._defaults[key]
        if isinstance(default, bool):
            return "bool"
        if isinstance(default, list):
            return "strv"
        if isinstance(default, str):
            return "string"
        return "value"

    def _read(self, key):
        self._check_key(key)
        if key in self._values:
            return self._values[key]
        if not self._config.has_option(self.section, key):
            return copy.deepcopy(self._defaults[key])

        raw = self._config.get(self.section, key)
        kind = self._kind(key)
        if kind == "bool":
            value = self._config.getboolean(self.section, key)
        elif kind == "strv":
            try:
                value = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError(f"Malformed list for '{key}': {e}") from e
            if not isinstance(value, list):
                raise ValueError(f"Malformed list for '{key}'")
        elif kind == "string":
            value = raw
        else:
            try:
                value = self.value_codec.decode(raw)
            except Exception as e:
                raise ValueError(f"Malformed value for '{key}': {e}") from e
        self._values[key] = value
        return value

    def _encode(self, key, value):
        kind = self._kind(key)
        if kind == "bool":
            return "true" if value else "false"
        if kind == "strv":
            return json.dumps(list(value))
        if kind == "string":
            return value
        return self.value_codec.encode(value)

    def _persist(self, key):
        if not self._config.has_section(self.section):
            self._config.add_section(self.section)
        self._config.set(self.section, key, self._encode(key, self._values[key]))
        tmp_path = self.path + ".tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                self._config.write(f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            # The in-memory value stays authoritative for this session.
            logger.error("Error saving %s: %s", self.path, e)
