import os
from dataclasses import dataclass
from PySide6.QtGui import QColor

from app_info import APP_ID

PREFS_WIDTH = 460
PREFS_HEIGHT = 640
BORDER_RADIUS = 10

# Colors (mutable for theme switching)
COLOR_BG_START = QColor("#0e1014")
COLOR_BG_END = QColor("#1b1f26")
COLOR_ACCENT = QColor("#3584e4")  # GNOME blue
COLOR_DESTRUCTIVE = QColor("#e01b24")
COLOR_TEXT_MAIN = QColor("#ffffff")
COLOR_TEXT_SUB = QColor("#a0a0a0")
COLOR_GLASS_BORDER = QColor(255, 255, 255, 30)
COLOR_HOVER = QColor(255, 255, 255, 20)

_THEME_DARK = {
    "bg_start": "#0e1014",
    "bg_end": "#1b1f26",
    "text_main": "#ffffff",
    "text_sub": "#a0a0a0",
    "glass_border": (255, 255, 255, 30),
    "hover": (255, 255, 255, 20),
}

_THEME_LIGHT = {
    "bg_start": "#FAFAFA",
    "bg_end": "#F0F0F0",
    "text_main": "#101318",
    "text_sub": "#4d5561",
    "glass_border": (0, 0, 0, 25),
    "hover": (0, 0, 0, 15),
}

def _set_named(qcolor, value):
    qcolor.setRgba(QColor(value).rgba())

def _set_rgba(qcolor, rgba):
    qcolor.setRgb(rgba[0], rgba[1], rgba[2], rgba[3])

def apply_theme(mode):
    """
    Mutates shared QColor instances so modules with `from config import *`
    pick up the new colors when widgets are built.
    """
    theme = _THEME_DARK if mode == "dark" else _THEME_LIGHT

    _set_named(COLOR_BG_START, theme["bg_start"])
    _set_named(COLOR_BG_END, theme["bg_end"])
    _set_named(COLOR_TEXT_MAIN, theme["text_main"])
    _set_named(COLOR_TEXT_SUB, theme["text_sub"])
    _set_rgba(COLOR_GLASS_BORDER, theme["glass_border"])
    _set_rgba(COLOR_HOVER, theme["hover"])

def qcolor_to_rgba(color):
    r, g, b, a = color.getRgb()
    return f"rgba({r}, {g}, {b}, {a})"

FONT_FAMILY = "Cantarell"

# -----------------------------------------------------------------------------
# Host settings (GNOME Shell app grid)
# -----------------------------------------------------------------------------

APP_FOLDER_SCHEMA_ID = "org.gnome.desktop.app-folders"
APP_FOLDER_CHILD_SCHEMA_ID = "org.gnome.desktop.app-folders.folder"
APP_FOLDER_SCHEMA_PATH = "/org/gnome/desktop/app-folders/folders/"
SHELL_SCHEMA_ID = "org.gnome.shell"

FOLDER_CHILDREN_KEY = "folder-children"
FOLDER_NAME_KEY = "name"
FOLDER_CATEGORIES_KEY = "categories"
APP_PICKER_LAYOUT_KEY = "app-picker-layout"
APP_PICKER_LAYOUT_TYPE = "aa{sv}"

# Written to app-picker-layout to make the shell re-paginate icons.
EMPTY_LAYOUT = []

# -----------------------------------------------------------------------------
# Add-on settings
# -----------------------------------------------------------------------------

SETTINGS_SECTION = "Settings"

ENABLED_KEY = "enabled"
SNAPSHOT_TAKEN_KEY = "snapshot-taken"
ORIGINAL_FOLDER_CHILDREN_KEY = "original-folder-children"
ORIGINAL_APP_LAYOUT_KEY = "original-app-layout"

# Timings (ms)
DEBOUNCE_DELAY_MS = 2000
RESET_LAYOUT_DELAY_MS = 300
RESTORE_LAYOUT_DELAY_MS = 200


@dataclass(frozen=True)
class FolderDefinition:
    id: str
    settings_key: str
    name: str
    subtitle: str
    categories: tuple


FOLDER_DEFINITIONS = (
    FolderDefinition("agw-accessories", "folder-accessories", "Accessories",
                     "Utility apps", ("Utility",)),
    FolderDefinition("agw-chrome-apps", "folder-chrome-apps", "Chrome Apps",
                     "Chrome web applications", ("chrome-apps",)),
    FolderDefinition("agw-games", "folder-games", "Games",
                     "Gaming applications", ("Game",)),
    FolderDefinition("agw-graphics", "folder-graphics", "Graphics",
                     "Image and design tools", ("Graphics",)),
    FolderDefinition("agw-internet", "folder-internet", "Internet",
                     "Network, browsers, and email", ("Network", "WebBrowser", "Email")),
    FolderDefinition("agw-office", "folder-office", "Office",
                     "Productivity applications", ("Office",)),
    FolderDefinition("agw-programming", "folder-programming", "Programming",
                     "Development tools", ("Development",)),
    FolderDefinition("agw-science", "folder-science", "Science",
                     "Scientific applications", ("Science",)),
    FolderDefinition("agw-sound-video", "folder-sound-video", "Sound & Video",
                     "Audio and video applications", ("AudioVideo", "Audio", "Video")),
    FolderDefinition("agw-system-tools", "folder-system-tools", "System Tools",
                     "System and settings", ("System", "Settings")),
    FolderDefinition("agw-universal-access", "folder-universal-access", "Universal Access",
                     "Accessibility tools", ("Accessibility",)),
    FolderDefinition("agw-wine", "folder-wine", "Wine",
                     "Windows applications", ("Wine", "X-Wine", "Wine-Programs-Accessories")),
    FolderDefinition("agw-waydroid", "folder-waydroid", "Waydroid",
                     "Android applications", ("Waydroid", "X-WayDroid-App")),
)

FOLDER_IDS = tuple(d.id for d in FOLDER_DEFINITIONS)
FOLDER_SETTINGS_KEYS = tuple(d.settings_key for d in FOLDER_DEFINITIONS)

EXTENSION_DEFAULTS = {
    ENABLED_KEY: False,
    SNAPSHOT_TAKEN_KEY: False,
    ORIGINAL_FOLDER_CHILDREN_KEY: [],
    ORIGINAL_APP_LAYOUT_KEY: None,
}
EXTENSION_DEFAULTS.update({key: True for key in FOLDER_SETTINGS_KEYS})

def folder_settings_path(folder_id):
    return f"{APP_FOLDER_SCHEMA_PATH}{folder_id}/"

# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------

def get_data_dir():
    data_dir = os.environ.get("APP_GRID_WIZARD_DATA_DIR", "").strip()
    if not data_dir:
        data_home = os.environ.get("XDG_DATA_HOME", "").strip() or os.path.expanduser("~/.local/share")
        data_dir = os.path.join(data_home, APP_ID)
    os.makedirs(data_dir, exist_ok=True)
    return data_dir

def get_settings_path():
    return os.path.join(get_data_dir(), "settings.ini")

def get_log_path():
    log_dir = os.path.join(get_data_dir(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, f"{APP_ID}.log")
