import getpass
import hashlib
import logging
import signal
import sys

from PySide6.QtCore import QObject, QTimer
from PySide6.QtGui import QFont, QPalette
from PySide6.QtNetwork import QLocalServer, QLocalSocket
from PySide6.QtWidgets import QApplication, QMessageBox, QSystemTrayIcon

import gsettings_store
from app_info import APP_DISPLAY_NAME, APP_ID, APP_NAME
from app_monitor import AppInstallWatcher
from config import *
from folder_organizer import FolderOrganizer
from logging_setup import setup_logging
from scheduler import QtScheduler
from settings_store import IniSettingsStore, SettingsError
from ui_prefs import PreferencesDialog
from ui_tray import WizardTray
from wizard_toggle import ToggleController

logger = logging.getLogger(APP_ID)


class WizardApplication(QObject):
    """Wires the settings stores, organizer, controller and tray together."""

    def __init__(self, extension_settings, host_settings, parent=None):
        super().__init__(parent)
        self.extension_settings = extension_settings
        self.host_settings = host_settings
        self._prefs_dialog = None

        self.scheduler = QtScheduler()
        self.organizer = FolderOrganizer(
            extension_settings,
            host_settings.folders,
            host_settings.shell,
            host_settings.folder,
            self.scheduler,
        )
        self.app_watcher = AppInstallWatcher(parent=self)
        self.controller = ToggleController(
            extension_settings,
            self.organizer,
            self.app_watcher,
            self.scheduler,
            open_preferences=self.show_preferences,
            parent=self,
        )
        self.tray = WizardTray(self.controller, parent=self)

    def show(self):
        if QSystemTrayIcon.isSystemTrayAvailable():
            self.tray.show()
        else:
            logger.warning("No system tray available; opening preferences instead")
            QTimer.singleShot(0, self.show_preferences)

    def show_preferences(self):
        if self._prefs_dialog is None:
            self._prefs_dialog = PreferencesDialog(self.extension_settings, self.controller)
            self._prefs_dialog.destroyed.connect(self._on_prefs_destroyed)
        self._prefs_dialog.show()
        self._prefs_dialog.raise_()
        self._prefs_dialog.activateWindow()

    def _on_prefs_destroyed(self, *_):
        self._prefs_dialog = None

    def shutdown(self):
        self.tray.hide()
        self.controller.destroy()
        self.app_watcher.close()
        try:
            gsettings_store.sync()
        except Exception:
            logger.exception("Failed to flush settings")
        logger.info("Stopped")


def _instance_server_name():
    # One instance per user session.
    user_hash = hashlib.sha1(getpass.getuser().encode("utf-8")).hexdigest()[:12]
    return f"{APP_ID}_{user_hash}"


def _notify_running_instance(server_name):
    socket = QLocalSocket()
    socket.connectToServer(server_name)
    if not socket.waitForConnected(200):
        return False
    socket.write(b"prefs")
    socket.flush()
    socket.waitForBytesWritten(200)
    socket.disconnectFromServer()
    return True


def _listen_for_instances(server_name, wizard):
    QLocalServer.removeServer(server_name)
    server = QLocalServer(wizard)
    if not server.listen(server_name):
        logger.warning("Single-instance server unavailable: %s", server.errorString())
        return None

    def _on_new_connection():
        client = server.nextPendingConnection()
        if not client:
            return
        def _on_ready():
            client.readAll()  # consume message
            wizard.show_preferences()
            client.disconnectFromServer()
            client.deleteLater()
        client.readyRead.connect(_on_ready)
    server.newConnection.connect(_on_new_connection)
    return server


def main():
    setup_logging(get_log_path())
    try:
        signal.signal(signal.SIGINT, signal.SIG_DFL)
    except (ValueError, OSError):
        pass

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)
    app.setFont(QFont(FONT_FAMILY, 10))
    apply_theme("dark" if app.palette().color(QPalette.Window).lightness() < 128 else "light")

    server_name = _instance_server_name()
    if _notify_running_instance(server_name):
        logger.info("Already running; asked the running instance to show preferences")
        return 0

    try:
        host_settings = gsettings_store.HostSettings()
    except SettingsError as e:
        logger.error("GNOME Shell settings unavailable: %s", e)
        QMessageBox.critical(None, APP_NAME, f"{e}.\n\n{APP_NAME} needs a GNOME Shell session.")
        return 1

    extension_settings = IniSettingsStore(
        get_settings_path(),
        EXTENSION_DEFAULTS,
        section=SETTINGS_SECTION,
        value_codec=gsettings_store.VariantValueCodec(APP_PICKER_LAYOUT_TYPE),
    )

    wizard = WizardApplication(extension_settings, host_settings)
    wizard._single_instance_server = _listen_for_instances(server_name, wizard)
    app.aboutToQuit.connect(wizard.shutdown)
    wizard.show()
    logger.info("%s started (enabled=%s)", APP_DISPLAY_NAME, wizard.controller.active)

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
