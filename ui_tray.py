from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QMenu, QStyle, QSystemTrayIcon, QApplication

from app_info import APP_NAME
from ui_prefs import confirm_restore


class WizardTray(QSystemTrayIcon):
    """
    Panel entry point: a checkable toggle plus restore / preferences actions.
    """

    def __init__(self, controller, parent=None):
        super().__init__(parent)
        self.controller = controller

        icon = QIcon.fromTheme("view-grid-symbolic")
        if icon.isNull():
            icon = QApplication.style().standardIcon(QStyle.SP_FileDialogListView)
        self.setIcon(icon)

        self.menu = QMenu()
        self.toggle_action = QAction(APP_NAME, self.menu)
        self.toggle_action.setCheckable(True)
        self.toggle_action.setChecked(controller.active)
        self.toggle_action.toggled.connect(controller.set_active)
        self.menu.addAction(self.toggle_action)
        self.menu.addSeparator()

        restore_action = self.menu.addAction("Restore Original Layout")
        restore_action.triggered.connect(lambda: self._on_restore())
        prefs_action = self.menu.addAction("More Settings…")
        prefs_action.triggered.connect(lambda: controller.open_preferences())
        self.menu.addSeparator()
        quit_action = self.menu.addAction("Quit")
        quit_action.triggered.connect(lambda: QApplication.quit())

        self.setContextMenu(self.menu)
        self.activated.connect(self._on_activated)
        controller.active_changed.connect(self._on_active_changed)
        self._update_tooltip(controller.active)

    def _update_tooltip(self, active):
        self.setToolTip(f"{APP_NAME}: {'on' if active else 'off'}")

    def _on_active_changed(self, active):
        if self.toggle_action.isChecked() != active:
            self.toggle_action.blockSignals(True)
            self.toggle_action.setChecked(active)
            self.toggle_action.blockSignals(False)
        self._update_tooltip(active)

    def _on_activated(self, reason):
        if reason == QSystemTrayIcon.Trigger:
            self.toggle_action.toggle()

    def _on_restore(self):
        if confirm_restore():
            self.controller.restore()
