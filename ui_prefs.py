import logging
import webbrowser

from PySide6.QtCore import Qt, Signal, QPropertyAnimation, QEasingCurve, Property, QRect
from PySide6.QtGui import QColor, QPainter, QFont
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QDialog, QScrollArea, QFrame,
    QPushButton, QMessageBox, QSizePolicy
)

from app_info import APP_NAME, APP_AUTHOR, APP_DISPLAY_NAME, PROJECT_URL
from config import *
from ui_base import AnimatableWidget, PreferencesGroup

logger = logging.getLogger(__name__)


def confirm_restore(parent=None):
    msg = QMessageBox(parent)
    msg.setIcon(QMessageBox.Question)
    msg.setWindowTitle("Restore Original Folders?")
    msg.setText("This will remove all folders created by App Grid Wizard and restore your original folder setup.")
    msg.setStandardButtons(QMessageBox.Yes | QMessageBox.No)
    msg.button(QMessageBox.Yes).setText("Restore")
    msg.button(QMessageBox.No).setText("Cancel")
    msg.setDefaultButton(QMessageBox.No)
    return msg.exec() == QMessageBox.Yes


def open_url(url):
    try:
        if not webbrowser.open(url):
            logger.warning("No browser available to open %s", url)
            return False
        return True
    except Exception:
        logger.exception("Failed to open %s", url)
        return False


class ToggleSwitch(QWidget):
    toggled = Signal(bool)

    def __init__(self, checked=False, parent=None):
        super().__init__(parent)
        self._checked = checked
        self._offset = 0
        self._hovered = False
        self.setFixedSize(44, 22)
        self.setCursor(Qt.PointingHandCursor)

        self.anim = QPropertyAnimation(self, b"thumb_offset")
        self.anim.setDuration(120)
        self.anim.setEasingCurve(QEasingCurve.OutQuad)
        self._sync_offset(animate=False)

    def sizeHint(self):
        return self.size()

    def isChecked(self):
        return self._checked

    def setChecked(self, checked, animate=True, notify=True):
        checked = bool(checked)
        if self._checked == checked:
            return
        self._checked = checked
        self._sync_offset(animate=animate)
        if notify:
            self.toggled.emit(self._checked)
        self.update()

    def toggle(self):
        self.setChecked(not self._checked)

    def _sync_offset(self, animate=True):
        thumb_d = self.height() - 6
        off = 3 if not self._checked else self.width() - thumb_d - 3
        if animate:
            self.anim.stop()
            self.anim.setStartValue(self._offset)
            self.anim.setEndValue(off)
            self.anim.start()
        else:
            self._offset = off
            self.update()

    def get_thumb_offset(self):
        return self._offset

    def set_thumb_offset(self, value):
        self._offset = value
        self.update()

    thumb_offset = Property(float, get_thumb_offset, set_thumb_offset)

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.toggle()
            event.accept()
            return
        super().mousePressEvent(event)

    def set_hovered(self, value):
        self._hovered = value
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)

        track_rect = self.rect().adjusted(1, 1, -1, -1)
        dark = COLOR_BG_START.lightness() < 128
        if dark:
            track_color = QColor(255, 255, 255, 35)
            border_color = QColor(255, 255, 255, 60)
        else:
            track_color = QColor(0, 0, 0, 35)
            border_color = QColor(0, 0, 0, 80)
        if self._checked:
            track_color = QColor(COLOR_ACCENT)
            border_color = QColor(COLOR_ACCENT)
        elif self._hovered:
            border_color = QColor(COLOR_ACCENT)

        painter.setBrush(track_color)
        painter.setPen(border_color)
        painter.drawRoundedRect(track_rect, track_rect.height() / 2, track_rect.height() / 2)

        thumb_d = self.height() - 6
        thumb_rect = QRect(int(self._offset), 3, thumb_d, thumb_d)
        painter.setBrush(QColor("#ffffff"))
        painter.setPen(Qt.NoPen)
        painter.drawEllipse(thumb_rect)


class SettingRow(AnimatableWidget):
    """Title and subtitle on the left, an optional control on the right."""

    def __init__(self, title, subtitle="", control=None, parent=None):
        super().__init__(parent)
        self.control = control
        self.setMinimumHeight(52)
        if isinstance(control, ToggleSwitch):
            self.setCursor(Qt.PointingHandCursor)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 6, 12, 6)
        layout.setSpacing(12)

        text_col = QVBoxLayout()
        text_col.setSpacing(2)
        self.title_label = QLabel(title)
        self.title_label.setFont(QFont(FONT_FAMILY, 10))
        self.title_label.setStyleSheet(f"color: {COLOR_TEXT_MAIN.name()}; background: transparent;")
        self.title_label.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        text_col.addWidget(self.title_label)

        self.subtitle_label = QLabel(subtitle)
        self.subtitle_label.setFont(QFont(FONT_FAMILY, 9))
        self.subtitle_label.setWordWrap(True)
        self.subtitle_label.setStyleSheet(f"color: {COLOR_TEXT_SUB.name()}; background: transparent;")
        self.subtitle_label.setVisible(bool(subtitle))
        text_col.addWidget(self.subtitle_label)

        layout.addLayout(text_col, 1)
        if control is not None:
            layout.addWidget(control, 0, Qt.AlignRight | Qt.AlignVCenter)

        self.anim = QPropertyAnimation(self, b"bg_color")
        self.anim.setDuration(150)
        self.anim.setEasingCurve(QEasingCurve.OutQuad)

    def set_subtitle(self, text):
        self.subtitle_label.setText(text)
        self.subtitle_label.setVisible(bool(text))

    def _animate_to(self, color):
        self.anim.stop()
        self.anim.setStartValue(self._bg_color)
        self.anim.setEndValue(color)
        self.anim.start()

    def enterEvent(self, event):
        if isinstance(self.control, ToggleSwitch):
            self._animate_to(COLOR_HOVER)
            self.control.set_hovered(True)
        super().enterEvent(event)

    def leaveEvent(self, event):
        if isinstance(self.control, ToggleSwitch):
            self._animate_to(QColor(0, 0, 0, 0))
            self.control.set_hovered(False)
        super().leaveEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton and isinstance(self.control, ToggleSwitch):
            self.control.toggle()
        super().mousePressEvent(event)

    def paintEvent(self, event):
        if self._bg_color.alpha() <= 0:
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setBrush(self._bg_color)
        painter.setPen(Qt.NoPen)
        painter.drawRoundedRect(self.rect(), 8, 8)


class PreferencesDialog(QDialog):
    """
    Settings page: master switch, restore, one switch per folder, credits.

    Switches write straight to the add-on settings; the controller picks
    those changes up through its own subscriptions.
    """

    def __init__(self, settings, controller, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.controller = controller
        self._handler_id = None
        self._folder_switches = {}

        self.setWindowTitle(f"{APP_NAME} Preferences")
        self.setAttribute(Qt.WA_DeleteOnClose)
        self.resize(PREFS_WIDTH, PREFS_HEIGHT)
        self.setStyleSheet(f"""
            QDialog {{ background-color: {COLOR_BG_END.name()}; }}
            QScrollArea {{ background: transparent; border: none; }}
            QPushButton {{
                background-color: {qcolor_to_rgba(COLOR_HOVER)};
                color: {COLOR_TEXT_MAIN.name()};
                border: 1px solid {qcolor_to_rgba(COLOR_GLASS_BORDER)};
                padding: 5px 15px;
                border-radius: 6px;
                font-family: "{FONT_FAMILY}";
            }}
            QPushButton:disabled {{ color: {COLOR_TEXT_SUB.name()}; }}
            QPushButton#destructive {{ background-color: {COLOR_DESTRUCTIVE.name()}; color: white; border: none; }}
            QPushButton#destructive:disabled {{ background-color: {qcolor_to_rgba(COLOR_HOVER)}; color: {COLOR_TEXT_SUB.name()}; }}
        """)

        scroll = QScrollArea(self)
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.NoFrame)
        content = QWidget()
        content.setStyleSheet("background: transparent;")
        self.content_layout = QVBoxLayout(content)
        self.content_layout.setContentsMargins(18, 18, 18, 18)
        self.content_layout.setSpacing(18)
        scroll.setWidget(content)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(scroll)

        self._build_about_group()
        self._build_general_group()
        self._build_restore_group()
        self._build_folders_group()
        self._build_credits_group()
        self.content_layout.addStretch()

        self._handler_id = self.settings.connect("changed", self._on_setting_changed)
        self.finished.connect(self._disconnect_settings)

    def _build_about_group(self):
        group = PreferencesGroup(
            "About", "App Grid Wizard automatically organizes your applications into folders"
        )
        group.add_row(SettingRow(
            "How to use",
            "Toggle ON creates folders. Toggle OFF keeps folders but stops monitoring. "
            "Use the Restore button below to remove folders.",
        ))
        self.content_layout.addWidget(group)

    def _build_general_group(self):
        group = PreferencesGroup("General")
        self.enabled_switch = ToggleSwitch(self.settings.get_boolean(ENABLED_KEY))
        self.enabled_switch.toggled.connect(lambda checked: self.settings.set_boolean(ENABLED_KEY, checked))
        group.add_row(SettingRow(
            "Organize app grid", "Create the enabled folders and keep them up to date",
            self.enabled_switch,
        ))
        self.content_layout.addWidget(group)

    def _build_restore_group(self):
        group = PreferencesGroup(
            "Restore", "Remove all App Grid Wizard folders and restore the original layout."
        )
        self.restore_button = QPushButton("Restore")
        self.restore_button.setObjectName("destructive")
        self.restore_button.setCursor(Qt.PointingHandCursor)
        self.restore_button.clicked.connect(self._on_restore_clicked)
        self.restore_row = group.add_row(SettingRow("Restore Original Folders", "", self.restore_button))
        self._sync_restore_row()
        self.content_layout.addWidget(group)

    def _build_folders_group(self):
        group = PreferencesGroup("Folders", "Choose which folders to create and manage")
        for definition in FOLDER_DEFINITIONS:
            switch = ToggleSwitch(self.settings.get_boolean(definition.settings_key))
            switch.toggled.connect(
                lambda checked, key=definition.settings_key: self.settings.set_boolean(key, checked)
            )
            self._folder_switches[definition.settings_key] = switch
            group.add_row(SettingRow(definition.name, definition.subtitle, switch))
        self.content_layout.addWidget(group)

    def _build_credits_group(self):
        group = PreferencesGroup("Credits")
        link_button = QPushButton("GitHub")
        link_button.setCursor(Qt.PointingHandCursor)
        link_button.clicked.connect(lambda: open_url(PROJECT_URL))
        group.add_row(SettingRow(APP_DISPLAY_NAME, f"Made by {APP_AUTHOR}", link_button))
        self.content_layout.addWidget(group)

    def _sync_restore_row(self, message=None):
        has_snapshot = self.settings.get_boolean(SNAPSHOT_TAKEN_KEY)
        if message is None:
            message = ("A snapshot is available" if has_snapshot
                       else "No snapshot available yet (enable the organizer first)")
        self.restore_row.set_subtitle(message)
        self.restore_button.setEnabled(has_snapshot)

    def _on_restore_clicked(self):
        if not confirm_restore(self):
            return
        if self.controller.restore():
            self._sync_restore_row("Restored. The app grid will update shortly.")
        else:
            self._sync_restore_row("Restore failed, see the log for details.")

    def _on_setting_changed(self, settings, key):
        # setChecked is a no-op on equal values, so our own writes don't loop.
        if key == ENABLED_KEY:
            self.enabled_switch.setChecked(settings.get_boolean(key), animate=False, notify=False)
        elif key == SNAPSHOT_TAKEN_KEY:
            if settings.get_boolean(key):
                self._sync_restore_row()
            else:
                self.restore_button.setEnabled(False)
        elif key in self._folder_switches:
            self._folder_switches[key].setChecked(settings.get_boolean(key), animate=False, notify=False)

    def _disconnect_settings(self, *_):
        if self._handler_id is not None:
            self.settings.disconnect(self._handler_id)
            self._handler_id = None
