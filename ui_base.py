from PySide6.QtCore import Qt, Property
from PySide6.QtGui import QColor, QPainter, QPen, QFont
from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel, QFrame
from config import *

class AnimatableWidget(QWidget):
    """
    Base class for rows that animate their background on hover.
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self._bg_color = QColor(0, 0, 0, 0)

    def get_bg_color(self):
        return self._bg_color

    def set_bg_color(self, color):
        self._bg_color = color
        self.update()

    bg_color = Property(QColor, get_bg_color, set_bg_color)

class PreferencesGroup(QWidget):
    """
    Titled block of setting rows drawn on a glass card, with separators
    between rows.
    """
    def __init__(self, title, description="", parent=None, radius=BORDER_RADIUS, opacity=0.05):
        super().__init__(parent)
        self.radius = radius
        self.base_opacity = opacity

        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.setSpacing(4)

        self.title_label = QLabel(title)
        self.title_label.setFont(QFont(FONT_FAMILY, 10, QFont.Bold))
        self.title_label.setStyleSheet(f"color: {COLOR_TEXT_MAIN.name()}; background: transparent;")
        outer.addWidget(self.title_label)

        if description:
            self.description_label = QLabel(description)
            self.description_label.setWordWrap(True)
            self.description_label.setFont(QFont(FONT_FAMILY, 9))
            self.description_label.setStyleSheet(f"color: {COLOR_TEXT_SUB.name()}; background: transparent;")
            outer.addWidget(self.description_label)

        self.card = _GlassCard(radius, opacity)
        self.rows_layout = QVBoxLayout(self.card)
        self.rows_layout.setContentsMargins(4, 4, 4, 4)
        self.rows_layout.setSpacing(0)
        outer.addWidget(self.card)

    def add_row(self, row):
        if self.rows_layout.count():
            line = QFrame()
            line.setFixedHeight(1)
            line.setStyleSheet(f"background-color: {qcolor_to_rgba(COLOR_GLASS_BORDER)};")
            self.rows_layout.addWidget(line)
        self.rows_layout.addWidget(row)
        return row

class _GlassCard(QWidget):
    def __init__(self, radius, opacity, parent=None):
        super().__init__(parent)
        self.radius = radius
        self.base_opacity = opacity
        self.setAttribute(Qt.WA_StyledBackground, False)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)

        dark = COLOR_BG_START.lightness() < 128
        base = 255 if dark else 0
        painter.setBrush(QColor(base, base, base, int(255 * self.base_opacity)))

        pen = QPen(COLOR_GLASS_BORDER)
        pen.setWidth(1)
        painter.setPen(pen)

        rect = self.rect().adjusted(1, 1, -1, -1)
        painter.drawRoundedRect(rect, self.radius, self.radius)
