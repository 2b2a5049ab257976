from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QIcon, QImage, QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from xnotid.domain.models import (
    IconName,
    ImagePath,
    MultipleChoiceCard,
    Notification,
    PermissionCard,
    RawImage,
    Urgency,
)
from xnotid.ui.theme import COLOR_CRITICAL, COLOR_LOW, COLOR_NORMAL

_ICON_SIZE = 48

_URGENCY_COLORS = {
    Urgency.LOW: COLOR_LOW,
    Urgency.NORMAL: COLOR_NORMAL,
    Urgency.CRITICAL: COLOR_CRITICAL,
}


def _raw_image_pixmap(img: RawImage) -> Optional[QPixmap]:
    if img.bits_per_sample != 8 or img.channels not in (3, 4):
        return None
    fmt = QImage.Format_RGBA8888 if img.has_alpha else QImage.Format_RGB888
    qimg = QImage(img.data, img.width, img.height, img.rowstride, fmt)
    if qimg.isNull():
        return None
    # QImage borrows the buffer; copy before `img.data` can go away.
    return QPixmap.fromImage(qimg.copy())


def image_pixmap(noti: Notification, size: int = _ICON_SIZE) -> Optional[QPixmap]:
    """Best-effort pixmap for the notification's resolved image."""
    img = noti.image
    pix: Optional[QPixmap] = None
    if isinstance(img, RawImage):
        pix = _raw_image_pixmap(img)
    elif isinstance(img, ImagePath):
        path = img.path[len("file://"):] if img.path.startswith("file://") else img.path
        pix = QPixmap(path)
    elif isinstance(img, IconName):
        icon = QIcon.fromTheme(img.name)
        if not icon.isNull():
            pix = icon.pixmap(size, size)
    if pix is None or pix.isNull():
        return None
    return pix.scaled(size, size, Qt.KeepAspectRatio, Qt.SmoothTransformation)


class NotificationWidget(QFrame):
    """
    Card for a single notification, used both as a popup and as a center row.

    Emits ids only; the owning window forwards them to the presenter.
    """

    dismissed = Signal(int)
    clicked = Signal(int)
    action_invoked = Signal(int, str)
    card_answered = Signal(int, object, str)  # id, selected ids, other text
    hovered = Signal(int, bool)

    def __init__(self, noti: Notification, group_count: int = 1, parent=None) -> None:
        super().__init__(parent)
        self.setObjectName("Card")
        self.noti = noti
        self.setProperty("urgency", noti.urgency.label.lower())
        if noti.css_class_override:
            self.setProperty("cssClass", noti.css_class_override)

        root = QVBoxLayout(self)
        root.setContentsMargins(12, 10, 12, 10)
        root.setSpacing(6)

        header = QHBoxLayout()
        dot = QLabel("●")
        dot.setStyleSheet(f"color: {_URGENCY_COLORS[noti.urgency]}; font-size: 12px;")
        header.addWidget(dot, 0, Qt.AlignVCenter)

        app = noti.app_name or noti.desktop_entry or ""
        if group_count > 1:
            app = f"{app} ({group_count})"
        app_label = QLabel(app)
        app_label.setObjectName("AppName")
        header.addWidget(app_label, 1, Qt.AlignVCenter)

        close_btn = QPushButton("✕")
        close_btn.setObjectName("DismissButton")
        close_btn.setToolTip("Dismiss")
        close_btn.clicked.connect(lambda: self.dismissed.emit(self.noti.id))
        header.addWidget(close_btn, 0, Qt.AlignVCenter)
        root.addLayout(header)

        content = QHBoxLayout()
        pix = image_pixmap(noti)
        if pix is not None:
            icon = QLabel()
            icon.setPixmap(pix)
            content.addWidget(icon, 0, Qt.AlignTop)

        text = QVBoxLayout()
        summary = QLabel(noti.summary)
        summary.setObjectName("Summary")
        summary.setWordWrap(True)
        text.addWidget(summary)

        # A card replaces the body text entirely.
        if noti.body and noti.card is None:
            body = QLabel(noti.body)
            body.setWordWrap(True)
            body.setTextFormat(Qt.RichText)
            text.addWidget(body)
        content.addLayout(text, 1)
        root.addLayout(content)

        if noti.progress is not None:
            bar = QProgressBar()
            bar.setRange(0, 100)
            bar.setValue(noti.progress)
            bar.setTextVisible(False)
            root.addWidget(bar)

        if isinstance(noti.card, PermissionCard):
            root.addWidget(self._build_permission(noti.card))
        elif isinstance(noti.card, MultipleChoiceCard):
            root.addWidget(self._build_choice(noti.card))
        elif noti.actions:
            root.addLayout(self._build_actions())

    def _build_actions(self) -> QHBoxLayout:
        row = QHBoxLayout()
        for a in self.noti.actions:
            # "default" is activated by clicking the body.
            if a.key == "default":
                continue
            btn = QPushButton(a.label or a.key)
            btn.clicked.connect(lambda _=False, key=a.key: self.action_invoked.emit(self.noti.id, key))
            row.addWidget(btn)
        row.addStretch(1)
        return row

    def _build_permission(self, card: PermissionCard) -> QWidget:
        w = QWidget()
        lay = QVBoxLayout(w)
        lay.setContentsMargins(0, 0, 0, 0)
        q = QLabel(card.question)
        q.setWordWrap(True)
        lay.addWidget(q)
        btn = QPushButton(card.allow_label)
        btn.clicked.connect(lambda: self.card_answered.emit(self.noti.id, (), ""))
        lay.addWidget(btn, 0, Qt.AlignLeft)
        return w

    def _build_choice(self, card: MultipleChoiceCard) -> QWidget:
        w = QWidget()
        lay = QVBoxLayout(w)
        lay.setContentsMargins(0, 0, 0, 0)
        q = QLabel(card.question)
        q.setWordWrap(True)
        lay.addWidget(q)

        boxes = []
        for choice in card.choices:
            cb = QCheckBox(choice.label)
            cb.setProperty("choiceId", choice.id)
            lay.addWidget(cb)
            boxes.append(cb)

        other: Optional[QLineEdit] = None
        if card.allow_other:
            other = QLineEdit()
            other.setPlaceholderText("Other…")
            lay.addWidget(other)

        submit = QPushButton("Submit")

        def _submit() -> None:
            selected = tuple(str(cb.property("choiceId")) for cb in boxes if cb.isChecked())
            self.card_answered.emit(self.noti.id, selected, other.text() if other else "")

        submit.clicked.connect(_submit)
        lay.addWidget(submit, 0, Qt.AlignLeft)
        return w

    def mouseReleaseEvent(self, event) -> None:
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.noti.id)
        super().mouseReleaseEvent(event)

    def enterEvent(self, event) -> None:
        self.hovered.emit(self.noti.id, True)
        super().enterEvent(event)

    def leaveEvent(self, event) -> None:
        self.hovered.emit(self.noti.id, False)
        super().leaveEvent(event)
