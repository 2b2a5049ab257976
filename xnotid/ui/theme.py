from __future__ import annotations

COLOR_LOW = "#64748b"
COLOR_NORMAL = "#38bdf8"
COLOR_CRITICAL = "#ef4444"
COLOR_TEXT_MUTED = "#94a3b8"

APP_QSS = """
QWidget#PopupWindow, QWidget#CenterWindow {
    background: transparent;
    color: #e2e8f0;      /* slate-200 */
    font-family: Segoe UI, Arial;
    font-size: 12px;
}

QWidget#CenterWindow {
    background: #0f172a; /* slate-900 */
}

QLabel {
    color: #e2e8f0;
}

QFrame#Card {
    background: #111827; /* gray-900 */
    border: 1px solid #1f2937; /* gray-800 */
    border-radius: 12px;
}

QFrame#Card[urgency="critical"] {
    border: 1px solid #ef4444;
}

QLabel#Summary {
    font-size: 13px;
    font-weight: 700;
}

QLabel#AppName {
    color: #94a3b8;
    font-size: 11px;
}

QPushButton {
    background: #1f2937;
    color: #e2e8f0;
    border: 1px solid #334155;
    border-radius: 8px;
    padding: 4px 10px;
}

QPushButton:hover {
    background: #334155;
}

QPushButton#DismissButton {
    border: 0px;
    background: transparent;
    color: #94a3b8;
    padding: 0px 4px;
}

QProgressBar {
    border: 1px solid #1f2937;
    border-radius: 4px;
    background: #0b1220;
    height: 6px;
}

QProgressBar::chunk {
    background: #38bdf8;
}
"""
