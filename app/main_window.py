from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from PySide6.QtCore import QSettings
from PySide6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from app.state import RosterState
from core.config import PRESETS, get_sheet_source, get_standards_source
from core.models import ConfigError, RosterQuery, SwimmerAggregate
from core.service import REPORTS, StandardsService
from core.sheet_source import SheetImportError
from core.time_utils import format_delta

logger = logging.getLogger(__name__)

COLUMNS = ["Name", "Gender", "Age", "Group", "Cuts", "Near-Misses", "Graded", "Best Of", "Next Up"]


def _lines(labels: list[str], empty: str = "-") -> str:
    return "\n".join(labels) if labels else empty


class MainWindow(QMainWindow):
    def __init__(self, root: Path, source: str, standards_source: str):
        super().__init__()
        self.root = root
        self.standards_source = standards_source
        self.state = RosterState()
        self.setWindowTitle("Swim Standards")
        self.resize(1200, 700)

        self.source_input = QLineEdit(source)
        browse_btn = QPushButton("Open file")
        browse_btn.clicked.connect(self.choose_file)

        self.preset_box = QComboBox()
        self.preset_box.addItems(list(PRESETS))
        self.preset_box.currentTextChanged.connect(lambda _v: self.refresh())

        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search name, gender, age, site, group")
        self.search_input.textChanged.connect(self.apply_search)

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(lambda: self.search_input.setText(""))
        refresh_btn = QPushButton("Refresh")
        refresh_btn.clicked.connect(self.refresh)
        save_btn = QPushButton("Save report")
        save_btn.clicked.connect(self.save_report)

        self.report_box = QComboBox()
        self.report_box.addItems(list(REPORTS))
        report_btn = QPushButton("Show report")
        report_btn.clicked.connect(self.show_report)

        self.count_label = QLabel("")

        self.table = QTableWidget(0, len(COLUMNS))
        self.table.setHorizontalHeaderLabels(COLUMNS)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)

        top = QHBoxLayout()
        top.addWidget(QLabel("Source"))
        top.addWidget(self.source_input, 3)
        top.addWidget(browse_btn)
        top.addWidget(self.preset_box, 1)
        top.addWidget(refresh_btn)
        top.addWidget(save_btn)

        search_row = QHBoxLayout()
        search_row.addWidget(self.search_input, 3)
        search_row.addWidget(clear_btn)
        search_row.addWidget(self.report_box)
        search_row.addWidget(report_btn)
        search_row.addWidget(self.count_label, 1)

        layout = QVBoxLayout()
        layout.addLayout(top)
        layout.addLayout(search_row)
        layout.addWidget(self.table)
        wrapper = QWidget(); wrapper.setLayout(layout)
        self.setCentralWidget(wrapper)

        self.refresh()

    def current_query(self) -> RosterQuery:
        return PRESETS[self.preset_box.currentText()]

    def service(self) -> StandardsService:
        return StandardsService(self.root, self.source_input.text().strip(), self.standards_source)

    def choose_file(self) -> None:
        settings = QSettings("SwimStandards", "Viewer")
        last_file = settings.value("last_opened_file", "", type=str)
        default_directory = str(Path(last_file).parent) if last_file else str(Path.home())

        path, _ = QFileDialog.getOpenFileName(
            self,
            "Choose results sheet",
            default_directory,
            "Sheets (*.xlsx *.xlsm *.csv)",
        )
        if not path:
            return
        settings.setValue("last_opened_file", path)
        self.source_input.setText(path)
        self.refresh()

    def refresh(self) -> None:
        self.count_label.setText("Loading…")
        try:
            service = self.service()
            rows = service.load_rows()
            roster = service.build_roster(self.current_query(), rows)
        except SheetImportError as exc:
            logger.error("Load failed: %s", exc)
            self.count_label.setText("Error")
            QMessageBox.warning(self, "Could not load", f"{exc}\n\nCheck the sheet sharing settings.")
            return
        self.state.replace(
            roster,
            loaded_at=datetime.now().isoformat(timespec="seconds"),
            sheet_swimmers=service.count_swimmers(rows),
        )
        self.apply_search(self.search_input.text())

    def apply_search(self, text: str) -> None:
        self.state.search = text
        self.render(self.state.filtered())

    def _row_values(self, s: SwimmerAggregate) -> list[str]:
        graded = [f"{key.upper()}: {m.label}" for key, marks in s.graded.items() for m in marks]
        best_of = [m.label if m else f"{event} -" for event, m in s.best_of.items()]
        next_up = [f"{m.label} | ({format_delta(m.diff_sec)})" for m in s.next_up]
        return [
            s.name,
            s.gender,
            s.age,
            s.group,
            _lines([m.label for m in s.achieved]),
            _lines([m.label for m in s.near_misses]),
            _lines(graded),
            _lines(best_of),
            _lines(next_up),
        ]

    def render(self, swimmers: list[SwimmerAggregate]) -> None:
        self.count_label.setText(self.state.summary(len(swimmers)))
        self.table.setRowCount(len(swimmers))
        for row_idx, s in enumerate(swimmers):
            for col_idx, val in enumerate(self._row_values(s)):
                self.table.setItem(row_idx, col_idx, QTableWidgetItem(val))
        self.table.resizeRowsToContents()

    def save_report(self) -> None:
        title = self.preset_box.currentText()
        try:
            path = self.service().save_roster_report(self.current_query(), title)
        except SheetImportError as exc:
            QMessageBox.warning(self, "Could not save", str(exc))
            return
        QMessageBox.information(self, "Report", f"Saved: {path}")

    def show_report(self) -> None:
        name = self.report_box.currentText()
        try:
            text = self.service().build_report(name)
        except (SheetImportError, ConfigError) as exc:
            QMessageBox.warning(self, name, str(exc))
            return

        dialog = QDialog(self)
        dialog.setWindowTitle(name)
        dialog.resize(800, 600)
        view = QPlainTextEdit(text)
        view.setReadOnly(True)
        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Save | QDialogButtonBox.StandardButton.Close)
        buttons.accepted.connect(lambda: self._save_text(text, name))
        buttons.rejected.connect(dialog.reject)
        layout = QVBoxLayout()
        layout.addWidget(view)
        layout.addWidget(buttons)
        dialog.setLayout(layout)
        dialog.exec()

    def _save_text(self, text: str, name: str) -> None:
        path = self.service().save_report(text, name.lower().replace(" ", "-"))
        QMessageBox.information(self, "Report", f"Saved: {path}")


def run_app() -> None:
    logging.basicConfig(level=logging.INFO)
    app = QApplication([])
    root = Path.cwd()
    window = MainWindow(root, get_sheet_source(), get_standards_source())
    window.show()
    app.exec()
