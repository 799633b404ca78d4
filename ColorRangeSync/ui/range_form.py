"""Reference Qt binding: the colour range form.

RangeForm owns the widgets (scheme selector, palette chooser, min/max
fields, log toggle and the buttons) and turns their change notifications
into trigger events for the controller. It is also a FieldSink: the
notifier writes committed values back into it while the matching guard
fields are suppressed, and every slot below checks that guard before
submitting anything.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..core.constants import MODIFIED_SCHEME_TEXT, MODIFIED_SCHEME_TOOLTIP, TOOLNAME
from ..core.events import (
    ApplyScheme,
    EditMax,
    EditMin,
    InvertPalette,
    LoadFromDataStatistics,
    LoadFromPaletteFile,
    SelectFromChooser,
    ToggleDiscrete,
    ToggleLog,
)
from ..core.engine import ALL_FIELDS
from ..core.errors import FIELD_MAX, FIELD_MIN
from ..core.guard import GuardedField
from ..core.model import NONE_SCHEME, SchemeRef
from ..core.palette import PaletteDef
from ..core.validation import format_numeric, is_incomplete_number
from .palette_image import palette_icon, palette_to_qimage

logger = logging.getLogger(__name__)


class RangeForm(QWidget):
    """Colour range editing form bound to a RangeController.

    Args:
        controller: RangeController the form submits triggers to
        parent: Parent widget
    """

    def __init__(self, controller, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.controller = controller
        self.guard = controller.guard
        self.preferences = controller.preferences
        self._scheme_entries: List[SchemeRef] = []
        self._palette_ids: List[str] = []

        self.setWindowTitle(TOOLNAME)
        self._build_ui()
        self.reload_palettes()
        self.reload_schemes()

        controller.notifier.add_sink(self)
        controller.notifier.message.connect(self._on_message)
        controller.notifier.fields_written.connect(self._update_data_controls)

        # Show the state the controller is bound to
        controller.notifier.restore_fields(controller.model, ALL_FIELDS)

    # ------------------------ UI building ------------------------
    def _build_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setSpacing(8)
        main_layout.setContentsMargins(12, 12, 12, 12)

        # Scheme row
        scheme_row = QHBoxLayout()
        scheme_row.addWidget(QLabel("Scheme:"))
        self.scheme_combo = QComboBox()
        self.scheme_combo.currentIndexChanged.connect(self._on_scheme_changed)
        scheme_row.addWidget(self.scheme_combo, 1)
        self.modified_label = QLabel(MODIFIED_SCHEME_TEXT)
        self.modified_label.setToolTip(MODIFIED_SCHEME_TOOLTIP)
        self.modified_label.setVisible(False)
        scheme_row.addWidget(self.modified_label)
        main_layout.addLayout(scheme_row)

        # Palette row
        palette_row = QHBoxLayout()
        palette_row.addWidget(QLabel("Palette:"))
        self.palette_combo = QComboBox()
        self.palette_combo.currentIndexChanged.connect(self._on_palette_changed)
        palette_row.addWidget(self.palette_combo, 1)
        self.exact_check = QCheckBox("Load exact values")
        self.exact_check.setToolTip("Use the range and scaling stored with the palette")
        palette_row.addWidget(self.exact_check)
        self.discrete_check = QCheckBox("Discrete")
        self.discrete_check.setToolTip("Show each colour as a separate band instead of a gradient")
        self.discrete_check.toggled.connect(self._on_discrete_toggled)
        palette_row.addWidget(self.discrete_check)
        self.reverse_button = QPushButton("Reverse")
        self.reverse_button.clicked.connect(self._on_reverse_clicked)
        palette_row.addWidget(self.reverse_button)
        main_layout.addLayout(palette_row)

        self.preview_label = QLabel()
        self.preview_label.setMinimumHeight(16)
        main_layout.addWidget(self.preview_label)

        # Range fields
        grid = QGridLayout()
        grid.addWidget(QLabel("Min:"), 0, 0)
        self.min_edit = QLineEdit()
        self.min_edit.setAlignment(Qt.AlignRight)
        self.min_edit.editingFinished.connect(self._on_min_edited)
        grid.addWidget(self.min_edit, 0, 1)
        grid.addWidget(QLabel("Max:"), 1, 0)
        self.max_edit = QLineEdit()
        self.max_edit.setAlignment(Qt.AlignRight)
        self.max_edit.editingFinished.connect(self._on_max_edited)
        grid.addWidget(self.max_edit, 1, 1)
        main_layout.addLayout(grid)

        button_row = QHBoxLayout()
        self.from_palette_button = QPushButton("From Palette")
        self.from_palette_button.setToolTip("Set the range to the bounds stored in the palette file")
        self.from_palette_button.clicked.connect(self._on_from_palette_clicked)
        button_row.addWidget(self.from_palette_button)
        self.from_data_button = QPushButton("From Data")
        self.from_data_button.setToolTip("Set the range to the minimum and maximum of the data")
        self.from_data_button.clicked.connect(self._on_from_data_clicked)
        button_row.addWidget(self.from_data_button)
        self.log_check = QCheckBox("Log")
        self.log_check.toggled.connect(self._on_log_toggled)
        button_row.addWidget(self.log_check)
        button_row.addStretch()
        main_layout.addLayout(button_row)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        main_layout.addWidget(self.status_label)

    def reload_palettes(self):
        """Refill the palette chooser from the controller's palette registry."""
        registry = self.controller.palette_registry
        with self.guard.suppress(GuardedField.CHOOSER_EVENT):
            self.palette_combo.clear()
            self._palette_ids = registry.names()
            for palette_id in self._palette_ids:
                self.palette_combo.addItem(palette_icon(registry.get_palette(palette_id)), palette_id)
            self.write_palette(self.controller.model.palette, self.controller.model.log_scaled)

    def reload_schemes(self):
        """Refill the scheme selector; dividers become separators."""
        registry = self.controller.scheme_registry
        with self.guard.suppress(GuardedField.SCHEME_SELECTOR):
            self.scheme_combo.clear()
            self._scheme_entries = registry.schemes()
            for scheme in self._scheme_entries:
                if scheme.divider:
                    self.scheme_combo.insertSeparator(self.scheme_combo.count())
                    continue
                self.scheme_combo.addItem(scheme.name)
                index = self.scheme_combo.count() - 1
                reason = registry.check_scheme(scheme)
                if reason:
                    # Disabled entries stay visible with the reason as tooltip
                    item = self.scheme_combo.model().item(index)
                    item.setEnabled(False)
                    self.scheme_combo.setItemData(index, reason, Qt.ToolTipRole)
                elif scheme.description:
                    self.scheme_combo.setItemData(index, scheme.description, Qt.ToolTipRole)
            self.write_scheme(self.controller.model.scheme or NONE_SCHEME)

    # ------------------------ FieldSink ------------------------
    def write_min(self, value: float) -> None:
        self.min_edit.setText(format_numeric(value, self.preferences.field_precision))

    def write_max(self, value: float) -> None:
        self.max_edit.setText(format_numeric(value, self.preferences.field_precision))

    def write_log(self, log_scaled: bool) -> None:
        self.log_check.setChecked(bool(log_scaled))

    def write_palette(self, palette: PaletteDef, log_scaled: bool) -> None:
        self.palette_combo.setCurrentIndex(self._palette_index(palette))
        self.discrete_check.setChecked(palette.discrete)
        self.preview_label.setPixmap(QPixmap.fromImage(palette_to_qimage(palette, 256, 16, log_scaled)))

    def write_scheme(self, scheme: SchemeRef) -> None:
        index = 0
        for i, entry in enumerate(self._scheme_entries):
            if entry is scheme:
                index = i
                break
        self.scheme_combo.setCurrentIndex(index)

    def set_scheme_indicator_visible(self, visible: bool) -> None:
        self.modified_label.setVisible(visible)

    def _palette_index(self, palette: PaletteDef) -> int:
        registry = self.controller.palette_registry
        palette_id = registry.find_id(palette)
        if palette_id is None and palette.name in registry:
            # Reversed palettes keep the entry they came from
            palette_id = palette.name
        if palette_id is None or palette_id not in self._palette_ids:
            return -1
        return self._palette_ids.index(palette_id)

    # ------------------------ Pending field text ------------------------
    def _pending_text(self, edit: QLineEdit, committed: float) -> Optional[str]:
        """Text of a range field if it differs from the committed value."""
        text = edit.text().strip()
        if text == format_numeric(committed, self.preferences.field_precision):
            return None
        if self.preferences.ignore_incomplete_edits and is_incomplete_number(text):
            return None
        return text

    def _ignored_edit(self, text: str) -> bool:
        return self.preferences.ignore_incomplete_edits and is_incomplete_number(text)

    # ------------------------ Slot handlers ------------------------
    def _submit(self, event):
        # A new trigger replaces the previous message
        self.status_label.setText("")
        self.status_label.setToolTip("")
        return self.controller.submit(event)

    def _on_min_edited(self):
        if self.guard.min_edit_suppressed:
            return
        text = self.min_edit.text()
        if self._ignored_edit(text):
            logger.debug("Ignoring incomplete min edit %r", text)
            self.controller.notifier.restore_fields(self.controller.model, frozenset({FIELD_MIN}))
            return
        if self._pending_text(self.min_edit, self.controller.model.min) is None:
            # Focus left an untouched field
            return
        self._submit(EditMin(text))

    def _on_max_edited(self):
        if self.guard.max_edit_suppressed:
            return
        text = self.max_edit.text()
        if self._ignored_edit(text):
            logger.debug("Ignoring incomplete max edit %r", text)
            self.controller.notifier.restore_fields(self.controller.model, frozenset({FIELD_MAX}))
            return
        if self._pending_text(self.max_edit, self.controller.model.max) is None:
            return
        self._submit(EditMax(text))

    def _on_log_toggled(self, checked: bool):
        if self.guard.log_toggle_suppressed:
            return
        self._submit(ToggleLog(bool(checked)))

    def _on_discrete_toggled(self, checked: bool):
        if self.guard.chooser_event_suppressed:
            return
        self._submit(ToggleDiscrete(bool(checked)))

    def _on_palette_changed(self, index: int):
        if self.guard.chooser_event_suppressed or index < 0 or index >= len(self._palette_ids):
            return
        palette = self.controller.palette_registry.get_palette(self._palette_ids[index])
        model = self.controller.model
        self._submit(
            SelectFromChooser(
                palette,
                load_exact_values=self.exact_check.isChecked(),
                min_text=self._pending_text(self.min_edit, model.min),
                max_text=self._pending_text(self.max_edit, model.max),
            )
        )

    def _on_reverse_clicked(self):
        model = self.controller.model
        self._submit(
            InvertPalette(
                min_text=self._pending_text(self.min_edit, model.min),
                max_text=self._pending_text(self.max_edit, model.max),
            )
        )

    def _on_scheme_changed(self, index: int):
        if self.guard.is_suppressed(GuardedField.SCHEME_SELECTOR) or index < 0 or index >= len(self._scheme_entries):
            return
        self._submit(ApplyScheme(self._scheme_entries[index]))

    def _on_from_palette_clicked(self):
        self._submit(LoadFromPaletteFile())

    def _on_from_data_clicked(self):
        self._submit(LoadFromDataStatistics())

    def _update_data_controls(self, *_):
        self.from_data_button.setEnabled(self.controller.raster is not None)

    def _on_message(self, code: str, text: str):
        self.status_label.setText(text)
        self.status_label.setToolTip(code)
