"""Fillable PDF export using reportlab AcroForm widgets + pypdf."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from formbuilder.model.document import FormDocument, Group
from formbuilder.model.field import FieldType, FormField
from formbuilder.model.names import label_to_field_name


class PdfWriteError(RuntimeError):
    """Raised when output generation fails."""


MARGIN = 54.0
LINE_GAP = 6.0
LABEL_HEIGHT = 14.0
OPTION_SIZE = 12.0
OPTION_ROW = 18.0
WIDGET_HEIGHTS = {
    FieldType.TEXTAREA: 60.0,
    FieldType.LABEL: 0.0,
}
DEFAULT_WIDGET_HEIGHT = 20.0


@dataclass(slots=True)
class _Cursor:
    report: canvas.Canvas
    page_width: float
    page_height: float
    y: float

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * MARGIN

    def reserve(self, height: float) -> float:
        """Move down by ``height``, starting a new page when it does not fit."""
        if self.y - height < MARGIN:
            self.report.showPage()
            self.y = self.page_height - MARGIN
        self.y -= height
        return self.y


def write_form_pdf(
    document: FormDocument,
    output_path: str | Path,
    title: str = "Form",
) -> None:
    output = Path(output_path)

    try:
        overlay = _build_form_pdf(document, title)
        reader = PdfReader(overlay)
        writer = PdfWriter(clone_from=reader)
        writer.set_need_appearances_writer(True)
        writer.add_metadata({"/Title": title})
        with output.open("wb") as handle:
            writer.write(handle)
    except Exception as exc:
        raise PdfWriteError(f"Failed to write output PDF: {output}") from exc


def widget_names(document: FormDocument) -> dict[str, str]:
    """Map field ids to AcroForm names, unique across the whole document."""
    names: dict[str, str] = {}
    used: set[str] = set()
    for group in document.groups:
        prefix = label_to_field_name(group.name) or "fieldset"
        for field in group.fields:
            name = f"{prefix}__{label_to_field_name(field.name) or field.field_type.value}"
            if name in used:
                name = f"{name}_{field.id}"
            used.add(name)
            names[field.id] = name
    return names


def option_widget_names(field: FormField, name: str) -> dict[str, str]:
    """Map option ids to per-option checkbox names under the field's ``name``."""
    names: dict[str, str] = {}
    used: set[str] = set()
    for option in field.options or ():
        option_name = f"{name}__{label_to_field_name(option.value) or option.id}"
        if option_name in used:
            option_name = f"{option_name}_{option.id}"
        used.add(option_name)
        names[option.id] = option_name
    return names


def _build_form_pdf(document: FormDocument, title: str) -> BytesIO:
    buffer = BytesIO()
    width, height = letter
    report = canvas.Canvas(buffer, pagesize=letter)
    report.setTitle(title)
    cursor = _Cursor(report=report, page_width=width, page_height=height, y=height - MARGIN)

    report.setFont("Helvetica-Bold", 16)
    report.drawString(MARGIN, cursor.reserve(18.0), title)

    names = widget_names(document)
    for group in document.groups:
        _draw_group(cursor, group, names)

    report.save()
    buffer.seek(0)
    return buffer


def _draw_group(cursor: _Cursor, group: Group, names: dict[str, str]) -> None:
    report = cursor.report
    cursor.reserve(LINE_GAP * 2)
    report.setFont("Helvetica-Bold", 13)
    report.drawString(MARGIN, cursor.reserve(16.0), group.name)
    report.setStrokeColor(colors.grey)
    report.line(MARGIN, cursor.y - 3, MARGIN + cursor.content_width, cursor.y - 3)

    for field in group.fields:
        cursor.reserve(LINE_GAP * 2)
        _draw_field(cursor, field, names[field.id])


def _draw_field(cursor: _Cursor, field: FormField, name: str) -> None:
    report = cursor.report
    label = f"{field.label} *" if field.required else field.label

    if field.field_type is FieldType.LABEL:
        report.setFont("Helvetica-Bold", 11)
        report.drawString(MARGIN, cursor.reserve(LABEL_HEIGHT), label)
        return

    report.setFont("Helvetica", 10)
    report.drawString(MARGIN, cursor.reserve(LABEL_HEIGHT), label)
    flags = "required" if field.required else ""
    form = report.acroForm

    if field.field_type in (FieldType.RADIO, FieldType.CHECKBOX):
        _draw_option_buttons(cursor, field, name, flags)
        return

    widget_height = WIDGET_HEIGHTS.get(field.field_type, DEFAULT_WIDGET_HEIGHT)
    y = cursor.reserve(widget_height + LINE_GAP / 2)

    if field.field_type in (FieldType.DROPDOWN, FieldType.NUMBER_COMBO):
        values = [option.value for option in field.options or ()]
        if not values:
            return
        selected = field.default_value if field.default_value in values else values[0]
        form.choice(
            name=name,
            tooltip=field.label,
            value=selected,
            options=values,
            x=MARGIN,
            y=y,
            width=cursor.content_width / 2,
            height=widget_height,
            fieldFlags=f"combo {flags}".strip(),
            borderColor=colors.grey,
            fillColor=colors.white,
            textColor=colors.black,
        )
        return

    value = "" if field.default_value is None else str(field.default_value)
    field_flags = f"multiline {flags}".strip() if field.field_type is FieldType.TEXTAREA else flags
    text_width = cursor.content_width / 3 if field.field_type in (FieldType.NUMBER, FieldType.DATE) else cursor.content_width
    form.textfield(
        name=name,
        tooltip=field.placeholder or field.label,
        x=MARGIN,
        y=y,
        width=text_width,
        height=widget_height,
        value=value,
        fieldFlags=field_flags,
        borderColor=colors.grey,
        fillColor=colors.white,
        textColor=colors.black,
        forceBorder=True,
    )


def _draw_option_buttons(cursor: _Cursor, field: FormField, name: str, flags: str) -> None:
    report = cursor.report
    form = report.acroForm
    defaults = field.default_value if isinstance(field.default_value, (list, tuple)) else (field.default_value,)
    checkbox_names = option_widget_names(field, name)

    for option in field.options or ():
        y = cursor.reserve(OPTION_ROW)
        if field.field_type is FieldType.RADIO:
            form.radio(
                name=name,
                tooltip=field.label,
                value=option.value,
                selected=option.value in defaults,
                x=MARGIN,
                y=y,
                size=OPTION_SIZE,
                buttonStyle="circle",
                fieldFlags=f"noToggleToOff radio {flags}".strip(),
                borderColor=colors.grey,
                fillColor=colors.white,
            )
        else:
            form.checkbox(
                name=checkbox_names[option.id],
                tooltip=option.label,
                checked=option.value in defaults,
                x=MARGIN,
                y=y,
                size=OPTION_SIZE,
                buttonStyle="check",
                fieldFlags=flags,
                borderColor=colors.grey,
                fillColor=colors.white,
            )
        report.setFont("Helvetica", 10)
        report.drawString(MARGIN + OPTION_SIZE + 6, y + 2, option.label)
