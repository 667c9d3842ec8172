# FILE: app/services/pdf_receta.py
from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Callable, List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.services.receta_codes import barcode_text, build_barcode_png, build_qr_png
from app.utils.text import (
    field as _g,
    fmt_date_short,
    fmt_fixed2,
    fmt_number,
    present as _present,
    safe as _safe,
)

logger = logging.getLogger(__name__)

W, H = A4
M = 40  # page margin (pt)
CONTENT_W = W - 2 * M
LEFT_W = CONTENT_W * 0.55
RIGHT_W = CONTENT_W * 0.45 - 10
LEFT_X = M
RIGHT_X = M + LEFT_W + 10

# Signature + footer live below this line
BODY_LIMIT = H - 130

QR_SIZE = 50
FOOTER_LEGEND = (
    "Esta es una receta generada digitalmente. Puedes consultar su "
    "autenticidad y detalle en el portal web o la aplicación móvil de la "
    "farmacia.")
NO_DISPENSATION_DETAIL = "No hay detalles de medicamentos dispensados."

# Helvetica metrics: line box = 1.156 x size, baseline at 0.718 x size
_LEADING = 1.156
_ASCENT = 0.718

REGULAR = "Helvetica"
BOLD = "Helvetica-Bold"

# (label, field, unit)
VITALS: List[Tuple[str, str, str]] = [
    ("Temperatura", "temperatura_corporal", " °C"),
    ("Frec. Cardíaca", "frecuencia_cardiaca", " lpm"),
    ("Frec. Respiratoria", "frecuencia_respiratoria", " rpm"),
    ("Tensión Arterial", "tension_arterial", " mmHg"),
    ("Peso", "peso", " kg"),
    ("Altura", "altura", " cm"),
    ("IMC", "imc", " kg/m²"),
    ("Tipo de Sangre", "blood_type", ""),
    ("Alergias", "allergies", ""),
]

CLINICAL_BLOCKS = [
    ("Motivo de Consulta", "motivo_consulta"),
    ("Antecedentes", "antecedentes"),
    ("Diagnóstico", "diagnostico"),
    ("Exploración Física", "exploracion_fisica"),
    ("Plan de Tratamiento", "plan_tratamiento"),
]

PHARMACIST_BLOCKS = [
    ("Indicaciones", "indicaciones"),
    ("Recomendaciones", "recomendaciones"),
    ("Observaciones", "observaciones"),
]

DrawOp = Callable[[canvas.Canvas], None]


# -------------------------------
# Helpers
# -------------------------------
def _line_h(size: float) -> float:
    return size * _LEADING


def _break_word(word: str, font: str, size: float, width: float,
                max_w: float) -> List[str]:
    """Split a token wider than the line into pieces that fit."""
    chunks: List[str] = []
    cur = ""
    for ch in word:
        if cur and pdfmetrics.stringWidth(cur + ch, font, size) > width:
            chunks.append(cur)
            width = max_w
            cur = ch
        else:
            cur += ch
    chunks.append(cur)
    return chunks


def _wrap(text: str,
          font: str,
          size: float,
          max_w: float,
          first_w: Optional[float] = None) -> List[str]:
    """
    Greedy word wrap; `first_w` narrows the first line (inline label).
    Explicit newlines start a new line. Words wider than the line are
    broken by character.
    """
    lines: List[str] = []
    width = first_w if first_w is not None else max_w
    for para in (text or "").split("\n"):
        cur = ""
        for w in para.split():
            cand = (cur + " " + w).strip()
            if pdfmetrics.stringWidth(cand, font, size) <= width:
                cur = cand
                continue
            if cur:
                lines.append(cur)
                width = max_w
                if pdfmetrics.stringWidth(w, font, size) <= width:
                    cur = w
                    continue
            pieces = _break_word(w, font, size, width, max_w)
            lines.extend(pieces[:-1])
            if len(pieces) > 1:
                width = max_w
            cur = pieces[-1]
        lines.append(cur)
        width = max_w
    return lines or [""]


def medication_details(med: Any) -> str:
    """dose / frequency / duration, skipping the missing parts."""
    parts = [_g(med, k) for k in ("dosis", "frecuencia", "duracion")]
    return " / ".join(_safe(p).strip() for p in parts if _present(p))


# -------------------------------
# Drawing ops (top-down y, replayed on the canvas at save)
# -------------------------------
def _text_op(x: float, y: float, s: str, font: str, size: float) -> DrawOp:

    def op(c: canvas.Canvas) -> None:
        c.setFont(font, size)
        c.drawString(x, H - y - size * _ASCENT, s)

    return op


def _centred_op(xc: float, y: float, s: str, font: str,
                size: float) -> DrawOp:

    def op(c: canvas.Canvas) -> None:
        c.setFont(font, size)
        c.drawCentredString(xc, H - y - size * _ASCENT, s)

    return op


def _line_op(x1: float, y1: float, x2: float, y2: float) -> DrawOp:

    def op(c: canvas.Canvas) -> None:
        c.setLineWidth(1)
        c.line(x1, H - y1, x2, H - y2)

    return op


def _rect_op(x: float, y: float, w: float, h: float) -> DrawOp:

    def op(c: canvas.Canvas) -> None:
        c.setLineWidth(1)
        c.rect(x, H - y - h, w, h, stroke=1, fill=0)

    return op


def _image_op(img: ImageReader, x: float, y: float, w: float,
              h: float) -> DrawOp:

    def op(c: canvas.Canvas) -> None:
        c.drawImage(img, x, H - y - h, width=w, height=h, mask="auto")

    return op


class PageBuffer:
    """
    The document as a list of pages, each a list of drawing ops.
    Nothing touches the canvas until `render()`, so any page can still
    receive content (second column, footer) after later pages exist.
    """

    def __init__(self) -> None:
        self.pages: List[List[DrawOp]] = [[]]

    def ensure(self, index: int) -> None:
        while len(self.pages) <= index:
            self.pages.append([])

    def add(self, index: int, op: DrawOp) -> None:
        self.ensure(index)
        self.pages[index].append(op)

    @property
    def count(self) -> int:
        return len(self.pages)

    def render(self, footer: Callable[[int], List[DrawOp]], *,
               title: str = "") -> bytes:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=A4)
        c.setTitle(title)
        c.setAuthor(settings.PROJECT_NAME)
        for index, ops in enumerate(self.pages):
            for op in ops + footer(index):
                c.saveState()
                op(c)
                c.restoreState()
            c.showPage()
        c.save()
        return buf.getvalue()


class Column:
    """
    A vertical text flow at a fixed x/width. Lines that would cross
    BODY_LIMIT continue at the top margin of the next page.
    """

    def __init__(self,
                 doc: PageBuffer,
                 x: float,
                 width: float,
                 y: float,
                 page: int = 0) -> None:
        self.doc = doc
        self.x = x
        self.width = width
        self.y = y
        self.page = page

    @property
    def pos(self) -> Tuple[int, float]:
        return (self.page, self.y)

    def move_to(self, pos: Tuple[int, float]) -> None:
        self.page, self.y = pos
        self.doc.ensure(self.page)

    def skip(self, dy: float) -> None:
        self.y += dy

    def new_page(self) -> None:
        self.page += 1
        self.doc.ensure(self.page)
        self.y = M

    def ensure_room(self, needed: float) -> None:
        if self.y + needed > BODY_LIMIT:
            self.new_page()

    def draw(self, op: DrawOp) -> None:
        self.doc.add(self.page, op)

    def text(self,
             s: str,
             font: str = REGULAR,
             size: float = 9,
             *,
             indent: float = 0) -> None:
        lh = _line_h(size)
        for ln in _wrap(s, font, size, self.width - indent):
            self.ensure_room(lh)
            if ln:
                self.draw(_text_op(self.x + indent, self.y, ln, font, size))
            self.y += lh

    def labeled(self,
                label: str,
                value: Any,
                size: float = 9,
                *,
                indent: float = 0) -> None:
        """Bold "Label:" followed by the regular value on the same line."""
        lh = _line_h(size)
        label_s = f"{label}:"
        gap = pdfmetrics.stringWidth(label_s + " ", BOLD, size)
        avail = self.width - indent
        lines = _wrap(_safe(value).strip(),
                      REGULAR,
                      size,
                      avail,
                      first_w=avail - gap)
        for i, ln in enumerate(lines):
            self.ensure_room(lh)
            x = self.x + indent
            if i == 0:
                self.draw(_text_op(x, self.y, label_s, BOLD, size))
                x += gap
            if ln:
                self.draw(_text_op(x, self.y, ln, REGULAR, size))
            self.y += lh


# -------------------------------
# Sections
# -------------------------------
def _draw_header_left(col: Column, rec: Any) -> None:
    col.text(settings.BRAND_POWERED_BY, REGULAR, 8)
    col.y = M + 12
    col.text(settings.BRAND_ORG_NAME, REGULAR, 10)
    col.y = M + 12 + 15
    col.text("RECETA INDIVIDUAL", BOLD, 10)
    col.skip(10)

    farmacia = _g(rec, "farmacia_info")
    f_nombre = _g(farmacia, "nombre")
    f_ubic = _g(farmacia, "ubicacion")
    f_tel = _g(farmacia, "telefono")
    if any(_present(v) for v in (f_nombre, f_ubic, f_tel)):
        col.text("Farmacia de Emisión:", BOLD, 9)
        if _present(f_nombre):
            col.text(f"Nombre: {_safe(f_nombre).strip()}", REGULAR, 8, indent=5)
        if _present(f_ubic):
            col.text(f"Ubicación: {_safe(f_ubic).strip()}", REGULAR, 8, indent=5)
        if _present(f_tel):
            col.text(f"Teléfono: {_safe(f_tel).strip()}", REGULAR, 8, indent=5)
        col.skip(10)

    col.text("PACIENTE", BOLD, 9)
    nombre = _g(rec, "paciente_nombre")
    col.text(_safe(nombre).strip() if _present(nombre) else "N/A", REGULAR, 9)
    col.skip(10)

    for label, key, unit in VITALS:
        value = _g(rec, key)
        if not _present(value):
            continue
        shown = fmt_fixed2(value) if key == "imc" else fmt_number(value)
        # free-text values may already carry the unit ("70 kg")
        if unit and not shown.lower().endswith(unit.strip().lower()):
            shown += unit
        col.labeled(label, shown, 8)


def _draw_header_right(col: Column, rec: Any,
                       barcode_png: bytes) -> Tuple[int, float]:
    """Returns the (page, y) where the barcode image ends."""
    doctor = _g(rec, "doctor_nombre")
    col.text(f"Dr. {_safe(doctor).strip() if _present(doctor) else 'N/A'}",
             REGULAR, 9)
    col.text("Medicina general", REGULAR, 9)
    cedula = _g(rec, "doctor_cedula")
    if _present(cedula):
        col.text(f"Cédula Prof: {_safe(cedula).strip()}", REGULAR, 9)
    col.skip(5)

    col.text("Fecha de la prescripción:", REGULAR, 8)
    col.text(fmt_date_short(_g(rec, "fecha_emision")), BOLD, 8)

    estado = _g(rec, "estado_dispensacion")
    if _present(estado):
        col.skip(5)
        col.text("Estado Dispensación:", REGULAR, 8)
        col.text(_safe(estado).strip(), REGULAR, 8)
    col.skip(10)

    img = ImageReader(BytesIO(barcode_png))
    iw, ih = img.getSize()
    bw = col.width * 0.9
    bh = bw * ih / iw if iw else 45
    bx = col.x + (col.width - bw) / 2
    col.ensure_room(bh)
    col.draw(_image_op(img, bx, col.y, bw, bh))
    return (col.page, col.y + bh)


def _draw_prescription(col: Column, rec: Any) -> None:
    col.text("PRESCRIPCIÓN", BOLD, 10)
    col.skip(5)

    medicamentos = _g(rec, "medicamentos") or []
    if not isinstance(medicamentos, (list, tuple)):
        medicamentos = []

    units_label = "Núm. envases / unidades:"
    units_w = pdfmetrics.stringWidth(units_label, REGULAR, 8)
    for i, med in enumerate(medicamentos, start=1):
        nombre = _g(med, "nombre")
        col.text(f"{i}. {_safe(nombre).strip() if _present(nombre) else 'N/A'}",
                 BOLD, 9)
        col.text(medication_details(med), REGULAR, 9, indent=10)

        col.ensure_room(_line_h(8))
        col.draw(_text_op(col.x + 10, col.y, units_label, REGULAR, 8))
        col.draw(_rect_op(col.x + 10 + units_w + 5, col.y - 1, 8, 8))
        col.skip(_line_h(8) + 15)


def _draw_clinical(col: Column, rec: Any) -> None:
    col.text("Información Clínica", BOLD, 10)
    col.skip(5)
    for label, key in CLINICAL_BLOCKS:
        if _present(_g(rec, key)):
            col.labeled(label, _g(rec, key), 9)
            col.skip(5)

    col.skip(5)
    col.text("Información al Farmacéutico, en su caso", BOLD, 10)
    col.skip(5)
    for label, key in PHARMACIST_BLOCKS:
        if _present(_g(rec, key)):
            col.labeled(label, _g(rec, key), 9)
            col.skip(5)


def _draw_column_divider(doc: PageBuffer, x: float, start: Tuple[int, float],
                         end: Tuple[int, float]) -> None:
    for page in range(start[0], end[0] + 1):
        top = start[1] if page == start[0] else M
        bottom = end[1] if page == end[0] else BODY_LIMIT
        doc.add(page, _line_op(x, top, x, bottom))


def _draw_trailing(col: Column, rec: Any) -> None:
    proxima = _g(rec, "proxima_consulta")
    if _present(proxima):
        col.ensure_room(30)
        col.text(f"Próxima Consulta: {fmt_date_short(proxima)}", BOLD, 10)
        col.skip(15)

    estado = _g(rec, "estado_dispensacion")
    fecha = _g(rec, "fecha_dispensacion")
    detalle = _g(rec, "medicamentos_dispensados_detalle")
    if not any(_present(v) for v in (estado, fecha, detalle)):
        return

    col.ensure_room(80)
    col.text("Información de Dispensación", BOLD, 12)
    col.skip(10)
    if _present(estado):
        col.labeled("Estado", estado, 9)
        col.skip(5)
    if _present(fecha):
        col.labeled("Fecha de Dispensación", fmt_date_short(fecha), 9)
        col.skip(5)
    col.text("Detalle de Medicamentos Dispensados:", BOLD, 9)
    col.text(
        _safe(detalle).strip()
        if _present(detalle) else NO_DISPENSATION_DETAIL,
        REGULAR,
        9,
        indent=5,
    )
    col.skip(20)


def _draw_signature(col: Column, rec: Any) -> None:
    sig_y = max(col.y, BODY_LIMIT)
    x0 = W - M - 150
    col.draw(_line_op(x0, sig_y, W - M, sig_y))
    doctor = _g(rec, "doctor_nombre")
    name = _safe(doctor).strip() if _present(doctor) else "N/A"
    col.draw(_centred_op(x0 + 75, sig_y + 5, f"Dr(a). {name}", REGULAR, 10))


def _footer_ops(qr: ImageReader) -> List[DrawOp]:
    footer_y = H - M - QR_SIZE
    ops: List[DrawOp] = [
        _image_op(qr, W - M - QR_SIZE, footer_y, QR_SIZE, QR_SIZE)
    ]
    legend_w = CONTENT_W - QR_SIZE - 20
    y = footer_y + 10
    for ln in _wrap(FOOTER_LEGEND, REGULAR, 8, legend_w):
        ops.append(_text_op(M, y, ln, REGULAR, 8))
        y += _line_h(8)
    return ops


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------
def build_receta_pdf(rec: Any, *, qr_url: Optional[str] = None) -> bytes:
    """
    Render one receta (dict, schema or ORM row with the PDF fields) as an
    A4 PDF. Any failure propagates; there is no partial document.
    """
    code_text = barcode_text(rec)
    barcode_png = build_barcode_png(code_text)
    qr = ImageReader(BytesIO(build_qr_png(qr_url or settings.PORTAL_URL)))

    doc = PageBuffer()

    # Header (two columns)
    left = Column(doc, LEFT_X, LEFT_W, M)
    right = Column(doc, RIGHT_X, RIGHT_W, M)
    _draw_header_left(left, rec)
    barcode_end = _draw_header_right(right, rec, barcode_png)

    # a long header can spill onto a later page; the body starts after it
    header_page, header_y = max(left.pos, barcode_end)
    divider_y = header_y + 20
    doc.add(header_page, _line_op(M, divider_y, W - M, divider_y))

    # Body (two columns)
    body_top = divider_y + 10
    left = Column(doc, LEFT_X, LEFT_W, body_top, header_page)
    right = Column(doc, RIGHT_X, RIGHT_W, body_top, header_page)
    _draw_prescription(left, rec)
    _draw_clinical(right, rec)

    body_end = max(left.pos, right.pos)
    _draw_column_divider(doc, LEFT_X + LEFT_W + 5, (header_page, divider_y),
                         body_end)

    # Trailing sections + signature
    tail = Column(doc, LEFT_X, CONTENT_W, M)
    tail.move_to(body_end)
    tail.skip(10)
    _draw_trailing(tail, rec)
    _draw_signature(tail, rec)

    footer = _footer_ops(qr)
    pdf_bytes = doc.render(lambda _index: footer,
                           title=f"Receta {code_text}")
    logger.debug("Receta %s rendered: %d page(s), %d bytes", code_text,
                 doc.count, len(pdf_bytes))
    return pdf_bytes
