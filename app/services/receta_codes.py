# FILE: app/services/receta_codes.py
from __future__ import annotations

from io import BytesIO
from typing import Any

import qrcode
from barcode import Code128
from barcode.writer import ImageWriter

from app.utils.text import field, present, safe

# Code128 rendering: bar height in mm, human-readable line centered below
BARCODE_OPTIONS = {
    "module_width": 0.3,
    "module_height": 10.0,
    "quiet_zone": 2.0,
    "font_size": 10,
    "text_distance": 4.0,
    "center_text": True,
}


def barcode_text(record: Any) -> str:
    """
    numero_recibo when the row has one, else the first 12 chars of the
    receta id, upper-cased.
    """
    numero = field(record, "numero_recibo")
    if present(numero):
        return safe(numero)
    rid = safe(field(record, "id"))
    if not rid:
        raise ValueError("Receta without id nor numero_recibo")
    return rid[:12].upper()


def build_barcode_png(text: str) -> bytes:
    buf = BytesIO()
    Code128(text, writer=ImageWriter()).write(buf, options=BARCODE_OPTIONS)
    return buf.getvalue()


def build_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=1,
    )
    qr.add_data(str(data))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    # qrcode's PilImage wraps the real PIL image
    if hasattr(img, "get_image"):
        img = img.get_image()

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
