from io import BytesIO

import pytest
from pypdf import PdfReader
from reportlab.pdfbase import pdfmetrics

from app.services.pdf_receta import (
    FOOTER_LEGEND,
    NO_DISPENSATION_DETAIL,
    RIGHT_W,
    _wrap,
    build_receta_pdf,
    medication_details,
)

LEGEND_START = FOOTER_LEGEND[:27]  # "Esta es una receta generada"


def _pages(pdf: bytes):
    return PdfReader(BytesIO(pdf)).pages


def _text(pdf: bytes) -> str:
    return "\n".join(p.extract_text() or "" for p in _pages(pdf))


def test_output_is_a_pdf(receta_record):
    pdf = build_receta_pdf(receta_record)
    assert pdf.startswith(b"%PDF-")
    assert len(_pages(pdf)) == 1


def test_full_record_renders_every_block(receta_record):
    text = _text(build_receta_pdf(receta_record))

    for expected in [
            "RECETA INDIVIDUAL",
            "Farmacia de Emisión:",
            "Farmacia Central",
            "Av. Reforma 100",
            "PACIENTE",
            "María López",
            "Temperatura:",
            "Tensión Arterial:",
            "120/80",
            "IMC:",
            "24.80",
            "Alergias:",
            "Dr. Juan Pérez",
            "Cédula Prof: 12345678",
            "07/03/2025",
            "Estado Dispensación:",
            "PRESCRIPCIÓN",
            "Información Clínica",
            "Motivo de Consulta:",
            "Diagnóstico:",
            "Faringitis aguda",
            "Información al Farmacéutico",
            "Observaciones:",
            "Próxima Consulta: 07/04/2025",
            "Información de Dispensación",
            "Fecha de Dispensación:",
            "08/03/2025",
            "Paracetamol x1 caja",
            "Dr(a). Juan Pérez",
    ]:
        assert expected in text, expected


def test_absent_fields_suppress_their_blocks():
    text = _text(build_receta_pdf({"id": "3f2b8c1e-9a7d-4e11"}))

    assert "PACIENTE" in text
    assert "Dr. N/A" in text
    assert "N/A" in text
    for missing in [
            "Farmacia de Emisión",
            "Temperatura",
            "IMC",
            "Alergias",
            "Cédula Prof",
            "Estado Dispensación",
            "Motivo de Consulta",
            "Diagnóstico",
            "Indicaciones",
            "Próxima Consulta",
            "Información de Dispensación",
    ]:
        assert missing not in text, missing


def test_blank_vitals_are_omitted(receta_record):
    receta_record.update(temperatura_corporal=None,
                         tension_arterial="   ",
                         allergies="")
    text = _text(build_receta_pdf(receta_record))

    assert "Temperatura" not in text
    assert "Tensión Arterial" not in text
    assert "Alergias" not in text
    assert "Peso:" in text


def test_medications_numbered_in_input_order(receta_record):
    text = _text(build_receta_pdf(receta_record))

    first = text.index("1. Paracetamol")
    second = text.index("2. Ibuprofeno")
    assert first < second
    assert "500 mg / cada 8 horas / 5 días" in text
    assert "400 mg / 3 días" in text


def test_medication_details_skip_missing_parts():
    assert medication_details({"nombre": "Loratadina"}) == ""
    assert medication_details({"dosis": "10 mg", "duracion": ""}) == "10 mg"
    assert medication_details({
        "dosis": "1 tableta",
        "frecuencia": None,
        "duracion": "10 días",
    }) == "1 tableta / 10 días"


def test_dispensation_detail_fallback():
    text = _text(
        build_receta_pdf({
            "id": "abc",
            "estado_dispensacion": "pendiente"
        }))

    assert "Información de Dispensación" in text
    assert "Estado:" in text
    assert NO_DISPENSATION_DETAIL in text


def test_dispensation_date_alone_opens_block():
    text = _text(build_receta_pdf({"id": "abc", "fecha_dispensacion": "2025-01-02"}))

    assert "Información de Dispensación" in text
    assert "02/01/2025" in text
    assert "Estado:" not in text


@pytest.mark.parametrize("count", [40])
def test_overflow_adds_pages_each_with_footer(receta_record, count):
    receta_record["medicamentos"] = [{
        "nombre": f"Medicamento {i}",
        "dosis": "1 tableta",
        "frecuencia": "cada 12 horas",
        "duracion": "30 días",
    } for i in range(1, count + 1)]

    pages = _pages(build_receta_pdf(receta_record))

    assert len(pages) > 1
    for page in pages:
        assert LEGEND_START in (page.extract_text() or "")
        assert len(page.images) >= 1

    text = "\n".join(p.extract_text() or "" for p in pages)
    assert f"{count}. Medicamento {count}" in text
    assert text.index("9. Medicamento 9") < text.index(f"{count}. Medicamento {count}")
    # signature lands on the last page
    assert "Dr(a). Juan Pérez" in (pages[-1].extract_text() or "")


def test_render_errors_propagate():
    with pytest.raises(ValueError):
        build_receta_pdf({"numero_recibo": None})


@pytest.mark.parametrize(
    "text",
    [
        "Alergias: penicilina,sulfas,ibuprofeno,aspirina,naproxeno,ketorolaco",
        "ver https://carelux.netlify.app/pacientes/historial/receta/00000000-1111",
        "x" * 400,
    ],
)
def test_wrapped_lines_fit_the_column(text):
    lines = _wrap(text, "Helvetica", 9, RIGHT_W)

    assert len(lines) > 1
    for ln in lines:
        assert pdfmetrics.stringWidth(ln, "Helvetica", 9) <= RIGHT_W, ln
    assert "".join(lines).replace(" ", "") == text.replace(" ", "")


def test_wrapped_first_line_respects_label_width():
    lines = _wrap("a" * 200, "Helvetica", 9, 200, first_w=120)

    assert pdfmetrics.stringWidth(lines[0], "Helvetica", 9) <= 120
    for ln in lines[1:]:
        assert pdfmetrics.stringWidth(ln, "Helvetica", 9) <= 200


def test_long_header_pushes_body_to_next_page(receta_record):
    receta_record["farmacia_info"]["ubicacion"] = "Av. Reforma 100 " * 400

    pages = _pages(build_receta_pdf(receta_record))

    assert len(pages) > 1
    first = pages[0].extract_text() or ""
    assert "Farmacia de Emisión:" in first
    assert "PRESCRIPCIÓN" not in first
    assert "PRESCRIPCIÓN" in "\n".join(p.extract_text() or ""
                                       for p in pages[1:])


def test_title_carries_receipt_number(receta_record):
    receta_record["numero_recibo"] = "REC-000123"

    meta = PdfReader(BytesIO(build_receta_pdf(receta_record))).metadata

    assert meta.title == "Receta REC-000123"


def test_title_falls_back_to_id_prefix():
    meta = PdfReader(
        BytesIO(build_receta_pdf({"id": "3f2b8c1e-9a7d-4e11-b2aa"}))).metadata

    assert meta.title == "Receta 3F2B8C1E-9A7"
