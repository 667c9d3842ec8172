from datetime import date

import pytest

from app.utils.text import field, fmt_date_short, fmt_fixed2, fmt_number, present


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-03-07", "07/03/2025"),
        ("2025-03-07T10:15:00Z", "07/03/2025"),
        ("2025-03-07T10:15:00.000+00:00", "07/03/2025"),
        ("07/03/2025", "07/03/2025"),
        (date(2024, 12, 31), "31/12/2024"),
        (None, "N/A"),
        ("", "N/A"),
        ("not a date", "N/A"),
    ],
)
def test_fmt_date_short(value, expected):
    assert fmt_date_short(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "\n"])
def test_present_rejects_blank(value):
    assert not present(value)


@pytest.mark.parametrize("value", [0, 0.0, "x", " x "])
def test_present_accepts_values(value):
    assert present(value)


def test_fmt_number():
    assert fmt_number(36.5) == "36.5"
    assert fmt_number(70.0) == "70"
    assert fmt_number(72) == "72"
    assert fmt_number(" 120/80 ") == "120/80"
    assert fmt_number("70.0") == "70"
    assert fmt_number("70 kg") == "70 kg"


def test_fmt_fixed2():
    assert fmt_fixed2(24.8016) == "24.80"
    assert fmt_fixed2(25) == "25.00"
    assert fmt_fixed2("22.456") == "22.46"


def test_field_reads_dicts_and_objects():
    class Obj:
        nombre = "Farmacia Central"

    assert field({"nombre": "a"}, "nombre") == "a"
    assert field(Obj(), "nombre") == "Farmacia Central"
    assert field(None, "nombre", "x") == "x"
    assert field({}, "nombre") is None
