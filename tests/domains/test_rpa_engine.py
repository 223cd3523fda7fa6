# tests/domains/test_rpa_engine.py

"""
'rpa' 템플릿 엔진과 파일 생성기 단위 테스트 (DB 불필요)
"""

from datetime import date
from io import BytesIO

import pytest
from docx import Document
from jinja2 import TemplateSyntaxError
from openpyxl import load_workbook

from app.domains.rpa import generators
from app.domains.rpa.engine import (
    DEFAULT_TEMPLATE, convert_unit, format_cell, format_date, format_header, format_number,
    spec_range, table, template_engine, verdict_class,
)
from app.domains.rpa.models import ReportFormat


@pytest.fixture
def merge_data():
    return {
        "report_title": "Mill Test Certificate",
        "report_no": "PUNE-24-000001",
        "report_date": "2024-03-15",
        "version": "1.0",
        "customer": {"name": "Bharat Forge Ltd", "code": "CUST001", "address": "Pune", "logo": None},
        "po": {"number": "PO-7781", "line": 2},
        "part": {"number": "FLG-150", "drawing_rev": "C", "description": "Weld neck flange"},
        "trace": {"heat_no": "HT-2024-001234", "batch_no": None, "supplier": "Steel Corp India Ltd",
                  "mtc_no": "MTC-SC-2024-0456", "production_order": "S-2024-000001"},
        "chemistry": [
            {"element": "Mn", "min": 0.6, "max": 1.35, "result": 1.15, "unit": "%", "verdict": "PASS"},
            {"element": "Nb", "min": None, "max": 0.02, "result": 0.01, "unit": "%", "verdict": "PASS"},
            {"element": "C", "min": None, "max": 0.35, "result": 0.19, "unit": "%", "verdict": "PASS"},
        ],
        "mechanical": {"UTS_MPa": 520, "YS_MPa": 275, "El_pct": 25, "RA_pct": None,
                       "spec": "ASTM E8", "verdict": "PASS"},
        "hardness": [], "impact": [], "deviations": [],
        "signatures": [{"role": "QA Manager", "name": "User #1", "signed_at": "2024-03-16T10:00:00+00:00"}],
        "qr_code": generators.generate_qr_code("https://reports.example.com/verify/PUNE-24-000001?code=ABCD1234"),
        "qr_url": "https://reports.example.com/verify/PUNE-24-000001?code=ABCD1234",
    }


# =============================================================================
# 1. 필터 / 전역 함수
# =============================================================================
@pytest.mark.parametrize("value, expected", [
    ("2024-03-15", "15/03/2024"),
    (date(2024, 1, 2), "02/01/2024"),
    ("2024-03-15T08:30:00Z", "15/03/2024"),
    ("not a date", "not a date"),
    (None, ""),
])
def test_format_date(value, expected):
    assert format_date(value) == expected


def test_number_and_verdict_filters():
    assert format_number(0.1934, 3) == "0.193"
    assert format_number(None) == "-"
    assert format_number("n/a") == "n/a"
    assert verdict_class("PASS") == "verdict-pass"
    assert verdict_class("PASS_WITH_DEVIATION") == "verdict-deviation"
    assert verdict_class(None) == ""


def test_convert_unit_and_spec_range():
    assert convert_unit(100, "MPa", "ksi") == pytest.approx(14.5038, rel=1e-3)
    assert convert_unit(100, "MPa", "furlong") == 100
    assert spec_range(0.6, 1.35, "%") == "0.6 - 1.35 %"
    assert spec_range(485, None, "MPa") == "Min: 485 MPa"
    assert spec_range(None, 0.35) == "Max: 0.35"
    assert spec_range() == "-"


def test_format_header_and_cell():
    assert format_header("heat_no") == "Heat No"
    assert format_header("productionOrder") == "Production Order"
    assert format_cell(None) == "-"
    assert format_cell(True) == "Yes"
    assert format_cell(12.0, "piece_count") == "12"
    assert format_cell(12.345, "elongation_percent") == "12.3"
    assert format_cell(1.5) == "1.50"


def test_table_helper_escapes_and_marks_verdicts():
    html = str(table([{"element": "<C>", "verdict": "FAIL"}, {"element": "Mn", "verdict": "PASS"}]))
    assert "<th>Element</th>" in html
    assert "&lt;C&gt;" in html
    assert '<td class="verdict-fail">FAIL</td>' in html
    assert str(table([])) == ""


# =============================================================================
# 2. 템플릿 엔진
# =============================================================================
def test_prepare_data_orders_and_fills_elements(merge_data):
    prepared = template_engine.prepare_data(merge_data, {
        "chemistry": {"element_order": ["C", "Mn", "Si"], "show_zero_elements": True},
        "mechanical": {"units": {"strength": "ksi"}},
        "field_order": ["report_no", "missing", "version"],
    })
    assert [row["element"] for row in prepared["chemistry"]] == ["C", "Mn", "Nb", "Si"]
    assert prepared["chemistry"][-1]["result"] == 0
    assert prepared["mechanical"]["UTS_ksi"] == pytest.approx(75.42, rel=1e-3)
    assert [f["key"] for f in prepared["ordered_fields"]] == ["report_no", "version"]
    # 원본 데이터는 변경되지 않습니다.
    assert [row["element"] for row in merge_data["chemistry"]] == ["Mn", "Nb", "C"]
    assert "UTS_ksi" not in merge_data["mechanical"]


def test_render_default_template(merge_data):
    html = template_engine.render(DEFAULT_TEMPLATE, merge_data)
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Mill Test Certificate</title>" in html
    assert "Report No: PUNE-24-000001 | Date: 15/03/2024 | Version: 1.0" in html
    assert "PO: PO-7781 / Line 2" in html
    assert "Heat No: HT-2024-001234" in html
    assert html.index("<td>C</td>") < html.index("<td>Mn</td>")
    assert "0.6 - 1.35 %" in html
    assert '<td class="verdict-pass">PASS</td>' in html
    assert '<span class="role">QA Manager</span>' in html
    assert 'class="qr-code" src="data:image/png;base64,' in html
    assert '<span class="topage"></span>' in html


def test_render_escapes_merge_values(merge_data):
    merge_data["customer"]["name"] = "<script>alert(1)</script>"
    html = template_engine.render(DEFAULT_TEMPLATE, merge_data)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_customer_test_and_page_config(merge_data):
    template = {
        "name": "Customer specific",
        "body_template": "{% if 'CUST001' is customer %}BF layout{% else %}generic{% endif %}",
        "page_config": {"size": "Letter", "orientation": "landscape", "margins": "10mm"},
    }
    html = template_engine.render(template, merge_data)
    assert "<main>BF layout</main>" in html
    assert "@page { size: Letter landscape; margin: 10mm; }" in html

    merge_data["customer"]["code"] = "OTHER"
    assert "<main>generic</main>" in template_engine.render(template, merge_data)


def test_validate_rejects_bad_syntax():
    template_engine.validate(None)
    template_engine.validate('{% include "footer" %}')
    with pytest.raises(TemplateSyntaxError):
        template_engine.validate("{% for row in chemistry %}")


# =============================================================================
# 3. 파일 생성기 / 체크섬 / QR
# =============================================================================
def test_checksum_roundtrip():
    checksum = generators.calculate_checksum(b"report-bytes")
    assert len(checksum) == 64
    assert generators.verify_checksum(b"report-bytes", checksum) is True
    assert generators.verify_checksum(b"report-bytes!", checksum) is False
    assert generators.verify_checksum(b"report-bytes", None) is False


def test_qr_code_data_url():
    data_url = generators.generate_qr_code("https://reports.example.com/verify/X")
    assert data_url.startswith("data:image/png;base64,")
    assert generators._decode_data_url(data_url).startswith(b"\x89PNG")


def test_qr_code_failure_returns_empty(monkeypatch):
    def _broken(*args, **kwargs):
        raise ValueError("encoder unavailable")

    monkeypatch.setattr(generators.qrcode, "QRCode", _broken)
    assert generators.generate_qr_code("anything") == ""


def test_generate_pdf(merge_data):
    original = generators.generate_pdf(merge_data, "1.0")
    revised = generators.generate_pdf(merge_data, "1.1")
    assert original.startswith(b"%PDF")
    assert revised.startswith(b"%PDF")
    assert original.rstrip().endswith(b"%%EOF")


def test_generate_pdf_without_optional_sections():
    content = generators.generate_pdf({"report_title": "Certificate of Analysis"})
    assert content.startswith(b"%PDF")


def test_generate_docx(merge_data):
    document = Document(BytesIO(generators.generate_docx(merge_data)))
    texts = [p.text for p in document.paragraphs]
    assert "Mill Test Certificate" in texts
    assert "Heat No: HT-2024-001234" in texts
    rows = document.tables[0].rows
    assert [c.text for c in rows[0].cells] == ["Element", "Min", "Max", "Result", "Verdict"]
    assert [c.text for c in rows[1].cells] == ["Mn", "0.6", "1.35", "1.15", "PASS"]
    assert rows[2].cells[1].text == "-"


def test_generate_xlsx(merge_data):
    workbook = load_workbook(BytesIO(generators.generate_xlsx(merge_data)))
    sheet = workbook["Report"]
    values = list(sheet.iter_rows(values_only=True))
    assert values[0] == ("Parameter", "Value", "Unit", "Verdict")
    assert values[1] == ("Mn", 1.15, "%", "PASS")
    assert ("Tensile Strength (UTS)", 520, "MPa", "PASS") in values
    # RA 값이 없으면 행을 만들지 않습니다.
    assert not any(row[0] == "Reduction of Area" for row in values)


def test_build_document_dispatch(merge_data):
    assert generators.build_document(ReportFormat.PDF, merge_data).startswith(b"%PDF")
    assert generators.build_document(ReportFormat.DOCX, merge_data).startswith(b"PK")
    assert generators.build_document(ReportFormat.XLSX, merge_data).startswith(b"PK")
    with pytest.raises(ValueError):
        generators.build_document("HTML", merge_data)


def test_generate_mtc_pdf():
    content = generators.generate_mtc_pdf("MTC-2024-000001", {
        "certificate_no": "MTC-2024-000001",
        "issue_date": "2024-03-15",
        "supplier": {"name": "Steel Corp India Ltd", "code": "SUP001"},
        "material": {"heat_no": "HT-2024-001234", "grade": "ASTM A105", "quantity": 2500, "unit": "KG"},
        "chemical_composition": [{"parameter": "C", "value": 0.19, "max_spec": 0.35, "unit": "%", "verdict": "PASS"}],
        "mechanical_properties": [{"parameter": "UTS", "value": 520, "unit": "MPa", "verdict": "PASS"}],
    })
    assert content.startswith(b"%PDF")
