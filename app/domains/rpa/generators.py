# app/domains/rpa/generators.py

"""
성적서 파일(PDF/DOCX/XLSX)과 QR 코드, 체크섬을 생성하는 모듈입니다.

- PDF: reportlab platypus. 재발행본(version != "1.0")은 모든 페이지에 워터마크를 넣습니다.
- DOCX: python-docx.
- XLSX: openpyxl.
- QR: qrcode (PNG data URL).
모든 생성 함수는 병합 데이터(dict)를 받아 파일 바이트를 반환합니다.
"""

import base64
import hashlib
import hmac
import logging
from io import BytesIO
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

import qrcode
from docx import Document
from docx.shared import Pt
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .engine import format_header
from .models import ReportFormat

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ReportFormat.PDF: "application/pdf",
    ReportFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ReportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

EXTENSIONS = {
    ReportFormat.PDF: "pdf",
    ReportFormat.DOCX: "docx",
    ReportFormat.XLSX: "xlsx",
}

NAVY = HexColor("#1B2C5E")
LIGHT_BG = HexColor("#F3F4F6")
RULE_CLR = HexColor("#D1D5DB")
PAGE_W, PAGE_H = A4

MECHANICAL_ROWS = (
    ("UTS_MPa", "Tensile Strength (UTS)", "MPa"),
    ("YS_MPa", "Yield Strength (YS)", "MPa"),
    ("El_pct", "Elongation", "%"),
    ("RA_pct", "Reduction of Area", "%"),
)


# =============================================================================
# 1. 체크섬 / QR 코드
# =============================================================================
def calculate_checksum(data: bytes) -> str:
    """SHA-256 16진 다이제스트."""
    return hashlib.sha256(data).hexdigest()


def verify_checksum(data: bytes, checksum: str) -> bool:
    return hmac.compare_digest(calculate_checksum(data), checksum or "")


def generate_qr_code(data: str, size: int = 200) -> str:
    """
    data 를 담은 QR 코드를 PNG data URL 로 반환합니다.
    인코딩 실패 시 로그를 남기고 빈 문자열을 반환합니다.
    """
    try:
        qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=1)
        qr.add_data(data)
        qr.make(fit=True)
        qr.box_size = max(1, size // (qr.modules_count + 2 * qr.border))
        img = qr.make_image(fill_color="black", back_color="white")
        buffered = BytesIO()
        img.save(buffered, format="PNG")
    except Exception:
        logger.error("QR code generation failed", exc_info=True)
        return ""
    return "data:image/png;base64," + base64.b64encode(buffered.getvalue()).decode("ascii")


def _decode_data_url(data_url: Optional[str]) -> Optional[bytes]:
    if not data_url or "," not in data_url:
        return None
    return base64.b64decode(data_url.split(",", 1)[1])


def _text(value: Any) -> str:
    if value is None or value == "":
        return "-"
    return str(value)


def _mechanical_rows(mechanical: Dict[str, Any]) -> List[tuple]:
    """(항목, 값, 단위) 목록. 강도 값이 ksi 로 변환되어 있으면 ksi 로 표기합니다."""
    rows = []
    for key, label, unit in MECHANICAL_ROWS:
        converted = mechanical.get(key.replace("_MPa", "_ksi")) if unit == "MPa" else None
        if converted is not None:
            rows.append((label, round(converted, 1), "ksi"))
        else:
            rows.append((label, mechanical.get(key), unit))
    return rows


def _field_pairs(merge_data: Dict[str, Any]) -> List[tuple]:
    """table_config.field_order 로 지정된 필드를 (제목, 값) 목록으로 만듭니다."""
    pairs = []
    for field in merge_data.get("ordered_fields") or []:
        value = field.get("value")
        if isinstance(value, dict):
            value = ", ".join(f"{format_header(k)}: {_text(v)}" for k, v in value.items() if v is not None)
        elif isinstance(value, list):
            value = f"{len(value)} item(s)"
        pairs.append((format_header(field.get("key", "")), value))
    return pairs


# =============================================================================
# 2. PDF (reportlab)
# =============================================================================
def _make_styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("Title", parent=base["Title"], fontSize=16, textColor=NAVY, spaceAfter=4),
        "subtitle": ParagraphStyle("Sub", parent=base["Normal"], fontSize=9, textColor=colors.grey, alignment=1),
        "section": ParagraphStyle("Section", parent=base["Heading3"], textColor=NAVY, spaceBefore=8, spaceAfter=4),
        "body": ParagraphStyle("Body", parent=base["Normal"], fontSize=9, leading=12),
        "small": ParagraphStyle("Small", parent=base["Normal"], fontSize=7.5, textColor=colors.grey),
    }


def _table(headers: List[str], rows: List[List[Any]], col_widths=None) -> Table:
    data = [headers] + [[_text(cell) for cell in row] for row in rows]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), NAVY),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.4, RULE_CLR),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for i in range(1, len(data)):
        if i % 2 == 0:
            style.append(("BACKGROUND", (0, i), (-1, i), LIGHT_BG))
        if data[i][-1] == "FAIL":
            style.append(("TEXTCOLOR", (-1, i), (-1, i), colors.red))
    table.setStyle(TableStyle(style))
    return table


def _key_value_table(pairs: List[tuple]) -> Table:
    table = Table([[k, _text(v)] for k, v in pairs], colWidths=[45 * mm, 125 * mm])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8.5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
    ]))
    return table


def _page_decorator(watermark: Optional[str]):
    def draw(canvas, doc):
        canvas.saveState()
        if watermark:
            canvas.setFont("Helvetica-Bold", 56)
            canvas.setFillColor(colors.Color(0.8, 0.1, 0.1, alpha=0.15))
            canvas.translate(PAGE_W / 2, PAGE_H / 2)
            canvas.rotate(45)
            canvas.drawCentredString(0, 0, watermark)
            canvas.rotate(-45)
            canvas.translate(-PAGE_W / 2, -PAGE_H / 2)
        canvas.setFont("Helvetica", 7.5)
        canvas.setFillColor(colors.grey)
        canvas.drawRightString(PAGE_W - 20 * mm, 12 * mm, f"Page {doc.page}")
        canvas.restoreState()
    return draw


def generate_pdf(merge_data: Dict[str, Any], version: str = "1.0") -> bytes:
    """병합 데이터로 성적서 PDF 를 생성합니다."""
    styles = _make_styles()
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=20 * mm, rightMargin=20 * mm, topMargin=20 * mm, bottomMargin=20 * mm,
        title=merge_data.get("report_title") or "Test Certificate",
    )
    story = [
        Paragraph(escape(merge_data.get("report_title") or "Test Certificate"), styles["title"]),
        Paragraph(
            escape(f"Report No: {_text(merge_data.get('report_no'))}  |  "
                   f"Date: {_text(merge_data.get('report_date'))}  |  Version: {version}"),
            styles["subtitle"],
        ),
        Spacer(1, 6 * mm),
    ]

    fields = _field_pairs(merge_data)
    if fields:
        story.append(Paragraph("Report Details", styles["section"]))
        story.append(_key_value_table(fields))

    customer = merge_data.get("customer") or {}
    po = merge_data.get("po") or {}
    part = merge_data.get("part") or {}
    story.append(Paragraph("Customer Information", styles["section"]))
    story.append(_key_value_table([
        ("Customer", customer.get("name")),
        ("Address", customer.get("address")),
        ("PO / Line", f"{_text(po.get('number'))} / {_text(po.get('line'))}" if po else None),
        ("Part No / Rev", f"{_text(part.get('number'))} / {_text(part.get('drawing_rev'))}" if part else None),
        ("Description", part.get("description")),
    ]))

    trace = merge_data.get("trace") or {}
    if trace:
        story.append(Paragraph("Traceability", styles["section"]))
        story.append(_key_value_table([
            ("Heat No", trace.get("heat_no")),
            ("Batch No", trace.get("batch_no")),
            ("Supplier", trace.get("supplier")),
            ("Mill TC No", trace.get("mtc_no")),
            ("Production Order", trace.get("production_order")),
        ]))

    chemistry = merge_data.get("chemistry") or []
    if chemistry:
        story.append(Paragraph("Chemical Composition", styles["section"]))
        story.append(_table(
            ["Element", "Min", "Max", "Result", "Unit", "Verdict"],
            [[c.get("element"), c.get("min"), c.get("max"), c.get("result"), c.get("unit"), c.get("verdict")]
             for c in chemistry],
        ))

    mechanical = merge_data.get("mechanical") or {}
    if mechanical:
        story.append(Paragraph("Mechanical Properties", styles["section"]))
        rows = [list(row) for row in _mechanical_rows(mechanical)]
        story.append(_table(["Property", "Result", "Unit"], rows))
        story.append(Paragraph(
            escape(f"Specification: {_text(mechanical.get('spec'))}  |  Verdict: {_text(mechanical.get('verdict'))}"),
            styles["body"],
        ))

    hardness = merge_data.get("hardness") or []
    if hardness:
        story.append(Paragraph("Hardness", styles["section"]))
        story.append(_table(
            ["Scale", "Location", "Min", "Max", "Result", "Verdict"],
            [[h.get("scale"), h.get("location"), h.get("spec_min"), h.get("spec_max"), h.get("result"), h.get("verdict")]
             for h in hardness],
        ))

    impact = merge_data.get("impact") or []
    if impact:
        story.append(Paragraph("Impact Test", styles["section"]))
        story.append(_table(
            ["Temp", "Energy", "Spec", "Result", "Verdict"],
            [[i.get("temp"), i.get("energy"), i.get("spec"), i.get("result"), i.get("verdict")] for i in impact],
        ))

    deviations = merge_data.get("deviations") or []
    if deviations:
        story.append(Paragraph("Deviations / Concessions", styles["section"]))
        story.append(_table(
            ["Parameter", "Original", "Deviation", "Concession Ref", "Approved By"],
            [[d.get("parameter"), d.get("original"), d.get("deviation"), d.get("concession_ref"), d.get("approved_by")]
             for d in deviations],
        ))

    # 서명란
    story.append(Spacer(1, 8 * mm))
    signatures = merge_data.get("signatures") or []
    sign_rows = [[s.get("role"), s.get("name"), s.get("signed_at")] for s in signatures]
    if not sign_rows:
        sign_rows = [["Tested By", "", ""], ["Approved By", "", ""]]
    story.append(_table(["Role", "Name", "Signed At"], sign_rows))

    qr_png = _decode_data_url(merge_data.get("qr_code"))
    if qr_png:
        story.append(Spacer(1, 6 * mm))
        story.append(Image(BytesIO(qr_png), width=30 * mm, height=30 * mm))
    if merge_data.get("qr_url"):
        story.append(Paragraph(escape(f"Verify at: {merge_data['qr_url']}"), styles["small"]))

    watermark = f"REVISED v{version}" if version != "1.0" else None
    decorate = _page_decorator(watermark)
    doc.build(story, onFirstPage=decorate, onLaterPages=decorate)
    return buffer.getvalue()


def generate_mtc_pdf(report_no: str, mtc_data: Dict[str, Any]) -> bytes:
    """rpt 도메인 MTC 성적서를 PDF 로 렌더링합니다."""
    material = mtc_data.get("material") or {}
    supplier = mtc_data.get("supplier") or {}
    merge_data = {
        "report_title": "Mill Test Certificate",
        "report_no": report_no,
        "report_date": mtc_data.get("issue_date"),
        "customer": {"name": supplier.get("name")},
        "trace": {
            "heat_no": material.get("heat_no"),
            "supplier": supplier.get("name"),
            "mtc_no": mtc_data.get("certificate_no"),
            "production_order": f"{_text(material.get('grade'))} / "
                                f"{_text(material.get('quantity'))} {_text(material.get('unit'))}",
        },
        "chemistry": [
            {"element": r.get("parameter"), "min": r.get("min_spec"), "max": r.get("max_spec"),
             "result": r.get("value"), "unit": r.get("unit"), "verdict": r.get("verdict")}
            for r in mtc_data.get("chemical_composition") or []
        ],
        "mechanical": {},
    }
    mechanical_rows = mtc_data.get("mechanical_properties") or []
    if mechanical_rows:
        by_param = {r.get("parameter"): r.get("value") for r in mechanical_rows}
        merge_data["mechanical"] = {
            "UTS_MPa": by_param.get("UTS"),
            "YS_MPa": by_param.get("YS"),
            "El_pct": by_param.get("Elongation"),
            "RA_pct": by_param.get("ReductionArea"),
            "verdict": "PASS" if all(r.get("verdict") == "PASS" for r in mechanical_rows) else "FAIL",
        }
    return generate_pdf(merge_data)


# =============================================================================
# 3. DOCX (python-docx)
# =============================================================================
def generate_docx(merge_data: Dict[str, Any]) -> bytes:
    doc = Document()
    doc.add_heading(merge_data.get("report_title") or "Test Certificate", level=0)
    doc.add_paragraph(f"Report No: {_text(merge_data.get('report_no'))}")
    doc.add_paragraph(f"Date: {_text(merge_data.get('report_date'))}")
    for label, value in _field_pairs(merge_data):
        doc.add_paragraph(f"{label}: {_text(value)}")

    customer = merge_data.get("customer") or {}
    trace = merge_data.get("trace") or {}
    doc.add_heading("Customer Information", level=1)
    doc.add_paragraph(f"Customer: {_text(customer.get('name'))}")
    doc.add_paragraph(f"Address: {_text(customer.get('address'))}")
    if trace:
        doc.add_heading("Traceability", level=1)
        doc.add_paragraph(f"Heat No: {_text(trace.get('heat_no'))}")
        doc.add_paragraph(f"Supplier: {_text(trace.get('supplier'))}")
        doc.add_paragraph(f"Mill TC No: {_text(trace.get('mtc_no'))}")

    chemistry = merge_data.get("chemistry") or []
    if chemistry:
        doc.add_heading("Chemical Composition", level=1)
        headers = ["Element", "Min", "Max", "Result", "Verdict"]
        table = doc.add_table(rows=1, cols=len(headers))
        table.style = "Table Grid"
        for cell, header in zip(table.rows[0].cells, headers):
            cell.text = header
            for run in cell.paragraphs[0].runs:
                run.font.bold = True
                run.font.size = Pt(9)
        for row in chemistry:
            cells = table.add_row().cells
            values = [row.get("element"), row.get("min"), row.get("max"), row.get("result"), row.get("verdict")]
            for cell, value in zip(cells, values):
                cell.text = _text(value)

    if merge_data.get("qr_url"):
        doc.add_paragraph(f"Verify at: {merge_data['qr_url']}")

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


# =============================================================================
# 4. XLSX (openpyxl)
# =============================================================================
def generate_xlsx(merge_data: Dict[str, Any]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Report"

    headers = ["Parameter", "Value", "Unit", "Verdict"]
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill("solid", fgColor="1B2C5E")

    for row in merge_data.get("chemistry") or []:
        sheet.append([row.get("element"), row.get("result"), row.get("unit") or "%", row.get("verdict")])

    mechanical = merge_data.get("mechanical") or {}
    for label, value, unit in _mechanical_rows(mechanical):
        if value is not None:
            sheet.append([label, value, unit, mechanical.get("verdict")])

    for column, width in zip("ABCD", (28, 14, 10, 22)):
        sheet.column_dimensions[column].width = width

    fields = _field_pairs(merge_data)
    if fields:
        details = workbook.create_sheet("Details")
        for label, value in fields:
            details.append([label, _text(value)])

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_document(fmt: ReportFormat, merge_data: Dict[str, Any], version: str = "1.0") -> bytes:
    """형식에 맞는 생성기로 파일 바이트를 만듭니다."""
    if fmt == ReportFormat.PDF:
        return generate_pdf(merge_data, version)
    if fmt == ReportFormat.DOCX:
        return generate_docx(merge_data)
    if fmt == ReportFormat.XLSX:
        return generate_xlsx(merge_data)
    raise ValueError(f"Unsupported report format: {fmt}")
