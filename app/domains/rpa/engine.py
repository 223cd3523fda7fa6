# app/domains/rpa/engine.py

"""
Jinja2 기반 성적서 템플릿 엔진 모듈입니다.

템플릿의 header/body/footer 소스를 하나의 Environment 로 렌더링하여
page_config 의 CSS 가 적용된 HTML 문서를 만듭니다.
렌더링 전에 table_config 에 따라 병합 데이터를 정렬/보완합니다.
"""

import copy
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import DictLoader, Environment, pass_context, select_autoescape
from markupsafe import Markup, escape

logger = logging.getLogger(__name__)

UNIT_CONVERSIONS = {
    ("MPa", "ksi"): 0.145038,
    ("ksi", "MPa"): 6.89476,
    ("mm", "inch"): 0.0393701,
    ("inch", "mm"): 25.4,
    ("kg", "lb"): 2.20462,
    ("lb", "kg"): 0.453592,
}

VERDICT_CLASSES = {
    "PASS": "verdict-pass",
    "FAIL": "verdict-fail",
    "PASS_WITH_DEVIATION": "verdict-deviation",
}

# =============================================================================
# 공통 부분 템플릿 ({% include "<name>" %} 으로 사용)
# =============================================================================
PARTIALS = {
    "header": """<div class="report-header">
  {% if customer and customer.logo %}<img class="logo" src="{{ customer.logo }}" alt="logo">{% endif %}
  <h1>{{ report_title }}</h1>
  <div class="report-meta">Report No: {{ report_no }} | Date: {{ report_date | format_date }} | Version: {{ version }}</div>
</div>""",
    "customer_info": """<section class="customer-info">
  <h2>Customer Information</h2>
  <p><strong>{{ customer.name if customer else '-' }}</strong></p>
  {% if customer and customer.address %}<p>{{ customer.address }}</p>{% endif %}
  {% if po %}<p>PO: {{ po.number }} / Line {{ po.line or '-' }}</p>{% endif %}
  {% if part %}<p>Part: {{ part.number or '-' }} Rev {{ part.drawing_rev or '-' }} {{ part.description or '' }}</p>{% endif %}
</section>""",
    "traceability_info": """{% if trace %}<section class="traceability">
  <h2>Traceability</h2>
  <p>Heat No: {{ trace.heat_no or '-' }} | Batch: {{ trace.batch_no or '-' }} | Supplier: {{ trace.supplier or '-' }}</p>
  <p>Mill TC: {{ trace.mtc_no or '-' }} | Production Order: {{ trace.production_order or '-' }}</p>
</section>{% endif %}""",
    "chemistry_table": """{% if chemistry %}<section class="chemistry">
  <h2>Chemical Composition</h2>
  <table>
    <thead><tr><th>Element</th><th>Specification</th><th>Result</th><th>Verdict</th></tr></thead>
    <tbody>
    {% for row in chemistry %}
      <tr><td>{{ row.element }}</td><td>{{ spec_range(row.min, row.max, row.unit) }}</td>
      <td>{{ row.result | format_number(3) }}</td><td class="{{ row.verdict | verdict_class }}">{{ row.verdict }}</td></tr>
    {% endfor %}
    </tbody>
  </table>
</section>{% endif %}""",
    "mechanical_table": """{% if mechanical %}<section class="mechanical">
  <h2>Mechanical Properties</h2>
  <table>
    <thead><tr><th>UTS (MPa)</th><th>YS (MPa)</th><th>Elongation (%)</th><th>RA (%)</th><th>Verdict</th></tr></thead>
    <tbody><tr>
      <td>{{ mechanical.UTS_MPa | format_number(0) }}</td><td>{{ mechanical.YS_MPa | format_number(0) }}</td>
      <td>{{ mechanical.El_pct | format_number(1) }}</td><td>{{ mechanical.RA_pct | format_number(1) }}</td>
      <td class="{{ mechanical.verdict | verdict_class }}">{{ mechanical.verdict }}</td>
    </tr></tbody>
  </table>
  {% if mechanical.spec %}<p>Specification: {{ mechanical.spec }}</p>{% endif %}
</section>{% endif %}""",
    "footer": """<div class="report-footer">
  {{ signature_block(signatures) }}
  {% if qr_code %}<div class="verification">{{ qr_code_image(qr_code) }}<p>Verify at: {{ qr_url }}</p></div>{% endif %}
  {{ page_numbers() }}
</div>""",
}

DEFAULT_TEMPLATE = {
    "name": "Default MTC",
    "header_template": '{% include "header" %}',
    "body_template": (
        '{% include "customer_info" %}\n{% include "traceability_info" %}\n'
        '{% include "chemistry_table" %}\n{% include "mechanical_table" %}'
    ),
    "footer_template": '{% include "footer" %}',
    "table_config": {
        "chemistry": {"element_order": ["C", "Mn", "Si", "P", "S", "Cr", "Ni", "Mo", "Cu", "V"]},
    },
    "page_config": {"size": "A4", "orientation": "portrait", "margins": "20mm"},
}


# =============================================================================
# 필터
# =============================================================================
def format_date(value: Any, fmt: str = "%d/%m/%Y") -> Any:
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime(fmt)
    except ValueError:
        return value


def format_number(value: Any, precision: int = 2) -> str:
    if value is None:
        return "-"
    try:
        return f"{float(value):.{precision}f}"
    except (TypeError, ValueError):
        return str(value)


def verdict_class(value: Any) -> str:
    return VERDICT_CLASSES.get(str(value), "") if value else ""


def convert_unit(value: Any, from_unit: str, to_unit: str) -> Any:
    factor = UNIT_CONVERSIONS.get((from_unit, to_unit))
    if factor is None or value is None:
        return value
    return float(value) * factor


def spec_range(min_value: Any = None, max_value: Any = None, unit: Optional[str] = None) -> str:
    suffix = f" {unit}" if unit else ""
    if min_value is not None and max_value is not None:
        return f"{min_value} - {max_value}{suffix}"
    if min_value is not None:
        return f"Min: {min_value}{suffix}"
    if max_value is not None:
        return f"Max: {max_value}{suffix}"
    return "-"


def format_header(value: str) -> str:
    """snake_case / camelCase 를 Title Case 로 변환합니다."""
    words = []
    current = ""
    for char in str(value):
        if char in "_- ":
            if current:
                words.append(current)
            current = ""
        elif char.isupper() and current and not current[-1].isupper():
            words.append(current)
            current = char
        else:
            current += char
    if current:
        words.append(current)
    return " ".join(word[:1].upper() + word[1:] for word in words)


def format_cell(value: Any, header: str = "") -> str:
    if value is None:
        return "-"
    header_lower = str(header).lower()
    if "date" in header_lower:
        return format_date(value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        if "count" in header_lower or "quantity" in header_lower:
            return format_number(value, 0)
        if "percent" in header_lower or "%" in header_lower:
            return format_number(value, 1)
        return format_number(value, 2)
    return str(value)


# =============================================================================
# 전역 함수 / 테스트
# =============================================================================
def table(rows: List[Dict[str, Any]], headers: Optional[List[str]] = None) -> Markup:
    """dict 목록을 HTML 표로 렌더링합니다. verdict/status 열에는 클래스가 붙습니다."""
    if not rows:
        return Markup("")
    headers = headers or list(rows[0].keys())
    head = "".join(f"<th>{escape(format_header(h))}</th>" for h in headers)
    body_rows = []
    for row in rows:
        cells = []
        for h in headers:
            value = row.get(h)
            css = ""
            if h in ("verdict", "status"):
                css = verdict_class(value) or f"status-{str(value).lower()}"
            class_attr = f' class="{escape(css)}"' if css else ""
            cells.append(f"<td{class_attr}>{escape(format_cell(value, h))}</td>")
        body_rows.append(f"<tr>{''.join(cells)}</tr>")
    return Markup(f'<table class="data-table"><thead><tr>{head}</tr></thead><tbody>{"".join(body_rows)}</tbody></table>')


def qr_code_image(data_url: Optional[str]) -> Markup:
    if not data_url:
        return Markup("")
    return Markup('<img class="qr-code" src="{}" alt="QR Code">').format(data_url)


def signature_block(signatures: Optional[List[Dict[str, Any]]]) -> Markup:
    if not signatures:
        return Markup('<div class="signatures"><div class="signature">Tested By</div>'
                      '<div class="signature">Approved By</div></div>')
    blocks = [
        Markup('<div class="signature"><span class="role">{}</span> <span class="name">{}</span> '
               '<span class="date">{}</span></div>').format(
            s.get("role", ""), s.get("name", ""), format_date(s.get("signed_at")))
        for s in signatures
    ]
    return Markup('<div class="signatures">') + Markup("").join(blocks) + Markup("</div>")


def page_numbers() -> Markup:
    return Markup('<div class="page-number">Page <span class="page"></span> of <span class="topage"></span></div>')


@pass_context
def is_customer(context, code: str) -> bool:
    customer = context.get("customer") or {}
    return customer.get("code") == code


# =============================================================================
# 템플릿 엔진
# =============================================================================
class TemplateEngine:
    """
    header/body/footer 템플릿 소스를 렌더링합니다.
    template 은 ReportTemplate 모델 또는 같은 키를 가진 dict 입니다.
    """

    def __init__(self):
        self.env = Environment(
            loader=DictLoader(PARTIALS),
            autoescape=select_autoescape(default=True, default_for_string=True),
        )
        self.env.filters.update({
            "format_date": format_date,
            "format_number": format_number,
            "verdict_class": verdict_class,
            "convert_unit": convert_unit,
            "format_header": format_header,
            "format_cell": format_cell,
        })
        self.env.globals.update({
            "table": table,
            "qr_code_image": qr_code_image,
            "signature_block": signature_block,
            "page_numbers": page_numbers,
            "spec_range": spec_range,
        })
        # 렌더링 데이터에 qr_code 키가 있으면 데이터 값이 우선합니다.
        self.env.globals["qr_code"] = qr_code_image
        self.env.tests["customer"] = is_customer

    @staticmethod
    def _get(template: Any, key: str) -> Any:
        if isinstance(template, dict):
            return template.get(key)
        return getattr(template, key, None)

    def validate(self, source: Optional[str]) -> None:
        """문법 오류 시 jinja2.TemplateSyntaxError 를 발생시킵니다."""
        if source:
            self.env.parse(source)

    def render_source(self, source: Optional[str], data: Dict[str, Any]) -> str:
        if not source:
            return ""
        return self.env.from_string(source).render(**data)

    def render(self, template: Any, data: Dict[str, Any]) -> str:
        return self.render_document(template, data)[0]

    def render_document(self, template: Any, data: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """렌더링된 HTML 과 table_config 가 적용된 데이터를 함께 반환합니다. 파일 생성기는 후자를 사용합니다."""
        prepared = self.prepare_data(data, self._get(template, "table_config") or {})
        header = self.render_source(self._get(template, "header_template"), prepared)
        body = self.render_source(self._get(template, "body_template"), prepared)
        footer = self.render_source(self._get(template, "footer_template"), prepared)
        logger.debug("Rendered template %s", self._get(template, "name"))
        html = self.wrap_html(header, body, footer, self._get(template, "page_config") or {},
                              title=prepared.get("report_title") or "Report")
        return html, prepared

    def prepare_data(self, data: Dict[str, Any], table_config: Dict[str, Any]) -> Dict[str, Any]:
        """table_config 에 따라 원소 정렬, 누락 원소 보완, 단위 변환, 필드 순서를 적용합니다."""
        prepared = copy.deepcopy(data)

        chem_config = table_config.get("chemistry") or {}
        element_order = chem_config.get("element_order") or []
        chemistry = prepared.get("chemistry")
        if chemistry and element_order:
            rank = {element: i for i, element in enumerate(element_order)}
            # sorted 는 안정 정렬이므로 목록에 없는 원소는 원래 순서대로 뒤에 남습니다.
            chemistry = sorted(chemistry, key=lambda row: rank.get(row.get("element"), len(rank)))
        if chem_config.get("show_zero_elements") and element_order:
            chemistry = list(chemistry or [])
            present = {row.get("element") for row in chemistry}
            for element in element_order:
                if element not in present:
                    chemistry.append({"element": element, "min": None, "max": None, "result": 0, "verdict": "PASS"})
        if chemistry is not None:
            prepared["chemistry"] = chemistry

        mech_config = table_config.get("mechanical") or {}
        mechanical = prepared.get("mechanical")
        if mechanical and (mech_config.get("units") or {}).get("strength") == "ksi":
            mechanical["UTS_ksi"] = convert_unit(mechanical.get("UTS_MPa"), "MPa", "ksi")
            mechanical["YS_ksi"] = convert_unit(mechanical.get("YS_MPa"), "MPa", "ksi")

        field_order = table_config.get("field_order")
        if field_order:
            prepared["ordered_fields"] = [
                {"key": key, "value": prepared[key]} for key in field_order if key in prepared
            ]
        return prepared

    @staticmethod
    def wrap_html(header: str, body: str, footer: str, page_config: Dict[str, Any], title: str = "Report") -> str:
        size = page_config.get("size", "A4")
        orientation = page_config.get("orientation", "portrait")
        margins = page_config.get("margins", "20mm")
        font_family = page_config.get("font_family", "Arial, sans-serif")
        font_size = page_config.get("font_size", "11pt")
        return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{escape(title)}</title>
<style>
@page {{ size: {size} {orientation}; margin: {margins}; }}
body {{ font-family: {font_family}; font-size: {font_size}; }}
table {{ width: 100%; border-collapse: collapse; }}
th, td {{ border: 1px solid #ccc; padding: 4px; }}
.verdict-pass {{ color: #15803d; }}
.verdict-fail {{ color: #b91c1c; font-weight: bold; }}
.verdict-deviation {{ color: #b45309; }}
</style>
</head>
<body>
<header>{header}</header>
<main>{body}</main>
<footer>{footer}</footer>
</body>
</html>"""


template_engine = TemplateEngine()
