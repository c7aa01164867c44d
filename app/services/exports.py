"""
Exports Excel (openpyxl) et PDF (reportlab) des rapports.
"""

import io
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"

DAY_BOOK_COLUMNS = [
    ("Date", "date"),
    ("Type", "transaction_type"),
    ("Reference", "reference_number"),
    ("Patient No", "patient_no"),
    ("Patient", "patient_name"),
    ("Mobile", "mobile"),
    ("Team", "team_name"),
    ("Total", "total_amount"),
    ("Received", "received_amount"),
    ("Balance", "balance_amount"),
]

STOCK_COLUMNS = [
    ("Medicine", "medicine_name"),
    ("Brand", "brand_name"),
    ("Rate", "rate"),
    ("MRP", "mrp"),
    ("Quantity", "quantity"),
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d-%m-%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def _excel_value(value: Any) -> Any:
    if hasattr(value, "value"):  # Enum
        return value.value
    return value


def build_table_excel(
    title: str,
    columns: Sequence[tuple],
    rows: Sequence[Dict[str, Any]],
    totals: Optional[Dict[str, Any]] = None,
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    ws.append([label for label, _ in columns])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in rows:
        ws.append([_excel_value(row.get(key)) for _, key in columns])

    if totals:
        ws.append([totals.get(key, "Total" if index == 0 else None) for index, (_, key) in enumerate(columns)])
        for cell in ws[ws.max_row]:
            cell.font = Font(bold=True)

    for col in range(1, len(columns) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 18

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_table_pdf(
    title: str,
    subtitle: str,
    columns: Sequence[tuple],
    rows: Sequence[Dict[str, Any]],
    totals: Optional[Dict[str, Any]] = None,
) -> bytes:
    styles = getSampleStyleSheet()
    data: List[List[str]] = [[label for label, _ in columns]]
    for row in rows:
        data.append([_cell(_excel_value(row.get(key))) for _, key in columns])
    if totals:
        data.append([
            _cell(totals.get(key)) if key in totals else ("Total" if index == 0 else "")
            for index, (_, key) in enumerate(columns)
        ])

    table = Table(data, repeatRows=1)
    style = [
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
        ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("BOX", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    if totals:
        style.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))
    table.setStyle(TableStyle(style))

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=12 * mm,
        bottomMargin=10 * mm,
        title=title,
    )
    doc.build([
        Paragraph(title, styles["Heading2"]),
        Paragraph(subtitle, styles["BodyText"]),
        Spacer(1, 4 * mm),
        table,
    ])
    pdf_bytes = buf.getvalue()
    buf.close()
    return pdf_bytes


def day_book_excel(rows: Sequence[Dict[str, Any]], totals: Dict[str, Any]) -> bytes:
    return build_table_excel("Day Book", DAY_BOOK_COLUMNS, rows, totals)


def day_book_pdf(rows: Sequence[Dict[str, Any]], totals: Dict[str, Any], period: str) -> bytes:
    return build_table_pdf("Day Book", period, DAY_BOOK_COLUMNS, rows, totals)


def stock_excel(franchise_name: str, items: Sequence[Dict[str, Any]]) -> bytes:
    return build_table_excel(f"Stock {franchise_name}", STOCK_COLUMNS, items)
