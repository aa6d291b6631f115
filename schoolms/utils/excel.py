from io import BytesIO
from typing import Any, Iterable, Optional
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from schoolms.schemas.attendance import ClassAttendanceSummary
from schoolms.schemas.report import PendingDueItem

HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_workbook(
    title: str,
    headers: list[str],
    rows: Iterable[list[Any]],
    widths: list[int],
    totals: Optional[dict[int, Any]] = None,
) -> BytesIO:
    """Single-sheet workbook with a styled header row and an optional bold totals row."""
    wb = Workbook()
    ws = wb.active
    ws.title = title

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center", vertical="center")

    row_num = 1
    for row_num, row in enumerate(rows, 2):
        for col_num, value in enumerate(row, 1):
            ws.cell(row=row_num, column=col_num, value=value)

    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = width

    if totals and row_num > 1:
        summary_row = row_num + 2
        ws.cell(row=summary_row, column=1, value="TOTAL").font = Font(bold=True)
        for col_num, value in totals.items():
            ws.cell(row=summary_row, column=col_num, value=value).font = Font(bold=True)

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)
    return excel_file


def pending_dues_workbook(items: list[PendingDueItem]) -> BytesIO:
    return build_workbook(
        "Pending Dues",
        ["Student ID", "Name", "Registration No", "Class", "Invoices", "Balance"],
        (
            [i.student_id, i.student_name, i.registration_number, i.class_name, i.invoice_count, i.total_balance]
            for i in items
        ),
        [10, 25, 18, 10, 10, 14],
        totals={6: round(sum(i.total_balance for i in items), 2)},
    )


def attendance_summary_workbook(summary: ClassAttendanceSummary) -> BytesIO:
    return build_workbook(
        f"Class {summary.class_name}"[:31],
        ["Roll No", "Name", "Present", "Absent", "Late", "Excused", "Total", "Percentage", "Rating"],
        (
            [
                s.roll_number,
                s.student_name,
                s.present_days,
                s.absent_days,
                s.late_days,
                s.excused_days,
                s.total_days,
                s.attendance_percentage,
                s.rating,
            ]
            for s in summary.students
        ),
        [8, 25, 10, 10, 10, 10, 10, 12, 12],
    )
