"""
Grade sheet PDF for one student's exam result, built with ReportLab.
"""
from io import BytesIO
from typing import Optional
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from schoolms.core.config import settings
from schoolms.schemas.academics import StudentResultDetail
from schoolms.services.grading import NEB_GRADE_BANDS


def generate_grade_sheet(
    result: StudentResultDetail,
    class_name: str,
    section: Optional[str],
    registration_number: str,
) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, leftMargin=18 * mm, rightMargin=18 * mm, topMargin=15 * mm, bottomMargin=15 * mm
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph(settings.SCHOOL_NAME, styles["Title"]),
        Paragraph(f"Grade Sheet: {result.exam_title}", styles["Heading2"]),
        Spacer(1, 4 * mm),
    ]

    class_label = f"{class_name} {section}" if section else class_name
    info = Table(
        [
            ["Name", result.student_name or "", "Registration No", registration_number],
            ["Class", class_label, "Roll No", str(result.roll_number or "")],
        ],
        colWidths=[30 * mm, 60 * mm, 35 * mm, 45 * mm],
    )
    info.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]))
    story += [info, Spacer(1, 6 * mm)]

    rows = [["S.N.", "Subject", "Full Marks", "Obtained", "Grade", "Grade Point"]]
    for index, subject in enumerate(result.subjects, 1):
        rows.append([
            str(index),
            subject.subject_name,
            str(subject.full_marks),
            f"{subject.marks:.2f}",
            subject.grade,
            f"{subject.grade_point:.1f}",
        ])
    rows.append(["", "Total", str(result.total_full_marks), f"{result.total_marks:.2f}", result.grade, f"{result.gpa:.2f}"])

    marks_table = Table(rows, colWidths=[12 * mm, 60 * mm, 25 * mm, 25 * mm, 20 * mm, 25 * mm])
    marks_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#4472C4")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (2, 0), (-1, -1), "CENTER"),
    ]))
    story += [marks_table, Spacer(1, 6 * mm)]

    summary = (
        f"Percentage: {result.percentage:.2f}% &nbsp;&nbsp; GPA: {result.gpa:.2f} &nbsp;&nbsp; "
        f"Grade: {result.grade} &nbsp;&nbsp; Rank: {result.rank or '-'} &nbsp;&nbsp; "
        f"Result: {result.result_status.value.upper()}"
    )
    story += [Paragraph(summary, styles["Normal"]), Spacer(1, 8 * mm)]

    scale_rows = [["Percentage", "Grade", "Grade Point"]]
    upper = 100
    for minimum, grade, grade_point in NEB_GRADE_BANDS:
        scale_rows.append([f"{minimum} - {upper}", grade, str(grade_point)])
        upper = minimum - 1
    scale = Table(scale_rows, colWidths=[35 * mm, 20 * mm, 25 * mm])
    scale.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
    ]))
    story += [Paragraph("Grading Scale", styles["Heading4"]), scale]

    doc.build(story)
    return buffer.getvalue()
