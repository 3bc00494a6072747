import os
from typing import Any, List

from reportlab.platypus import (
    SimpleDocTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter, landscape
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.enums import TA_LEFT

from lighthouse import AuditResult
from summary import RunSummary, first_line, format_duration

PDF_FILENAME = "audit-summary.pdf"


def build_pdf(summary: RunSummary, results: List[AuditResult], pdf_path: str) -> str:
    os.makedirs(os.path.dirname(pdf_path) or ".", exist_ok=True)
    styles = getSampleStyleSheet()

    doc = SimpleDocTemplate(
        pdf_path,
        pagesize=landscape(letter),
        leftMargin=24,
        rightMargin=24,
        topMargin=24,
        bottomMargin=24,
    )

    story = []
    story.append(Paragraph("Lighthouse Batch Audit", styles["Title"]))
    story.append(Spacer(1, 6))
    story.append(
        Paragraph(
            f"<b>Total:</b> {summary.total} &nbsp;&nbsp; "
            f"<b>Succeeded:</b> {summary.succeeded} &nbsp;&nbsp; "
            f"<b>Failed:</b> {summary.failed} &nbsp;&nbsp; "
            f"<b>Duration:</b> {format_duration(summary.elapsed)}",
            styles["BodyText"],
        )
    )
    story.append(Spacer(1, 10))

    story.append(Paragraph("<b>Results</b>", styles["Heading2"]))
    story.append(Spacer(1, 8))

    cell_style = ParagraphStyle(
        name="Cell",
        parent=styles["BodyText"],
        fontName="Helvetica",
        fontSize=7,
        leading=9,
        alignment=TA_LEFT,
        wordWrap="CJK",
    )

    header_style = ParagraphStyle(
        name="HeaderCell",
        parent=cell_style,
        fontName="Helvetica-Bold",
        fontSize=8,
        leading=10,
    )

    fail_style = ParagraphStyle(name="FailCell", parent=cell_style, textColor=colors.red)

    def P(txt: Any, style: ParagraphStyle = cell_style) -> Paragraph:
        s = "" if txt is None else str(txt)
        s = s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        s = s.replace("\n", "<br/>")
        return Paragraph(s, style)

    table_data = [
        [
            P("Status", header_style),
            P("URL", header_style),
            P("Report", header_style),
            P("Error", header_style),
            P("Time (s)", header_style),
        ]
    ]

    for r in results:
        table_data.append(
            [
                P("OK") if r.succeeded else P("FAILED", fail_style),
                P(r.target),
                P(os.path.basename(r.output_path) if r.output_path else ""),
                P(first_line(r.error or "")),
                P(f"{r.duration:.1f}"),
            ]
        )

    col_widths = [
        0.7 * inch,
        3.2 * inch,
        2.4 * inch,
        3.3 * inch,
        0.7 * inch,
    ]

    tbl = Table(
        table_data,
        colWidths=col_widths,
        repeatRows=1,
        splitByRow=1,
    )

    tbl.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 6),
                ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
            ]
        )
    )

    story.append(tbl)

    doc.build(story)
    return pdf_path
