"""
Rendering of a FinanceSummary into the artifacts the panel serves.
"""

import csv
import io
from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .models import FinanceSummary

templates = Jinja2Templates(directory=str(Path(__file__).parents[2] / "templates"))

CSV_COLUMNS = [
    "Contact",
    "Date",
    "Type",
    "Number",
    "Due",
    "Total",
    "Balance",
]


def render_html(
    request: Request, summary: FinanceSummary, area: str | None
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "finance.html",
        {"summary": summary, "area": area},
    )


def render_csv(summary: FinanceSummary) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in summary.rows:
        writer.writerow(
            [
                row.contact_name,
                row.document_date,
                row.document_type,
                row.document_number,
                row.due_date,
                row.total,
                row.balance,
            ]
        )
    return buffer.getvalue()
