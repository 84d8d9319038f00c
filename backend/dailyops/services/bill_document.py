# Overview: Bill document rendering (openpyxl workbook) and storage on disk.

from __future__ import annotations

import io
import os
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from openpyxl import Workbook
from openpyxl.styles import Font

from dailyops.time_utils import to_utc_z


_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass
class BillDocumentData:
    """Everything a renderer needs; produced by the billing aggregator."""
    bill_number: str
    customer_name: str
    customer_address: str
    start_date: date
    end_date: date
    subtotal_paise: int
    delivery_charges_paise: int | None
    total_amount_paise: int
    deliveries: list[dict] = field(default_factory=list)
    product_summary: list[dict] = field(default_factory=list)


Renderer = Callable[[BillDocumentData], bytes]


def _rupees(paise: int | None) -> float:
    return round((paise or 0) / 100, 2)


def render_bill_workbook(data: BillDocumentData) -> bytes:
    """Default renderer: a two-sheet xlsx (summary, deliveries)."""
    wb = Workbook()
    bold = Font(bold=True)

    summary = wb.active
    summary.title = "Bill"
    summary.append(["Bill Number", data.bill_number])
    summary.append(["Customer", data.customer_name])
    summary.append(["Address", data.customer_address])
    summary.append(["Period", f"{data.start_date.isoformat()} to {data.end_date.isoformat()}"])
    summary.append([])
    summary.append(["Product", "Quantity", "Unit Price", "Amount"])
    for cell in summary[summary.max_row]:
        cell.font = bold
    for item in data.product_summary:
        summary.append([
            item["product_name"],
            item["total_quantity"],
            _rupees(item["unit_price_paise"]),
            _rupees(item["total_amount_paise"]),
        ])
    summary.append([])
    summary.append(["Subtotal", None, None, _rupees(data.subtotal_paise)])
    if data.delivery_charges_paise:
        summary.append(["Delivery Charges", None, None, _rupees(data.delivery_charges_paise)])
    summary.append(["Grand Total", None, None, _rupees(data.total_amount_paise)])
    summary[summary.max_row][0].font = bold

    detail = wb.create_sheet("Deliveries")
    detail.append(["Verified At", "Product", "Quantity", "Amount"])
    for cell in detail[1]:
        cell.font = bold
    for row in data.deliveries:
        detail.append([
            to_utc_z(row["verified_at"]),
            row["product_name"],
            row["delivered_qty"],
            _rupees(row["bill_paise"]),
        ])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def document_filename(customer_name: str, start: date, end: date, bill_number: str) -> str:
    """bill_<customer>_<start>_<end>_<number>.xlsx with unsafe characters collapsed."""
    stem = f"bill_{customer_name}_{start.isoformat()}_{end.isoformat()}_{bill_number}"
    return _UNSAFE.sub("_", stem).strip("._") + ".xlsx"


def store_document(storage_dir: str, filename: str, content: bytes) -> str:
    os.makedirs(storage_dir, exist_ok=True)
    with open(os.path.join(storage_dir, filename), "wb") as fh:
        fh.write(content)
    return filename
