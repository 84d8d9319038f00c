# Overview: Flask API routes for bill preview, generation, payment and document download.

"""
Bill Routes

LIFECYCLE:
- GET  /preview            DRAFT, nothing persisted
- POST /generate           GENERATED, consumes the billable deliveries
- PATCH /<id>/mark-paid    PAID, deliveries become collected

Dates are YYYY-MM-DD; the period is inclusive of both days.
"""

import os

from flask import Blueprint, request, current_app, send_from_directory

from ..responses import DOMAIN_ERRORS, domain_error, fatal_error, ok
from ..services import billing_service
from ..validation import coerce_int, require_bool


bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.get("/preview")
def preview_bill_route():
    """?customer_id=7&start_date=2026-10-01&end_date=2026-10-31&include_delivery_charges=true"""
    try:
        args = request.args
        preview = billing_service.preview_bill(
            customer_id=coerce_int(args.get("customer_id"), "customer_id"),
            start_date=args.get("start_date"),
            end_date=args.get("end_date"),
            include_delivery_charges=require_bool(
                args.get("include_delivery_charges", "false"), "include_delivery_charges"
            ),
        )
        return ok(preview)
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to preview bill")
        return fatal_error()


@bills_bp.post("/generate")
def generate_bill_route():
    """
    Request body:
    {
        "customer_id": 7,
        "start_date": "2026-10-01",
        "end_date": "2026-10-31",
        "include_delivery_charges": false,
        "created_by": "admin"
    }

    Returns:
        201: {bill, deliveries_count, total_amount_paise, delivery_charges_paise, grand_total_paise}
        409: No unbilled deliveries in the period
    """
    try:
        data = request.get_json(silent=True) or {}
        result = billing_service.generate_bill(
            customer_id=coerce_int(data.get("customer_id"), "customer_id"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            include_delivery_charges=require_bool(
                data.get("include_delivery_charges", False), "include_delivery_charges"
            ),
            created_by=data.get("created_by"),
        )
        return ok(result.to_dict(), message="Bill generated", status=201)
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to generate bill")
        return fatal_error("Failed to generate bill")


@bills_bp.get("/customer/<int:customer_id>")
def customer_bills_route(customer_id: int):
    try:
        bills = billing_service.get_customer_bills(customer_id)
        return ok([b.to_dict() for b in bills])
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load customer bills")
        return fatal_error()


@bills_bp.get("/<int:bill_id>")
def get_bill_route(bill_id: int):
    try:
        return ok(billing_service.get_bill(bill_id).to_dict())
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load bill")
        return fatal_error()


@bills_bp.patch("/<int:bill_id>/mark-paid")
def mark_paid_route(bill_id: int):
    try:
        bill = billing_service.mark_bill_paid(bill_id)
        return ok(bill.to_dict(), message="Bill marked as paid")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to mark bill paid")
        return fatal_error()


@bills_bp.get("/files/<path:filename>")
def bill_file_route(filename: str):
    try:
        path = billing_service.get_bill_document_path(filename)
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    return send_from_directory(os.path.dirname(path), os.path.basename(path), as_attachment=True)
