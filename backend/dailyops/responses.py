# Overview: JSON response envelope shared by every blueprint.

from __future__ import annotations

from flask import jsonify

from .validation import ConflictError, NotFoundError, ValidationError


# kind -> HTTP status
KIND_STATUS = {
    "validation": 400,
    "not_found": 404,
    "conflict": 409,
    "fatal": 500,
}

DOMAIN_ERRORS = (ValidationError, NotFoundError, ConflictError)


def envelope(*, success: bool, message: str, data=None, kind: str | None = None, status: int = 200, **extra):
    body = {"success": success, "message": message, "data": data}
    if kind is not None:
        body["kind"] = kind
    body.update(extra)
    return jsonify(body), status


def ok(data=None, message: str = "OK", status: int = 200, **extra):
    return envelope(success=True, message=message, data=data, status=status, **extra)


def error_kind(exc: Exception) -> str:
    # ConflictError subclasses ValueError like ValidationError; check it first
    if isinstance(exc, ConflictError):
        return "conflict"
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, ValidationError):
        return "validation"
    return "fatal"


def domain_error(exc: Exception):
    kind = error_kind(exc)
    return envelope(success=False, message=str(exc), kind=kind, status=KIND_STATUS[kind])


def fatal_error(message: str = "Internal server error"):
    return envelope(success=False, message=message, kind="fatal", status=KIND_STATUS["fatal"])
