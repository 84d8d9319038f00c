# Overview: Leveled, request-scoped logging for the app and its service modules.

from __future__ import annotations

import logging
import uuid

from flask import Flask, g, has_request_context, request
from flask.logging import default_handler

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request that produced it ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = g.get("request_id", "-") if has_request_context() else "-"
        return True


def configure_logging(app: Flask) -> None:
    """
    Route the app logger and every dailyops.* module logger through one
    handler whose records carry the request id.
    """
    logger = logging.getLogger("dailyops")
    logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    if not any(isinstance(f, RequestIdFilter) for h in logger.handlers for f in h.filters):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RequestIdFilter())
        logger.addHandler(handler)
    app.logger.removeHandler(default_handler)

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def echo_request_id(response):
        if "request_id" in g:
            response.headers["X-Request-ID"] = g.request_id
        return response
