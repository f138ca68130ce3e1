"""Health check routes."""

from __future__ import annotations

from flask import Blueprint, current_app

from bingo.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Health check endpoint with the number of live temporary sessions."""

    store = current_app.extensions["state_store"]
    return ok({"status": "ok", "active_sessions": len(store)})
