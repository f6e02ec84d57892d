# ivy_chat/routes/health.py
"""
Simple readiness/liveness probe for the development server.
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health_check() -> tuple[Response, int]:
    streaming = "chat_stream" in current_app.blueprints
    return jsonify({"status": "healthy", "streaming": streaming, "service": "ivy-chat"}), 200
