"""
IVY chat client
===============

- controller.py (transcript state machine, one streamed reply per turn)
- streaming/ (wire decoder + HTTP transport)
- create_app(): development server exposing the chat-stream endpoint
"""

from __future__ import annotations

import logging
from datetime import datetime

from flask import Flask
from flask_cors import CORS

from .config import get_config
from .controller import TranscriptController, fold_event
from .models import Message, TranscriptSnapshot
from .streaming import HttpStreamTransport, StreamDecoder, TransportError

log = logging.getLogger(__name__)

__all__ = [
    "create_app",
    "TranscriptController",
    "fold_event",
    "Message",
    "TranscriptSnapshot",
    "HttpStreamTransport",
    "StreamDecoder",
    "TransportError",
]


def create_app() -> Flask:
    """
    App factory for the local development server.

    INITIALIZATION ORDER:
    1. Config + CORS for /api/*
    2. Register routes (streaming endpoint only when ENABLE_STREAMING)
    3. Error handlers
    """
    cfg = get_config()
    app = Flask(__name__)

    if cfg.CORS_ALLOW_ORIGINS:
        allowed_origins = [o.strip() for o in cfg.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
    else:
        # Default: allow all origins for local development
        allowed_origins = ["*"]

    CORS(
        app,
        resources={r"/api/*": {
            "origins": allowed_origins,
            "methods": ["POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Accept"],
        }},
        supports_credentials=False,
    )

    # ────────────────────────────────────────────────────────
    # STEP 1: Register Routes
    # ────────────────────────────────────────────────────────
    from .routes.health import bp as health_bp
    app.register_blueprint(health_bp)

    if cfg.ENABLE_STREAMING:
        from .routes.chat_stream import bp as chat_stream_bp
        app.register_blueprint(chat_stream_bp, url_prefix="/api")
        log.info("REGISTER_ROUTES_SUCCESS | streaming route registered (/api/chat-stream)")
    else:
        log.info("REGISTER_ROUTES | streaming disabled (ENABLE_STREAMING=false)")

    # ────────────────────────────────────────────────────────
    # STEP 2: Error Handlers
    # ────────────────────────────────────────────────────────
    @app.errorhandler(500)
    def handle_internal_error(error):
        log.error(f"INTERNAL_ERROR | error={error}", exc_info=True)
        return {
            "error": "Internal server error",
            "timestamp": datetime.now().isoformat(),
            "details": str(error) if app.debug else "Contact support",
        }, 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return {
            "error": "Endpoint not found",
            "timestamp": datetime.now().isoformat(),
        }, 404

    log.info(f"APP_INIT_COMPLETE | blueprints={list(app.blueprints.keys())}")
    return app
