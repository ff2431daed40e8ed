from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from .config import ALLOWED_ORIGINS
from .events.api import EXTENSION_KEY
from .events.api import bp as events_bp
from .events.service import EventsService
from .scheduler import start_scheduler

logger = logging.getLogger(__name__)


def create_app(service: Optional[EventsService] = None, *, with_scheduler: bool = True) -> Flask:
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": ALLOWED_ORIGINS}})
    service = service or EventsService.create()
    app.extensions[EXTENSION_KEY] = service
    app.register_blueprint(events_bp)

    @app.route("/api/health")
    def health():
        return jsonify({"ok": True})

    if with_scheduler:
        start_scheduler(service)
    logger.info("Event analytics app created (cache backend=%s)", type(service.analytics.cache.backend).__name__)
    return app
