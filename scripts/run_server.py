"""Convenience launcher for the event analytics API + cache scheduler."""

from __future__ import annotations

import logging
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.append(ROOT)

from opinion_monitor.app import create_app  # noqa: E402
from opinion_monitor.settings import get_env_bool, get_env_int  # noqa: E402

_logger = logging.getLogger("launcher")

app = create_app(with_scheduler=get_env_bool("RUN_SERVER_SCHEDULER", True))


if __name__ == "__main__":
    port = get_env_int("PORT", 8000) or 8000
    _logger.info("Serving event analytics API on port %s", port)
    app.run(host="0.0.0.0", port=port, debug=get_env_bool("FLASK_DEBUG", False))
