"""Flask application exposing the evaluation trigger and admin actions."""

import logging
import os
import sys
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for package imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Settings, build_engine, build_store, load_settings
from engine import (
    FleetSetup,
    SettingsNotFound,
    SetupError,
    TriggerError,
    apply_global_settings,
)

logger = logging.getLogger("fleetwatch.web")


def create_app(settings: Settings = None, store=None, channel=None) -> Flask:
    """Build the app. Tests pass an in-memory store and a fake push channel."""
    settings = settings or load_settings()
    store = store if store is not None else build_store(settings)
    engine = build_engine(settings, store, channel)

    app = Flask(__name__)
    app.config["FLEETWATCH_SETTINGS"] = settings
    app.config["FLEETWATCH_ENGINE"] = engine

    def is_authorized() -> bool:
        if not settings.service_key:
            return False
        return request.headers.get("Authorization", "") == f"Bearer {settings.service_key}"

    @app.route("/functions/check-alerts", methods=["POST"])
    def check_alerts():
        """Run the daily pass, a consumption check, or the monthly report."""
        body = request.get_json(silent=True) or {}
        try:
            return jsonify(engine.handle(body))
        except TriggerError as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            logger.exception("check-alerts failed")
            return jsonify({"error": "Internal error", "details": str(e)}), 500

    @app.route("/functions/admin-actions", methods=["POST"])
    def admin_actions():
        """First-admin setup (open while uninitialized) and settings propagation."""
        body = request.get_json(silent=True) or {}
        action = body.get("action")

        if action == "setup_admin":
            profile_id = body.get("user_id")
            full_name = body.get("full_name")
            if not profile_id or not full_name:
                return jsonify({"error": "user_id and full_name are required"}), 400
            try:
                setup = FleetSetup(store)
                setup.register_admin(profile_id, full_name)
                setup.initialize_settings(body.get("thresholds"))
            except SetupError as e:
                return jsonify({"error": str(e)}), 403
            return jsonify({"success": True, "message": "Administrator created", "user_id": profile_id})

        if not is_authorized():
            return jsonify({"error": "Unauthorized"}), 401

        if action == "apply_global_settings":
            try:
                updated = apply_global_settings(store)
            except SettingsNotFound as e:
                return jsonify({"error": str(e)}), 404
            return jsonify({"success": True, "message": "Thresholds applied to all vehicles", "updated": updated})

        return jsonify({"error": "Unknown action"}), 400

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", 5001)))
