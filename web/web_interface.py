# ------------------------------------------------------------------------------
# web_interface.py
# ------------------------------------------------------------------------------

import logging

from flask import Flask, jsonify

from core.app_context import AppContext
from web.blueprints.admin import CONTEXT_KEY, admin_bp


def create_web_interface(context: AppContext):
    """
    Creates and returns the admin web interface (Flask server) for the project.

    The app context supplies the record views, the export job and the
    session state; its config supplies WEB_HOST and WEB_PORT defaults.
    """
    logger = logging.getLogger(__name__)

    server = Flask(__name__)
    server.config[CONTEXT_KEY] = context
    server.register_blueprint(admin_bp)

    @server.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    def run(debug=False, host=None, port=None):
        host = host or context.config.get("WEB_HOST", "0.0.0.0")
        port = port or context.config.get("WEB_PORT", 8050)
        logger.info(f"Starting Flask server on http://{host}:{port}")
        server.run(host=host, port=port, debug=debug, threaded=True)

    return {"server": server, "run": run}
