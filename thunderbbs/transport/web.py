"""
ThunderBBS Web API

Single JSON endpoint, POST /api/command. Requests are handled on werkzeug
server threads; command execution is handed to the BBS event loop.
"""

import logging
from typing import TYPE_CHECKING

from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest

if TYPE_CHECKING:
    from ..core.bbs import ThunderBBS

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(bbs: "ThunderBBS") -> Flask:
    """Build the Flask app serving the command endpoint for a BBS."""
    app = Flask(__name__)

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        return response

    @app.route("/api/command", methods=["POST", "OPTIONS"])
    def api_command():
        if request.method == "OPTIONS":
            return "", 204

        try:
            payload = request.get_json(force=True, silent=False)
        except BadRequest as exc:
            logger.debug(f"Rejected malformed request body: {exc}")
            return jsonify({"error": "Invalid JSON payload."}), 400

        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object."}), 400

        command = payload.get("command", "")
        session_id = payload.get("sessionId")
        if not isinstance(command, str):
            return jsonify({"error": "'command' must be a string."}), 400
        if session_id is not None and not isinstance(session_id, str):
            session_id = None

        try:
            response, session_id = bbs.call_in_loop(bbs.web_command, session_id, command)
        except Exception:
            logger.exception("Error processing web command")
            bbs.stats.errors += 1
            return jsonify({"error": "Error processing command."}), 500

        return jsonify({"response": response, "sessionId": session_id})

    return app
