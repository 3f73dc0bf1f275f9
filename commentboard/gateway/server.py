"""
API gateway: combines the auth and comments blueprints under /api.
This is the local entrypoint for development.
"""

from datetime import datetime, timezone
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

from commentboard.auth_service.routes import auth_bp
from commentboard.comments_service.routes import comments_bp
from commentboard.errors import register_error_handlers
from commentboard.responses import success_response

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return "*" if origins in ([], ["*"]) else origins


def create_app() -> Flask:
    """
    Application factory for creating the Flask app.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)

    CORS(app, resources={
        r"/api/*": {
            "origins": _cors_origins(),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(comments_bp, url_prefix="/api/comments")
    register_error_handlers(app)
    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"success": True, "message": "Comment board backend is running"}), 200

    @app.route("/api/health")
    def health():
        """
        Health check endpoint.
        """
        return success_response("Server is healthy", {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("PORT", 3000))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG") == "1")
