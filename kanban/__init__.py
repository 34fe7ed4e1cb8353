from flask import Flask, jsonify
from flask_cors import CORS

from kanban.logging_config import configure_logging, get_logger
from kanban.models import db

logger = get_logger(__name__)


def create_app(config_overrides=None):
    """Build the Flask app.

    Args:
        config_overrides: Optional mapping applied on top of the environment's
            config class, before the database and the board are initialised.
    """
    # Import config after dotenv is loaded
    from kanban.config import get_config
    from kanban.db_config import configure_database
    from kanban.auth.routes import auth_bp
    from kanban.board import kanban_bp
    from kanban.board.registry import init_kanban
    from kanban.collections import build_collections

    config_class = get_config()

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure database separately
    configure_database(app)

    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        log_file=app.config.get("LOG_FILE"),
    )

    logger.info(f"Starting application in {app.config.get('ENV', config_class.ENV)} environment")
    logger.info(f"Database URI: {app.config.get('SQLALCHEMY_DATABASE_URI', 'Not set')[:50]}...")

    allowed_origins = app.config.get("CORS_ORIGINS", "*")
    if allowed_origins != "*":
        # Parse comma-separated list if provided
        allowed_origins = [origin.strip() for origin in allowed_origins.split(",")]

    CORS(app,
         resources={r"/*": {"origins": allowed_origins}},
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization", "Accept-Language"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"])

    db.init_app(app)

    init_kanban(app, build_collections(app))

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(kanban_bp, url_prefix="/kanban")

    return app
