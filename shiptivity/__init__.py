import atexit
import os

from flask import Flask, jsonify
from flask_cors import CORS

from shiptivity.models import db
from shiptivity.logging_config import configure_logging

# Configure logging
logger = configure_logging(
    log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    log_file=os.environ.get("LOG_FILE"),
)


def _register_shutdown(app):
    """Dispose the connection pool when the process exits."""

    def dispose_engine():
        with app.app_context():
            db.engine.dispose()
        logger.info("Database connections closed")

    atexit.register(dispose_engine)


def create_app(test_config=None):
    # Import config after dotenv is loaded
    from shiptivity.config import get_config
    from shiptivity.db_config import configure_database

    config_class = get_config()

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Configure database separately
    configure_database(app)

    if test_config:
        app.config.update(test_config)

    logger.info(f"Starting application in {config_class.ENV} environment")
    logger.info(f"Database URI: {app.config.get('SQLALCHEMY_DATABASE_URI', 'Not set')[:50]}...")

    allowed_origins = app.config.get("CORS_ORIGINS", "*")
    if allowed_origins != "*":
        # Parse comma-separated list if provided
        allowed_origins = [origin.strip() for origin in allowed_origins.split(",")]

    CORS(app,
         resources={r"/*": {"origins": allowed_origins}},
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "PUT", "OPTIONS"])

    db.init_app(app)

    if app.config.get("CREATE_TABLES_ON_STARTUP"):
        with app.app_context():
            # Only creates tables that don't exist yet
            db.create_all()

    if not app.config.get("TESTING"):
        _register_shutdown(app)

    @app.route("/")
    def index():
        return jsonify({"message": "SHIPTIVITY API. Read documentation to see API docs"}), 200

    from shiptivity.clients import clients_bp
    app.register_blueprint(clients_bp, url_prefix="/api/v1")

    return app
