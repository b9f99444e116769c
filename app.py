import logging
import sys
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect

from models import db
from utils.db_conn import DatabaseConnection, configure_app

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

csrf = CSRFProtect()


def create_app(config=None) -> Flask:
    """Build the Flask app. ``config`` entries override environment settings."""
    app = Flask(__name__)
    configure_app(app, config)

    DatabaseConnection(app)
    csrf.init_app(app)

    from blueprints.admin_routes import admin_bp
    from blueprints.professor_routes import professor_bp
    from blueprints.student_routes import student_bp

    app.register_blueprint(admin_bp)
    app.register_blueprint(professor_bp)
    app.register_blueprint(student_bp)

    # API: GET "/welcome"
    # Used by: Health-check or quick connectivity tests
    @app.route("/welcome", methods=["GET"])
    def welcome():
        logger.info(f"Request received: {request.method} {request.path}")
        return jsonify({"message": "Welcome to the course portal API"})

    return app


def check_database_connectivity(app: Flask):
    """Attempt a simple SELECT 1. Return (ok: bool, message: str)."""
    try:
        with app.app_context():
            with db.engine.connect() as connection:
                connection.execute(db.text("SELECT 1"))
        return True, "Connected and SELECT 1 succeeded"
    except Exception as e:
        return False, f"DB connection failed: {e}"


def run_startup_checks_or_exit(app: Flask):
    """Run preflight checks and exit the process on failure."""
    logger.info("Running startup checks...")
    ok_db, db_msg = check_database_connectivity(app)
    if ok_db:
        logger.info(f"Database check passed: {db_msg}")
        return
    logger.error(f"Database check failed: {db_msg}")
    logger.error("Startup checks failed. Aborting launch.")
    sys.exit(1)


if __name__ == "__main__":
    logger.info("Application startup initiated")
    app = create_app()
    run_startup_checks_or_exit(app)
    app.run(host="127.0.0.1", port=5000, debug=True)
