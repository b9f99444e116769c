import os
import time
import logging
from typing import Optional
from flask import Flask
from dotenv import load_dotenv

from models import db

# Configure logging for database operations
logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "local"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

# Pool settings only apply to server databases; SQLite uses its own pool class
MYSQL_ENGINE_OPTIONS = {
    "pool_size": 10,  # Number of connections to maintain
    "max_overflow": 20,  # Additional connections beyond pool_size
    "pool_recycle": 3600,  # Recycle connections after 1 hour
    "pool_pre_ping": True,  # Test connections before use
    "pool_timeout": 30,  # Connection timeout in seconds
    "connect_args": {
        "connect_timeout": 30,
        "read_timeout": 60,
        "write_timeout": 30,
    },
}


def _mysql_uri(prefix: str) -> str:
    db_host = os.getenv(f"{prefix}_DB_HOST", "localhost")
    db_port = os.getenv(f"{prefix}_DB_PORT", "3306")
    db_user = os.getenv(f"{prefix}_DB_USER", "root")
    db_password = os.getenv(f"{prefix}_DB_PASSWORD", "")
    db_name = os.getenv(f"{prefix}_DB_NAME", "course_portal")
    return f"mysql+pymysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def resolve_database_uri(environment: str) -> str:
    """Map ENVIRONMENT to a SQLAlchemy URI. DATABASE_URL always wins."""
    override = os.getenv("DATABASE_URL")
    if override:
        return override

    if environment == "local":
        return _mysql_uri("LOCAL")
    elif environment == "production" or environment == "online":
        return _mysql_uri("ONLINE")
    elif environment == "test":
        return "sqlite://"
    raise ValueError(
        f"Invalid ENVIRONMENT value: {environment}. Must be 'local', 'production'/'online' or 'test'"
    )


def _mask_password(uri: str) -> str:
    if "@" not in uri or "://" not in uri:
        return uri
    scheme, rest = uri.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


def configure_app(app: Flask, overrides: Optional[dict] = None):
    """Populate app.config from the environment, then apply explicit overrides."""
    load_dotenv()
    logger.info("Environment variables loaded from .env file")

    environment = os.getenv("ENVIRONMENT", DEFAULT_ENVIRONMENT).lower()
    logger.info(f"Database environment: {environment}")

    db_uri = resolve_database_uri(environment)
    app.config["SQLALCHEMY_DATABASE_URI"] = db_uri
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    # Flask pre-populates SECRET_KEY with None
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)

    if overrides:
        app.config.update(overrides)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("mysql"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", dict(MYSQL_ENGINE_OPTIONS))

    logger.info(
        f"Database URI configured for {environment}: {_mask_password(app.config['SQLALCHEMY_DATABASE_URI'])}"
    )


class DatabaseConnection:
    """Handles database connection, initialization, and management."""

    def __init__(self, app: Optional[Flask] = None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask):
        """Register the SQLAlchemy extension on an already configured app."""
        self.app = app
        if "sqlalchemy" not in app.extensions:
            db.init_app(app)
            logger.info("Database initialized with Flask app")
        else:
            logger.info(
                "Database already initialized with Flask app - skipping re-initialization"
            )

    def test_connection(self, max_retries: int = 3) -> bool:
        """Test database connection with retry mechanism."""
        if self.app is None:
            logger.error("Database connection not initialized with Flask app")
            return False

        retry_delay = 1
        for attempt in range(max_retries):
            try:
                logger.info(
                    f"Testing database connection... (attempt {attempt + 1}/{max_retries})"
                )
                with self.app.app_context():
                    with db.engine.connect() as connection:
                        connection.execute(db.text("SELECT 1"))
                logger.info("Database connection successful")
                return True
            except Exception as e:
                logger.warning(
                    f"Database connection failed (attempt {attempt + 1}): {str(e)}"
                )
                if attempt < max_retries - 1:
                    time.sleep(retry_delay)
                    retry_delay *= 2  # Exponential backoff
                else:
                    logger.error(
                        f"Database connection failed after {max_retries} attempts: {str(e)}"
                    )
        return False

    def create_tables(self) -> bool:
        """Create all database tables."""
        if self.app is None:
            logger.error("Database connection not initialized with Flask app")
            return False
        try:
            logger.info("Creating database tables...")
            with self.app.app_context():
                db.create_all()
            logger.info("Database tables created successfully")
            return True
        except Exception as e:
            logger.error(f"Database table creation failed: {str(e)}")
            return False

    def init_database(self) -> bool:
        """Initialize database connection and create tables if they don't exist."""
        logger.info("Starting database initialization...")

        if not self.test_connection():
            return False

        return self.create_tables()


# Global database connection instance
db_conn = DatabaseConnection()


def init_database_with_app(app: Flask) -> bool:
    """Initialize database with Flask app and return success status."""
    global db_conn
    db_conn = DatabaseConnection(app)
    return db_conn.init_database()
