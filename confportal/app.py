import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .models import User  # noqa: E402,F401
from .shared.certificate_fonts import (  # noqa: E402
    DEFAULT_DECORATIVE_FONT_PATH,
    DEFAULT_FALLBACK_FONT_PATH,
    DEFAULT_FONT_TIMEOUT,
)
from .shared.certificates import DEFAULT_FILENAME_PREFIX, CertificateError  # noqa: E402


def _configure_logging(app: Flask) -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("confportal").setLevel(level)
    # PIL logs every font and plugin lookup at DEBUG
    logging.getLogger("PIL").setLevel(logging.WARNING)


def create_app():
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["PREFERRED_URL_SCHEME"] = "https"

    DB_USER = os.getenv("DB_USER", "confportal")
    DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
    DB_HOST = os.getenv("DB_HOST", "db")
    DB_NAME = os.getenv("DB_NAME", "confportal")
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}",
    )

    app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    app.config["SITE_ROOT"] = os.getenv("SITE_ROOT", "/srv")
    app.config["CERT_TEMPLATE_PATH"] = os.getenv(
        "CERT_TEMPLATE_PATH",
        os.path.join(app.root_path, "assets", "certificate_template.jpg"),
    )
    app.config["CERT_DECORATIVE_FONT_PATH"] = os.getenv(
        "CERT_DECORATIVE_FONT_PATH", DEFAULT_DECORATIVE_FONT_PATH
    )
    app.config["CERT_FALLBACK_FONT_PATH"] = os.getenv(
        "CERT_FALLBACK_FONT_PATH", DEFAULT_FALLBACK_FONT_PATH
    )
    app.config["CERT_FONT_TIMEOUT"] = float(
        os.getenv("CERT_FONT_TIMEOUT", DEFAULT_FONT_TIMEOUT)
    )
    app.config["CERT_FILENAME_PREFIX"] = os.getenv(
        "CERT_FILENAME_PREFIX", DEFAULT_FILENAME_PREFIX
    )

    _configure_logging(app)
    db.init_app(app)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    @app.errorhandler(CertificateError)
    def certificate_failed(exc):
        return jsonify({"error": f"Error generating certificate: {exc}"}), 500

    from .routes.certificates import bp as certificates_bp
    from .routes.users import bp as users_bp

    app.register_blueprint(certificates_bp)
    app.register_blueprint(users_bp)

    return app


app = create_app()
