import os
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask
from flask.logging import default_handler
from .extensions import db, migrate, mail
from .config import Config
from .services.storage_service import build_store

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.api import api_bp
from .blueprints.main import main_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=os.getenv("ENV", "development"),
            release=os.getenv("GIT_COMMIT", None),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    handlers = []
    # Rotating file handler (5MB x 5); LOG_DIR="" disables it
    if app.config.get("LOG_DIR"):
        log_dir = Path(app.config["LOG_DIR"])
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / app.config.get("LOG_FILENAME", "supportdesk.log")
        handlers.append(RotatingFileHandler(
            log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
        ))

    # Stream to stdout as well (useful on dev/docker)
    handlers.append(logging.StreamHandler())

    # app.logger is the "supportdesk" logger, so service module loggers
    # propagate here; drop handlers left by Flask or an earlier create_app
    app.logger.removeHandler(default_handler)
    for old in list(app.logger.handlers):
        app.logger.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)

    app.logger.info("Logging initialized.")

def _init_mail(app):
    # No MAIL_SERVER -> extension stays unregistered and send_email logs instead
    if not app.config.get("MAIL_SERVER"):
        app.logger.info("Mail not configured, notifications will only be logged.")
        return
    mail.init_app(app)

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    # --- base config defaults ---
    app.config.setdefault("SECRET_KEY", "change-me")
    app.config.setdefault(
        "SQLALCHEMY_DATABASE_URI",
        "sqlite:///" + os.path.join(app.instance_path, "supportdesk.db"),
    )
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    app.config.setdefault("NOTIFY_ASYNC", True)
    app.config.setdefault("MAX_CONTENT_LENGTH", 100 * 1024 * 1024)
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    # Logging must come before extensions so startup choices are captured
    _init_logging(app)
    _init_sentry(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    _init_mail(app)

    # Attachment backend is fixed for the app's lifetime
    app.extensions["attachment_store"] = build_store(app)

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix="/api/support")

    return app
