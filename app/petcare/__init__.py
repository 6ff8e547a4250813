import logging
from datetime import timedelta

from flask import Flask, g, jsonify, request, session
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect
from werkzeug.exceptions import HTTPException

from app.petcare.config import load_config
from app.petcare.db import init_db, teardown_db_session
from app.petcare.auth import bp as auth_bp, load_current_user
from app.petcare.routes import bp as routes_bp
from app.petcare.modules.features.routes import bp as features_bp
from app.petcare.modules.features.admin import bp as admin_features_bp
from app.petcare.modules.settings.admin import bp as admin_settings_bp
from app.petcare.modules.plugins.admin import bp as admin_plugins_bp
from app.petcare.modules.users.admin import bp as admin_users_bp
from app.petcare.modules.pets.routes import bp as pets_bp
from app.petcare.modules.expenses.routes import bp as expenses_bp
from app.petcare.modules.appointments.routes import bp as appointments_bp
from app.petcare.modules.reminders.routes import bp as reminders_bp
from app.petcare.modules.documents.routes import bp as documents_bp

REQUIRED_TABLES = ("users", "features", "user_features", "system_settings")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    from app.petcare.security import ensure_csrf_token, validate_csrf

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Login/logout establish or drop the session that carries the token.
            if (request.endpoint or "").startswith("auth."):
                return None
            # No signed-in session to ride on; the route guards answer 401.
            if not session.get("user_id"):
                return None
            if not validate_csrf(request):
                return jsonify({"error": "CSRF token missing or invalid."}), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    if app.config.get("STORAGE_BACKEND") == "s3":
        missing_s3 = [
            key
            for key in ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
            if not app.config.get(key)
        ]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(features_bp, url_prefix="/api")
    app.register_blueprint(admin_features_bp, url_prefix="/api/admin")
    app.register_blueprint(admin_settings_bp, url_prefix="/api/admin")
    app.register_blueprint(admin_plugins_bp, url_prefix="/api/admin")
    app.register_blueprint(admin_users_bp, url_prefix="/api/admin")
    app.register_blueprint(pets_bp, url_prefix="/api")
    app.register_blueprint(expenses_bp, url_prefix="/api")
    app.register_blueprint(appointments_bp, url_prefix="/api")
    app.register_blueprint(reminders_bp, url_prefix="/api")
    app.register_blueprint(documents_bp, url_prefix="/api")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    # Schema health: tables the feature subsystem needs to answer any request.
    app.config.setdefault("_schema_health_missing", [])
    try:
        insp = sa_inspect(app.extensions["sqlalchemy_engine"])
        missing = [t for t in REQUIRED_TABLES if not insp.has_table(t)]
    except Exception as e:
        app.logger.exception("Schema health check failed: %s", e)
        missing = []
    if missing:
        app.config["_schema_health_missing"] = missing
        app.logger.warning("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):  # type: ignore[no-redef]
        if e.code is None or e.code < 400:
            return e
        if e.code == 403:
            missing_feature = getattr(g, "missing_feature", None)
            if missing_feature:
                app.logger.warning(
                    "Forbidden: missing_feature=%s request_id=%s", missing_feature, getattr(g, "request_id", None)
                )
        if e.code == 413:
            return jsonify({"error": "File too large. Maximum size is 10MB."}), 413
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        app.logger.exception("Unhandled 500 (request_id=%s)", rid)
        return jsonify({"error": "Internal server error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
