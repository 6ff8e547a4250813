from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request, session
from werkzeug.security import check_password_hash

from app.petcare.audit import record_event
from app.petcare.db import db_session
from app.petcare.models import User
from app.petcare.rbac import SessionClaims, current_claims, require_login
from app.petcare.security import ensure_csrf_token

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[datetime]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    now = datetime.utcnow()
    cutoff = now - timedelta(seconds=_LOGIN_RATE_WINDOW)
    for key in list(_login_attempts):
        recent = [t for t in _login_attempts[key] if t > cutoff]
        if recent:
            _login_attempts[key] = recent
        else:
            del _login_attempts[key]
    return len(_login_attempts.get(ip, ())) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(datetime.utcnow())


def load_current_user() -> None:
    """
    Loads g.current_user and g.claims from the signed session cookie.
    The admin flag is re-read from the database on every request so a
    revoked admin loses access immediately.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    g.current_user = None
    g.claims = None
    if request.path.startswith(("/health", "/healthz")):
        return

    user_id = session.get("user_id")
    if not user_id:
        return

    try:
        s = db_session()
        user = s.get(User, int(user_id))
        if not user or not user.is_active:
            session.pop("user_id", None)
            return
        g.current_user = user
        g.claims = SessionClaims.for_user(user)
    except Exception as e:
        current_app.logger.error("load_current_user DB error (clearing session): %s", e)
        session.pop("user_id", None)


def _credentials() -> tuple[str, str]:
    if request.is_json:
        body = request.get_json(silent=True) or {}
        return (str(body.get("email") or "").strip().lower(), str(body.get("password") or ""))
    return ((request.form.get("email") or "").strip().lower(), request.form.get("password") or "")


@bp.post("/login")
def login_post():
    email, password = _credentials()
    ip = request.remote_addr or "unknown"

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    if _check_rate_limit(ip):
        return jsonify({"error": "Too many login attempts. Please wait 5 minutes."}), 429

    _record_attempt(ip)

    try:
        s = db_session()
        user = s.query(User).filter(User.email == email).one_or_none()
        if not user or not user.is_active or not check_password_hash(user.password_hash, password):
            record_event(
                s,
                actor=None,
                action="auth.login_failed",
                entity_type="User",
                entity_id=email,
                reason="Invalid credentials",
                metadata={"email": email},
            )
            s.commit()
            return jsonify({"error": "Invalid credentials"}), 401

        session["user_id"] = user.id
        _login_attempts[ip].clear()
        record_event(s, actor=user, action="auth.login", entity_type="User", entity_id=str(user.id))
        s.commit()
        claims = SessionClaims.for_user(user)
        return jsonify({"user": claims.to_dict(), "csrfToken": ensure_csrf_token()})
    except Exception:
        current_app.logger.exception("Login POST crashed (email=%s request_id=%s)", email, getattr(g, "request_id", None))
        raise


@bp.post("/logout")
def logout():
    s = db_session()
    user = getattr(g, "current_user", None)
    if user:
        record_event(s, actor=user, action="auth.logout", entity_type="User", entity_id=str(user.id))
        s.commit()
    session.pop("user_id", None)
    return jsonify({"success": True})


@bp.get("/me")
@require_login
def me():
    claims = current_claims()
    return jsonify({"user": claims.to_dict(), "csrfToken": ensure_csrf_token()})
