import pytest
from werkzeug.security import generate_password_hash

from app.petcare import auth, create_app
from app.petcare.db import session_scope
from app.petcare.models import Base, User
from app.petcare.modules.features.service import enable_feature, initialize_features
from app.petcare.modules.settings.service import seed_default_settings


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)
    auth._login_attempts.clear()

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add_all(
            [
                User(
                    email="admin@example.com",
                    name="Admin",
                    password_hash=generate_password_hash("pw"),
                    is_active=True,
                    is_admin=True,
                ),
                User(email="user@example.com", name="Owner", password_hash=generate_password_hash("pw"), is_active=True),
                User(email="other@example.com", name="Other", password_hash=generate_password_hash("pw"), is_active=True),
            ]
        )
        initialize_features(s)
        seed_default_settings(s)

    return app


@pytest.fixture()
def user_ids(app):
    with session_scope(app) as s:
        return {u.email: u.id for u in s.query(User).all()}


@pytest.fixture()
def client(app):
    return app.test_client()


def _logged_in(app, email):
    c = app.test_client()
    r = c.post("/auth/login", json={"email": email, "password": "pw"})
    assert r.status_code == 200, r.json
    c.environ_base["HTTP_X_CSRF_TOKEN"] = r.json["csrfToken"]
    return c


@pytest.fixture()
def admin_client(app):
    return _logged_in(app, "admin@example.com")


@pytest.fixture()
def user_client(app):
    return _logged_in(app, "user@example.com")


@pytest.fixture()
def other_client(app):
    return _logged_in(app, "other@example.com")


@pytest.fixture()
def enable_features(app):
    """Globally enable optional features by name."""

    def _enable(*names):
        with session_scope(app) as s:
            for name in names:
                assert enable_feature(s, name)

    return _enable
