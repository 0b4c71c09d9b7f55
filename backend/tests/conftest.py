"""Pytest configuration and fixtures."""

import pytest
from flask_jwt_extended import create_access_token

from app import create_app, db
from app.models import User, UserProgress
from app.models.user import UserRole
from app.services import events
from app.services.spin_wheel import reset_shared_rngs


@pytest.fixture
def app():
    """Create and configure a test application instance."""
    events.clear_subscribers()
    reset_shared_rngs()
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

    events.clear_subscribers()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


def _create_user(name: str, email: str, role: str = UserRole.USER.value) -> dict:
    user = User(name=name, email=email, role=role)
    db.session.add(user)
    db.session.commit()
    db.session.refresh(user)
    return {"id": user.id, "email": user.email}


@pytest.fixture
def test_user(app):
    """Create a test user in the database."""
    with app.app_context():
        return _create_user("Test User", "test@example.com")


@pytest.fixture
def other_user(app):
    """A second, unrelated user."""
    with app.app_context():
        return _create_user("Other User", "other@example.com")


@pytest.fixture
def admin_user(app):
    """A user with the admin role."""
    with app.app_context():
        return _create_user("Admin", "admin@example.com", UserRole.ADMIN.value)


def _headers_for(app, user_id: int) -> dict:
    with app.app_context():
        token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(app, test_user):
    """Authorization headers with a JWT for the test user."""
    return _headers_for(app, test_user["id"])


@pytest.fixture
def admin_headers(app, admin_user):
    """Authorization headers with a JWT for the admin user."""
    return _headers_for(app, admin_user["id"])


@pytest.fixture
def other_headers(app, other_user):
    """Authorization headers with a JWT for the second user."""
    return _headers_for(app, other_user["id"])


@pytest.fixture
def set_progress(app):
    """Overwrite a user's progress row (creating it if needed)."""

    def _set(user_id: int, **fields) -> None:
        progress = UserProgress.query.filter_by(user_id=user_id).first()
        if progress is None:
            progress = UserProgress(user_id=user_id)
            db.session.add(progress)
        for key, value in fields.items():
            setattr(progress, key, value)
        db.session.commit()

    return _set


@pytest.fixture
def auth_client(client, auth_headers):
    """Create an authenticated test client wrapper."""

    class AuthenticatedClient:
        def __init__(self, client, headers):
            self._client = client
            self._headers = headers

        def get(self, *args, **kwargs):
            kwargs.setdefault("headers", {}).update(self._headers)
            return self._client.get(*args, **kwargs)

        def post(self, *args, **kwargs):
            kwargs.setdefault("headers", {}).update(self._headers)
            return self._client.post(*args, **kwargs)

        def put(self, *args, **kwargs):
            kwargs.setdefault("headers", {}).update(self._headers)
            return self._client.put(*args, **kwargs)

    return AuthenticatedClient(client, auth_headers)
