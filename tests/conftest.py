"""Shared pytest fixtures: app on in-memory SQLite, clients and user factories."""
import pytest
from tappio import create_app
from tappio.models import db, Code, ROLE_ADMIN, ROLE_USER
from tappio.services import store
from tappio.services.auth import register_user
from tappio.services.tokens import sign_session_token


@pytest.fixture
def app():
    store.reset()
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'USE_REDIS': False,
        'SECRET_KEY': 'test-secret-key',
        'BASE_URL': 'https://tap.example',
        'ADMIN_API_KEY': 'test-admin-key',
        'ADMIN_EMAIL': None,
        'ADMIN_PASSWORD': None,
        'GOOGLE_PLACES_API_KEY': None,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    store.reset()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory: make_user('a@example.com', role='admin')."""
    counter = {'n': 0}

    def _make(email=None, role=ROLE_USER, password='password123'):
        counter['n'] += 1
        email = email or f"user{counter['n']}@example.com"
        return register_user(email, password, role=role)
    return _make


@pytest.fixture
def user(make_user):
    return make_user('jane.doe@example.com')


@pytest.fixture
def admin(make_user):
    return make_user('admin@example.com', role=ROLE_ADMIN)


def sign_in(app, client, user):
    client.set_cookie(app.config['ACCESS_COOKIE_NAME'], sign_session_token(user.id))
    return client


@pytest.fixture
def user_client(app, client, user):
    return sign_in(app, client, user)


@pytest.fixture
def admin_client(app, client, admin):
    return sign_in(app, client, admin)


@pytest.fixture
def make_code(app):
    """Factory for nfc_codes rows with explicit state."""
    def _make(code='ABC12345', type='profile', is_active=False, url=None,
              redirect_url=None, assigned_to=None, is_hidden=False):
        row = Code(code=code, type=type, is_active=is_active, url=url,
                   redirect_url=redirect_url, assigned_to=assigned_to, is_hidden=is_hidden)
        db.session.add(row)
        db.session.commit()
        return row
    return _make


@pytest.fixture
def login_as(app, client):
    """Sign the shared test client in as ``user``."""
    def _login(user):
        return sign_in(app, client, user)
    return _login
