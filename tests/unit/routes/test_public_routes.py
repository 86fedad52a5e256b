"""Route tests for login, sign-up, logout and the public profile page."""
import pytest

from tappio.models import Profile, ButtonClick
from tappio.services import codes as code_service
from tappio.services.profiles import get_profile_by_url, add_button, update_profile


@pytest.mark.unit
class TestLogin:

    def test_login_page(self, client):
        assert client.get('/login').status_code == 200

    def test_login_sets_cookie_and_redirects(self, app, client, user):
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'password123'})
        assert resp.status_code == 302
        assert resp.headers['Location'] == '/dashboard'
        assert app.config['ACCESS_COOKIE_NAME'] in resp.headers.get('Set-Cookie', '')

    def test_login_respects_next(self, client, user):
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'password123',
                                           'next': '/activate/ABC'})
        assert resp.headers['Location'] == '/activate/ABC'

    def test_login_ignores_offsite_next(self, client, user):
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'password123',
                                           'next': '//evil.example/x'})
        assert resp.headers['Location'] == '/dashboard'

    def test_login_ignores_backslash_next(self, client, user):
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'password123',
                                           'next': '/\\evil.example/x'})
        assert resp.headers['Location'] == '/dashboard'

    def test_bad_password(self, client, user):
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'wrong'})
        assert resp.status_code == 400
        assert b'Invalid email or password' in resp.data

    def test_login_rate_limited(self, app, client, user):
        limit, _ = app.config['LOGIN_RATE_LIMIT']
        for _ in range(limit):
            client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'wrong'})
        resp = client.post('/login', data={'email': 'jane.doe@example.com', 'password': 'password123'})
        assert resp.status_code == 400
        assert b'Too many attempts' in resp.data

    def test_signup(self, client):
        resp = client.post('/signup', data={'email': 'fresh@example.com', 'password': 'password123'})
        assert resp.status_code == 302
        assert Profile.query.filter_by(email='fresh@example.com').count() == 1

    def test_logout_clears_cookie(self, user_client):
        resp = user_client.post('/logout', follow_redirects=True)
        assert b'Successfully logged out!' in resp.data
        assert user_client.get('/dashboard').status_code == 302

    def test_home_redirects(self, client):
        assert client.get('/').headers['Location'] == '/login'

    def test_health(self, client):
        assert client.get('/health').get_json() == {'ok': True}


@pytest.mark.unit
class TestProfileView:

    @pytest.fixture
    def profile(self, app, user, make_code):
        make_code('CARD0002', url='jane')
        code_service.activate_profile_code(user, 'CARD0002')
        profile = get_profile_by_url('jane')
        update_profile(profile, {'full_name': 'Jane Doe', 'job_title': 'Engineer'})
        return profile

    def test_public_view(self, client, profile):
        resp = client.get('/profile/jane/view')
        assert resp.status_code == 200
        assert b'Jane Doe' in resp.data
        assert b'Engineer' in resp.data

    def test_unknown_profile(self, client):
        assert client.get('/profile/nobody/view').status_code == 404

    def test_inactive_profile_is_hidden(self, client, user, make_code):
        make_code('CARD0003', url='idle', assigned_to=user.id)
        assert client.get('/profile/idle/view').status_code == 404

    def test_button_click_is_recorded(self, client, profile):
        button = add_button(profile, 'Mail', 'email', 'jane@example.com')
        resp = client.get(f'/profile/jane/buttons/{button.id}/go')
        assert resp.status_code == 302
        assert resp.headers['Location'] == 'mailto:jane@example.com'
        assert ButtonClick.query.count() == 1

    def test_unknown_button(self, client, profile):
        assert client.get('/profile/jane/buttons/nope/go').status_code == 404
