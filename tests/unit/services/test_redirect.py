"""Unit tests for short-code resolution (``/c/<code>``)."""
import pytest
from types import SimpleNamespace
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from tappio.models import ProfileVisit
from tappio.services.redirect import decide, resolve, ACTIVATE, PROFILE, EXTERNAL, HOME


def record(type='profile', is_active=False, url=None, redirect_url=None):
    return SimpleNamespace(id='code-1', type=type, is_active=is_active, url=url,
                           redirect_url=redirect_url)


# ============================================================================
# decide(): pure decision table
# ============================================================================

@pytest.mark.unit
class TestDecide:

    def test_missing_record_goes_to_activation(self):
        res = decide('ZZZ', None)
        assert res.kind == ACTIVATE
        assert res.location == '/activate/ZZZ'

    def test_inactive_profile_goes_to_activation(self):
        res = decide('P1', record(is_active=False, url='abc'))
        assert res.location == '/activate/P1'

    def test_active_profile_without_url_goes_to_activation(self):
        res = decide('P1', record(is_active=True, url=None))
        assert res.kind == ACTIVATE

    def test_active_profile_goes_to_profile_view(self):
        res = decide('P1', record(is_active=True, url='abc'))
        assert res.kind == PROFILE
        assert res.location == '/profile/abc/view'

    def test_inactive_review_goes_to_activation(self):
        res = decide('R1', record(type='review', is_active=False, redirect_url='https://r.example'))
        assert res.location == '/activate/R1'

    def test_active_review_goes_to_redirect_url(self):
        res = decide('R1', record(type='review', is_active=True, redirect_url='https://r.example/x'))
        assert res.kind == EXTERNAL
        assert res.location == 'https://r.example/x'
        assert res.code_id == 'code-1'

    def test_active_review_without_redirect_goes_to_activation(self):
        res = decide('R1', record(type='review', is_active=True, url='ignored'))
        assert res.location == '/activate/R1'


# ============================================================================
# resolve(): lookup + visit logging
# ============================================================================

@pytest.mark.unit
class TestResolve:

    def test_nonexistent_code(self, app):
        with app.test_request_context('/c/NOPE'):
            assert resolve('NOPE').location == '/activate/NOPE'

    def test_empty_code_goes_home(self, app):
        with app.test_request_context('/c/'):
            res = resolve('')
        assert res.kind == HOME
        assert res.location == '/'

    def test_profile_code(self, app, make_code):
        make_code('PROF0001', is_active=True, url='abc')
        with app.test_request_context('/c/PROF0001'):
            assert resolve('PROF0001').location == '/profile/abc/view'

    def test_profile_code_does_not_log_visit(self, app, make_code):
        make_code('PROF0001', is_active=True, url='abc')
        with app.test_request_context('/c/PROF0001'):
            resolve('PROF0001')
        assert ProfileVisit.query.count() == 0

    def test_review_code_logs_visit(self, app, make_code):
        code = make_code('REV00001', type='review', is_active=True,
                         redirect_url='https://search.google.com/local/writereview?placeid=x')
        with app.test_request_context('/c/REV00001', headers={'User-Agent': 'pytest-agent'}):
            res = resolve('REV00001')
        assert res.kind == EXTERNAL
        visits = ProfileVisit.query.all()
        assert len(visits) == 1
        assert visits[0].profile_id == code.id
        assert visits[0].user_agent == 'pytest-agent'

    def test_review_redirect_survives_visit_failure(self, app, make_code):
        make_code('REV00002', type='review', is_active=True, redirect_url='https://r.example/y')
        with app.test_request_context('/c/REV00002'):
            with patch('tappio.services.redirect.record_visit', side_effect=RuntimeError('db down')):
                res = resolve('REV00002')
        assert res.kind == EXTERNAL
        assert res.location == 'https://r.example/y'

    def test_database_error_goes_home(self, app):
        with app.test_request_context('/c/ANY'):
            with patch('tappio.services.redirect.Code') as code_model:
                code_model.query.filter_by.return_value.first.side_effect = OperationalError('select', {}, Exception('gone'))
                res = resolve('ANY')
        assert res.kind == HOME


# ============================================================================
# GET /c/<code>
# ============================================================================

@pytest.mark.unit
class TestCodeRedirectRoute:

    def test_unknown_code_redirects_to_activation(self, client):
        resp = client.get('/c/UNKNOWN1')
        assert resp.status_code == 302
        assert resp.headers['Location'] == '/activate/UNKNOWN1'

    def test_profile_redirect(self, client, make_code):
        make_code('PROF0002', is_active=True, url='abc')
        resp = client.get('/c/PROF0002')
        assert resp.status_code == 302
        assert resp.headers['Location'] == '/profile/abc/view'

    def test_review_redirect_is_external(self, client, make_code):
        make_code('REV00003', type='review', is_active=True, redirect_url='https://reviews.example/biz')
        resp = client.get('/c/REV00003')
        assert resp.status_code == 302
        assert resp.headers['Location'] == 'https://reviews.example/biz'
        assert ProfileVisit.query.count() == 1

    def test_review_redirect_when_visit_insert_fails(self, client, make_code):
        make_code('REV00004', type='review', is_active=True, redirect_url='https://reviews.example/biz')
        with patch('tappio.services.redirect.record_visit', side_effect=RuntimeError('insert failed')):
            resp = client.get('/c/REV00004')
        assert resp.headers['Location'] == 'https://reviews.example/biz'
