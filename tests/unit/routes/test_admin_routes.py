"""Route tests for the admin dashboard and the operator JSON API."""
import pytest

from tappio.models import Code


@pytest.mark.unit
class TestAdminAccess:

    def test_anonymous_redirected_to_login(self, client):
        resp = client.get('/admin')
        assert resp.headers['Location'].startswith('/login?next=')

    def test_non_admin_redirected(self, user_client):
        resp = user_client.get('/admin', follow_redirects=True)
        assert b'Admin access required' in resp.data
        assert resp.request.path == '/dashboard'

    def test_admin_page(self, admin_client, make_code):
        make_code('FREE0001', url='free')
        resp = admin_client.get('/admin')
        assert resp.status_code == 200
        assert b'FREE0001' in resp.data
        assert b'admin@example.com' in resp.data


@pytest.mark.unit
class TestGenerate:

    def test_generate_profile_codes(self, admin_client):
        resp = admin_client.post('/admin/codes/generate', data={'count': '3', 'code_type': 'profile'},
                                 follow_redirects=True)
        assert b'NFC codes generated successfully' in resp.data
        assert Code.query.filter_by(type='profile').count() == 3

    def test_generate_review_codes(self, admin_client):
        resp = admin_client.post('/admin/codes/generate', data={'count': '2', 'code_type': 'review'},
                                 follow_redirects=True)
        assert b'Review codes generated successfully' in resp.data
        assert Code.query.filter_by(type='review').count() == 2

    def test_bad_count(self, admin_client):
        resp = admin_client.post('/admin/codes/generate', data={'count': 'lots'}, follow_redirects=True)
        assert b'Failed to generate NFC codes' in resp.data
        assert Code.query.count() == 0

    def test_unknown_type(self, admin_client):
        resp = admin_client.post('/admin/codes/generate', data={'count': '1', 'code_type': 'coupon'})
        assert resp.status_code == 400


@pytest.mark.unit
class TestExportAndHide:

    def test_csv_export(self, admin_client, user, make_code):
        make_code('FREE0001', url='free')
        make_code('USED0001', url='used', assigned_to=user.id)
        resp = admin_client.get('/admin/codes/export.csv?type=profile')
        assert resp.status_code == 200
        assert resp.mimetype == 'text/csv'
        assert 'attachment; filename=nfc-codes-' in resp.headers['Content-Disposition']
        body = resp.get_data(as_text=True)
        assert body.startswith('Code,URL,Created At\n')
        assert 'FREE0001,free,' in body
        assert 'USED0001' not in body

    def test_review_csv_filename(self, admin_client):
        resp = admin_client.get('/admin/codes/export.csv?type=review')
        assert 'filename=review-codes-' in resp.headers['Content-Disposition']

    def test_toggle_hide(self, admin_client, make_code):
        code = make_code('HIDE0001')
        resp = admin_client.post(f'/admin/codes/{code.id}/hide', follow_redirects=True)
        assert b'Code hidden successfully' in resp.data
        assert code.is_hidden is True
        resp = admin_client.post(f'/admin/codes/{code.id}/hide', follow_redirects=True)
        assert b'Code unhidden successfully' in resp.data
        assert code.is_hidden is False

    def test_toggle_unknown(self, admin_client):
        resp = admin_client.post('/admin/codes/missing/hide', follow_redirects=True)
        assert b'Failed to update code visibility' in resp.data


@pytest.mark.unit
class TestQrDownload:

    def test_svg(self, admin_client, make_code):
        make_code('QRCODE01')
        resp = admin_client.get('/admin/codes/QRCODE01/qr.svg')
        assert resp.status_code == 200
        assert resp.mimetype == 'image/svg+xml'
        assert 'qr-code-QRCODE01.svg' in resp.headers['Content-Disposition']
        assert b'<svg' in resp.data

    def test_png(self, admin_client, make_code):
        make_code('QRCODE02')
        resp = admin_client.get('/admin/codes/QRCODE02/qr.png')
        assert resp.mimetype == 'image/png'
        assert resp.data[:8] == b'\x89PNG\r\n\x1a\n'

    def test_unknown_code(self, admin_client):
        assert admin_client.get('/admin/codes/NOPE0000/qr.svg').status_code == 404

    def test_unknown_format(self, admin_client, make_code):
        make_code('QRCODE03')
        assert admin_client.get('/admin/codes/QRCODE03/qr.gif').status_code == 404


@pytest.mark.unit
class TestOperatorApi:

    def test_requires_key(self, client):
        resp = client.post('/admin/api/codes', json={'count': 1})
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'unauthorized'}

    def test_wrong_key(self, client):
        resp = client.post('/admin/api/codes', json={'count': 1}, headers={'X-Admin-Key': 'nope'})
        assert resp.status_code == 401

    def test_generates_codes_with_urls(self, client):
        resp = client.post('/admin/api/codes', json={'count': 2, 'code_type': 'review'},
                           headers={'X-Admin-Key': 'test-admin-key'})
        data = resp.get_json()
        assert resp.status_code == 200
        assert data['ok'] is True
        assert len(data['codes']) == 2
        for c in data['codes']:
            assert c['type'] == 'review'
            assert c['code_url'] == f"https://tap.example/c/{c['code']}"

    def test_invalid_count(self, client):
        resp = client.post('/admin/api/codes', json={'count': 0}, headers={'X-Admin-Key': 'test-admin-key'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'invalid_request'

    @pytest.mark.parametrize('count', [[1, 2], {'n': 3}, 'many'])
    def test_malformed_count(self, client, count):
        resp = client.post('/admin/api/codes', json={'count': count}, headers={'X-Admin-Key': 'test-admin-key'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'invalid_request'
