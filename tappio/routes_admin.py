import io
import logging
from flask import (Blueprint, jsonify, request, current_app, send_file, render_template,
                   redirect, url_for, flash, Response, abort)
from sqlalchemy.exc import SQLAlchemyError
from .models import db, CODE_TYPES
from .services.auth import admin_required, current_user, list_users
from .services import codes as code_service
from .services.qr import code_url, make_qr_bytes, make_qr_svg

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)

_GENERATED = {
    'profile': ('NFC codes generated successfully', 'Failed to generate NFC codes'),
    'review': ('Review codes generated successfully', 'Failed to generate review codes'),
}


def _code_type(value: str|None) -> str:
    if value not in CODE_TYPES:
        abort(400)
    return value


@bp.get('')
@admin_required
def index():
    nfc_codes = code_service.list_codes('profile')
    review_codes = code_service.list_codes('review')
    return render_template(
        'admin.html',
        sections=[
            ('profile', 'NFC Codes', code_service.available_codes(nfc_codes)),
            ('review', 'Review Plaques', code_service.available_codes(review_codes)),
        ],
        users=list_users(),
        recent=code_service.recently_activated(nfc_codes),
    )


@bp.post('/codes/generate')
@admin_required
def generate():
    code_type = _code_type(request.form.get('code_type', 'profile'))
    ok_msg, fail_msg = _GENERATED[code_type]
    try:
        count = int(request.form.get('count', ''))
        code_service.generate_codes(count, current_user().id, code_type)
    except (ValueError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Error generating codes: {e}")
        flash(fail_msg, 'error')
    else:
        flash(ok_msg, 'success')
    return redirect(url_for('admin.index'))


@bp.get('/codes/export.csv')
@admin_required
def export_csv():
    code_type = _code_type(request.args.get('type', 'profile'))
    body = code_service.codes_csv(code_service.list_codes(code_type))
    return Response(
        body,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={code_service.csv_filename(code_type)}'},
    )


@bp.post('/codes/<code_id>/hide')
@admin_required
def toggle_hide(code_id: str):
    try:
        code = code_service.toggle_hidden(code_id)
    except (ValueError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Error updating code visibility: {e}")
        flash('Failed to update code visibility', 'error')
    else:
        flash(f"Code {'hidden' if code.is_hidden else 'unhidden'} successfully", 'success')
    return redirect(url_for('admin.index'))


@bp.get('/codes/<code>/qr.<ext>')
@admin_required
def qr_download(code: str, ext: str):
    if code_service.get_code(code) is None:
        abort(404)
    url = code_url(current_app.config.get('BASE_URL'), code)
    if ext == 'svg':
        data, mimetype = make_qr_svg(url), 'image/svg+xml'
    elif ext == 'png':
        data, mimetype = make_qr_bytes(url), 'image/png'
    else:
        abort(404)
    return send_file(io.BytesIO(data), mimetype=mimetype, as_attachment=True,
                     download_name=f"qr-code-{code}.{ext}", etag=False)


# JSON API for operator scripts (X-Admin-Key)

def _check_api_key():
    api_key = request.headers.get('X-Admin-Key')
    if not api_key or api_key != (current_app.config.get('ADMIN_API_KEY') or ''):
        return jsonify({'error': 'unauthorized'}), 401
    return None


@bp.post('/api/codes')
def api_generate():
    denied = _check_api_key()
    if denied:
        return denied

    data = request.get_json(silent=True) or {}
    code_type = data.get('code_type') or 'profile'
    try:
        codes = code_service.generate_codes(int(data.get('count') or 1), data.get('admin_id'), code_type)
    except (TypeError, ValueError) as e:
        return jsonify({'error': 'invalid_request', 'detail': str(e)}), 400
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error generating codes")
        return jsonify({'error': 'generation_failed'}), 500

    base = current_app.config.get('BASE_URL')
    return jsonify({
        'ok': True,
        'codes': [dict(code_service.code_to_dict(c), code_url=code_url(base, c.code)) for c in codes],
    })
