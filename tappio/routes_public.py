import logging
from flask import (Blueprint, render_template, request, redirect, url_for, flash,
                   current_app, abort, make_response)
from .services.auth import (authenticate, register_user, current_user, is_admin, AuthError)
from .services.rate_limit import check_rate, RateLimitExceeded
from .services.tokens import sign_session_token
from .services.redirect import resolve
from .services.profiles import (get_profile_by_url, button_href, record_button_click,
                                SOCIAL_FIELDS)
from .models import ProfileButton

logger = logging.getLogger(__name__)

bp = Blueprint('public', __name__)


def _safe_next(target: str|None) -> str:
    # Only same-site relative paths; browsers treat a leading /\ like //
    if target and target.startswith('/') and not target.startswith(('//', '/\\')):
        return target
    return url_for('dashboard.dashboard')


def _login_response(user, target: str):
    resp = make_response(redirect(_safe_next(target)))
    resp.set_cookie(
        current_app.config['ACCESS_COOKIE_NAME'],
        sign_session_token(user.id),
        max_age=int(current_app.config['ACCESS_TOKEN_EXPIRE_MINUTES']) * 60,
        httponly=True,
        samesite='Lax',
        secure=current_app.config.get('ACCESS_COOKIE_SECURE', False),
    )
    return resp


@bp.get('/')
def home():
    if current_user() is not None:
        return redirect(url_for('dashboard.dashboard'))
    return redirect(url_for('public.login'))


@bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'GET':
        return render_template('login.html', next=request.args.get('next', ''))

    email = request.form.get('email', '')
    try:
        limit, window = current_app.config['LOGIN_RATE_LIMIT']
        check_rate('login', request.remote_addr or '0.0.0.0', limit, window)
        user = authenticate(email, request.form.get('password', ''))
    except (AuthError, RateLimitExceeded) as e:
        logger.info(f"Login failed for {email!r}: {e}")
        flash(str(e), 'error')
        return render_template('login.html', next=request.form.get('next', ''), email=email), 400
    logger.info(f"User {user.id} signed in")
    return _login_response(user, request.form.get('next'))


@bp.route('/signup', methods=['GET', 'POST'])
def signup():
    if request.method == 'GET':
        return render_template('signup.html', next=request.args.get('next', ''))

    email = request.form.get('email', '')
    try:
        user = register_user(email, request.form.get('password', ''))
    except AuthError as e:
        flash(str(e), 'error')
        return render_template('signup.html', next=request.form.get('next', ''), email=email), 400
    flash('Account created', 'success')
    return _login_response(user, request.form.get('next'))


@bp.route('/logout', methods=['GET', 'POST'])
def logout():
    resp = make_response(redirect(url_for('public.login')))
    resp.delete_cookie(current_app.config['ACCESS_COOKIE_NAME'])
    flash('Successfully logged out!', 'success')
    return resp


@bp.get('/c/<code>')
def code_redirect(code: str):
    return redirect(resolve(code).location)


@bp.get('/profile/<url>/view')
def profile_view(url: str):
    profile = get_profile_by_url(url)
    if profile is None or not profile.code.is_active:
        abort(404)
    user = current_user()
    return render_template(
        'profile_view.html',
        profile=profile,
        social_fields=SOCIAL_FIELDS,
        can_edit=user is not None and (user.id == profile.user_id or is_admin(user)),
    )


@bp.get('/profile/<url>/buttons/<button_id>/go')
def button_go(url: str, button_id: str):
    profile = get_profile_by_url(url)
    if profile is None:
        abort(404)
    button = ProfileButton.query.filter_by(id=button_id, profile_id=profile.id).first()
    if button is None:
        abort(404)
    record_button_click(profile, button)
    return redirect(button_href(button) or url_for('public.profile_view', url=url))
