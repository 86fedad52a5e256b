"""Session gate: sign-up, login, current user and role checks."""
import functools
import logging
from flask import current_app, g, request, redirect, url_for, flash
from werkzeug.security import generate_password_hash, check_password_hash
from ..models import db, Profile, UserRole, ROLE_ADMIN, ROLE_USER
from . import query_cache
from .tokens import decode_session_token

logger = logging.getLogger(__name__)


class AuthError(ValueError):
    pass


def _normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def register_user(email: str, password: str, role: str = ROLE_USER) -> Profile:
    email = _normalize_email(email)
    if not email or '@' not in email:
        raise AuthError('Please enter a valid email address')
    if not password or len(password) < 8:
        raise AuthError('Password must be at least 8 characters')
    if Profile.query.filter_by(email=email).first() is not None:
        raise AuthError('An account with this email already exists')

    user = Profile(email=email, password_hash=generate_password_hash(password))
    db.session.add(user)
    db.session.flush()
    db.session.add(UserRole(user_id=user.id, role=role))
    db.session.commit()
    query_cache.invalidate(query_cache.USERS)
    logger.info(f"Registered user {user.id} ({role})")
    return user


def authenticate(email: str, password: str) -> Profile:
    user = Profile.query.filter_by(email=_normalize_email(email)).first()
    if user is None or not check_password_hash(user.password_hash, password or ''):
        raise AuthError('Invalid email or password')
    return user


def ensure_admin(email: str, password: str) -> Profile:
    """Create the bootstrap admin account, or promote it if it already exists."""
    user = Profile.query.filter_by(email=_normalize_email(email)).first()
    if user is None:
        return register_user(email, password, role=ROLE_ADMIN)
    role = UserRole.query.filter_by(user_id=user.id).first()
    if role is None:
        db.session.add(UserRole(user_id=user.id, role=ROLE_ADMIN))
    elif role.role != ROLE_ADMIN:
        role.role = ROLE_ADMIN
    else:
        return user
    db.session.commit()
    query_cache.invalidate(query_cache.role_key(user.id), query_cache.USERS)
    logger.info(f"Promoted {user.email} to admin")
    return user


def get_user_role(user_id: str) -> str:
    def load():
        row = UserRole.query.filter_by(user_id=user_id).first()
        return row.role if row else ROLE_USER
    return query_cache.cached(query_cache.role_key(user_id), load,
                              ttl=current_app.config.get('ROLE_CACHE_TTL', 30))


def load_current_user():
    """Resolve ``g.user`` from the session cookie or a Bearer header."""
    token = request.cookies.get(current_app.config['ACCESS_COOKIE_NAME'])
    auth = request.headers.get('Authorization', '')
    if not token and auth.startswith('Bearer '):
        token = auth.split(' ', 1)[1]
    user_id = decode_session_token(token)
    g.user = db.session.get(Profile, user_id) if user_id else None


def current_user():
    return g.get('user')


def is_admin(user) -> bool:
    return user is not None and get_user_role(user.id) == ROLE_ADMIN


def _login_redirect():
    # next only for GET; POST-only views have no GET handler to return to
    if request.method != 'GET':
        return redirect(url_for('public.login'))
    return redirect(url_for('public.login', next=request.full_path.rstrip('?')))


def login_required(view):
    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        if current_user() is None:
            return _login_redirect()
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        user = current_user()
        if user is None:
            return _login_redirect()
        if not is_admin(user):
            flash('Admin access required', 'error')
            return redirect(url_for('dashboard.dashboard'))
        return view(*args, **kwargs)
    return wrapped


def list_users() -> list[dict]:
    def load():
        roles = {r.user_id: r.role for r in UserRole.query.all()}
        return [
            {'id': p.id, 'email': p.email, 'role': roles.get(p.id) or ROLE_USER}
            for p in Profile.query.order_by(Profile.email).all()
        ]
    return query_cache.cached(query_cache.USERS, load)
