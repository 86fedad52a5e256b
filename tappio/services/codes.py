"""Code lifecycle: generation, claim, activation, visibility, listing and CSV export."""
import csv
import io
import logging
import secrets
import string
from datetime import date, datetime, timezone
from flask import current_app
from ..models import db, Code, NfcProfile, Profile, CODE_TYPES
from . import query_cache

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
SLUG_ALPHABET = string.ascii_lowercase + string.digits
SLUG_LENGTH = 10
CSV_HEADER = ['Code', 'URL', 'Created At']
AVAILABLE_LIMIT = 10
RECENT_LIMIT = 5
REVIEW_URL = 'https://search.google.com/local/writereview?placeid={place_id}'


class ClaimError(ValueError):
    pass


class ActivationError(ValueError):
    pass


def _random(alphabet: str, length: int) -> str:
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def _unique(column, alphabet: str, length: int, taken: set) -> str:
    while True:
        candidate = _random(alphabet, length)
        if candidate in taken:
            continue
        if Code.query.filter(column == candidate).first() is None:
            taken.add(candidate)
            return candidate


def _now():
    return datetime.now(timezone.utc)


def generate_codes(count: int, admin_id: str|None, code_type: str) -> list[Code]:
    """Create ``count`` unassigned, inactive codes of ``code_type``.

    Counterpart of the ``generate_nfc_codes`` remote procedure: takes
    ``{count, admin_id, code_type}`` and commits all codes in one transaction.
    """
    if code_type not in CODE_TYPES:
        raise ValueError(f"code_type must be one of {CODE_TYPES}")
    limit = current_app.config.get('MAX_CODES_PER_BATCH', 1000)
    if not isinstance(count, int) or isinstance(count, bool) or not 1 <= count <= limit:
        raise ValueError(f"count must be between 1 and {limit}")

    codes, taken_codes, taken_slugs = [], set(), set()
    for _ in range(count):
        code = Code(
            code=_unique(Code.code, CODE_ALPHABET, CODE_LENGTH, taken_codes),
            type=code_type,
            created_by=admin_id,
        )
        if code_type == 'profile':
            code.url = _unique(Code.url, SLUG_ALPHABET, SLUG_LENGTH, taken_slugs)
        db.session.add(code)
        codes.append(code)
    db.session.commit()
    query_cache.invalidate(query_cache.codes_key(code_type))
    logger.info(f"Generated {count} {code_type} codes (admin={admin_id})")
    return codes


def get_code(code: str) -> Code|None:
    return Code.query.filter_by(code=code).first()


def _ensure_profile(code: Code, user_id: str) -> NfcProfile:
    profile = NfcProfile.query.filter_by(code_id=code.id).first()
    if profile is None:
        profile = NfcProfile(user_id=user_id, code_id=code.id)
        db.session.add(profile)
    return profile


def _assign(code: Code, user_id: str):
    code.assigned_to = user_id
    code.assigned_at = _now()
    if code.type == 'profile':
        _ensure_profile(code, user_id)


def claim_code(user: Profile, raw_code: str) -> Code:
    """Assign an unassigned code to ``user``. Codes are matched uppercased."""
    code = get_code((raw_code or '').strip().upper())
    if code is None:
        raise ClaimError('Invalid code')
    if code.assigned_to:
        raise ClaimError('Code already assigned')
    _assign(code, user.id)
    db.session.commit()
    query_cache.invalidate(query_cache.codes_key(code.type))
    logger.info(f"Code {code.code} claimed by {user.id}")
    return code


def _owned_code(user: Profile, raw_code: str) -> Code:
    code = get_code(raw_code)
    if code is None:
        raise ActivationError('Invalid code')
    if code.assigned_to and code.assigned_to != user.id:
        raise ActivationError('Code already assigned')
    return code


def activate_profile_code(user: Profile, raw_code: str) -> Code:
    """Claim if needed, make sure a profile and slug exist, then mark active."""
    code = _owned_code(user, raw_code)
    if code.type != 'profile':
        raise ActivationError('This code is a review plaque')
    if not code.assigned_to:
        _assign(code, user.id)
    else:
        _ensure_profile(code, user.id)
    if not code.url:
        code.url = _unique(Code.url, SLUG_ALPHABET, SLUG_LENGTH, set())
    code.is_active = True
    db.session.commit()
    query_cache.invalidate(query_cache.NFC_CODES)
    logger.info(f"Profile code {code.code} activated by {user.id}")
    return code


def review_url_for(place_id: str) -> str:
    return REVIEW_URL.format(place_id=place_id)


def activate_review_code(user: Profile, raw_code: str, place_id: str, title: str, description: str) -> Code:
    code = _owned_code(user, raw_code)
    if code.type != 'review':
        raise ActivationError('This code is a profile card')
    place_id = (place_id or '').strip()
    title = (title or '').strip()
    description = (description or '').strip()
    if not place_id and not code.redirect_url:
        raise ActivationError('Please select your business')
    if not title or not description:
        raise ActivationError('Title and description are required')
    if not code.assigned_to:
        _assign(code, user.id)
    if place_id:
        code.redirect_url = review_url_for(place_id)
    code.title = title
    code.description = description
    code.is_active = True
    db.session.commit()
    query_cache.invalidate(query_cache.REVIEW_CODES)
    logger.info(f"Review plaque {code.code} configured by {user.id}")
    return code


def toggle_hidden(code_id: str) -> Code:
    code = db.session.get(Code, code_id)
    if code is None:
        raise ValueError('Unknown code')
    code.is_hidden = not code.is_hidden
    db.session.commit()
    query_cache.invalidate(query_cache.codes_key(code.type))
    return code


def user_profiles(user_id: str) -> list[NfcProfile]:
    return NfcProfile.query.filter_by(user_id=user_id).all()


def user_review_plaques(user_id: str) -> list[Code]:
    return Code.query.filter_by(type='review', assigned_to=user_id).all()


def _iso(value):
    return value.isoformat() if value else None


def code_to_dict(code: Code) -> dict:
    return {
        'id': code.id,
        'code': code.code,
        'type': code.type,
        'url': code.url,
        'redirect_url': code.redirect_url,
        'is_active': bool(code.is_active),
        'is_hidden': bool(code.is_hidden),
        'assigned_to': code.assigned_to,
        'assigned_at': _iso(code.assigned_at),
        'created_at': _iso(code.created_at),
    }


def list_codes(code_type: str) -> list[dict]:
    """All codes of ``code_type``, newest first, through the query cache."""
    def load():
        rows = Code.query.filter_by(type=code_type).order_by(Code.created_at.desc()).all()
        return [code_to_dict(c) for c in rows]
    return query_cache.cached(query_cache.codes_key(code_type), load)


def available_codes(codes: list[dict], limit: int = AVAILABLE_LIMIT) -> list[dict]:
    return [c for c in codes if not c.get('assigned_to') and not c.get('is_hidden')][:limit]


def recently_activated(codes: list[dict], limit: int = RECENT_LIMIT) -> list[dict]:
    assigned = [c for c in codes if c.get('assigned_to') and c.get('assigned_at')]
    assigned.sort(key=lambda c: c['assigned_at'], reverse=True)
    return assigned[:limit]


def format_created_at(value) -> str:
    """Render a date as M/D/YYYY, e.g. ``1/1/2024``."""
    if not value:
        return ''
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value.month}/{value.day}/{value.year}"


def codes_csv(codes: list[dict]) -> str:
    """CSV of the unassigned codes: ``Code,URL,Created At`` then one row per code."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator='\n')
    w.writerow(CSV_HEADER)
    for c in codes:
        if c.get('assigned_to'):
            continue
        w.writerow([c.get('code') or '', c.get('url') or '', format_created_at(c.get('created_at'))])
    return buf.getvalue()


def csv_filename(code_type: str, today: date|None=None) -> str:
    prefix = 'review' if code_type == 'review' else 'nfc'
    today = today or datetime.now(timezone.utc).date()
    return f"{prefix}-codes-{today.isoformat()}.csv"
