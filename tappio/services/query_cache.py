"""Small read-through cache keyed by logical resource name.

Values must be JSON serialisable. Mutations call :func:`invalidate` with the
resource names they touch; there is no other consistency guarantee.
"""
import json
import logging
from flask import current_app
from .store import r

logger = logging.getLogger(__name__)

NFC_CODES = 'nfcCodes'
REVIEW_CODES = 'reviewCodes'
USERS = 'users'


def role_key(user_id: str) -> str:
    return f"userRole:{user_id}"


def codes_key(code_type: str) -> str:
    return REVIEW_CODES if code_type == 'review' else NFC_CODES


def _key(name: str) -> str:
    return f"qc:{name}"


def cached(name: str, loader, ttl: int | None = None):
    raw = r().get(_key(name))
    if raw is not None:
        return json.loads(raw)
    value = loader()
    if ttl is None:
        ttl = current_app.config.get('QUERY_CACHE_TTL', 30)
    r().setex(_key(name), ttl, json.dumps(value))
    return value


def invalidate(*names: str):
    if names:
        r().delete(*[_key(n) for n in names])
        logger.debug(f"Invalidated query cache: {', '.join(names)}")
