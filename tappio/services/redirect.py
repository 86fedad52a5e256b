"""Short-code resolution for ``/c/<code>``.

Given a code from the URL, look up its ``nfc_codes`` row and decide where
the visitor goes:

* no row                          -> activation flow
* review plaque, inactive         -> activation flow
* review plaque with redirect_url -> log a visit, then the external URL
* review plaque without one       -> activation flow
* profile, inactive or no url     -> activation flow
* profile                         -> ``/profile/<url>/view``

Visit logging is best-effort: the external redirect happens even when the
insert fails.
"""
import logging
from dataclasses import dataclass
from flask import request
from sqlalchemy.exc import SQLAlchemyError
from ..models import db, Code, ProfileVisit

logger = logging.getLogger(__name__)

HOME = 'home'
ACTIVATE = 'activate'
PROFILE = 'profile'
EXTERNAL = 'external'


@dataclass(frozen=True)
class Resolution:
    kind: str
    location: str
    code_id: str | None = None


def activation_path(code: str) -> str:
    return f"/activate/{code}"


def profile_view_path(url: str) -> str:
    return f"/profile/{url}/view"


def decide(code: str, record) -> Resolution:
    """Pure decision over (type, is_active, redirect_url, url) of ``record``."""
    if record is None:
        logger.debug(f"Code {code} not found, sending to activation")
        return Resolution(ACTIVATE, activation_path(code))

    if record.type == 'review':
        if not record.is_active:
            logger.debug(f"Review plaque {code} not active")
            return Resolution(ACTIVATE, activation_path(code), record.id)
        if record.redirect_url:
            return Resolution(EXTERNAL, record.redirect_url, record.id)
        logger.debug(f"Review plaque {code} has no redirect URL")
        return Resolution(ACTIVATE, activation_path(code), record.id)

    if not record.is_active:
        logger.debug(f"Profile {code} not active")
        return Resolution(ACTIVATE, activation_path(code), record.id)
    if not record.url:
        logger.debug(f"Profile {code} has no URL")
        return Resolution(ACTIVATE, activation_path(code), record.id)
    return Resolution(PROFILE, profile_view_path(record.url), record.id)


def record_visit(code_id: str):
    visit = ProfileVisit(
        profile_id=code_id,
        user_agent=request.headers.get('User-Agent'),
        referrer=request.referrer,
    )
    db.session.add(visit)
    db.session.commit()


def resolve(code: str) -> Resolution:
    if not code:
        logger.error("No code provided")
        return Resolution(HOME, '/')

    try:
        record = Code.query.filter_by(code=code).first()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Database error while resolving code {code}")
        return Resolution(HOME, '/')

    resolution = decide(code, record)
    if resolution.kind == EXTERNAL:
        try:
            record_visit(resolution.code_id)
        except Exception as e:  # redirect proceeds regardless
            db.session.rollback()
            logger.warning(f"Error recording visit for {code}: {e}")
        else:
            logger.debug(f"Visit recorded for review plaque {code}")
    logger.info(f"Resolved {code} -> {resolution.kind} {resolution.location}")
    return resolution
