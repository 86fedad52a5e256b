import re
import logging
from urllib.parse import urlsplit
from ..models import (db, Code, NfcProfile, ProfileButton, ButtonClick, Profile,
                      BUTTON_ACTIONS, DEFAULT_BUTTON_COLOR, DEFAULT_BUTTON_TEXT_COLOR)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('full_name', 'job_title', 'company', 'email', 'phone', 'website', 'bio')
SOCIAL_FIELDS = (
    ('facebook_url', 'Facebook'),
    ('instagram_url', 'Instagram'),
    ('twitter_url', 'X (Twitter)'),
    ('youtube_url', 'YouTube'),
    ('linkedin_url', 'LinkedIn'),
)
COLOR_FIELDS = ('button_color', 'button_text_color', 'background_color')
EDITABLE_FIELDS = TEXT_FIELDS + tuple(f for f, _ in SOCIAL_FIELDS) + COLOR_FIELDS
URL_FIELDS = ('website',) + tuple(f for f, _ in SOCIAL_FIELDS)

_HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')


class ProfileError(ValueError):
    pass


def is_web_url(value: str) -> bool:
    parts = urlsplit(value)
    return parts.scheme.lower() in ('http', 'https') and bool(parts.netloc)


def get_profile_by_url(url: str) -> NfcProfile|None:
    return (NfcProfile.query.join(Code, NfcProfile.code_id == Code.id)
            .filter(Code.url == url).first())


def get_owned_profile(user: Profile, url: str) -> NfcProfile:
    profile = get_profile_by_url(url)
    if profile is None:
        raise ProfileError('Profile not found')
    if profile.user_id != user.id:
        raise ProfileError('You can only edit your own profile')
    return profile


def update_profile(profile: NfcProfile, updates: dict) -> NfcProfile:
    """Apply form ``updates`` to the editable fields; blank text clears a field."""
    for field in EDITABLE_FIELDS:
        if field not in updates:
            continue
        value = (updates.get(field) or '').strip() or None
        if field in COLOR_FIELDS and value is not None and not _HEX_COLOR.match(value):
            raise ProfileError(f"{field.replace('_', ' ').capitalize()} must look like #RRGGBB")
        if field in URL_FIELDS and value is not None and not is_web_url(value):
            raise ProfileError(f"{field.replace('_', ' ').capitalize()} must be an http:// or https:// link")
        setattr(profile, field, value)
    if not profile.button_color:
        profile.button_color = DEFAULT_BUTTON_COLOR
    if not profile.button_text_color:
        profile.button_text_color = DEFAULT_BUTTON_TEXT_COLOR
    db.session.commit()
    logger.info(f"Profile {profile.id} updated")
    return profile


def add_button(profile: NfcProfile, label: str, action_type: str, action_value: str) -> ProfileButton:
    label = (label or '').strip()
    action_value = (action_value or '').strip()
    if not label or not action_value:
        raise ProfileError('Button label and value are required')
    if action_type not in BUTTON_ACTIONS:
        raise ProfileError(f"Button type must be one of {', '.join(BUTTON_ACTIONS)}")
    if action_type == 'link' and not is_web_url(action_value):
        raise ProfileError('Link buttons need an http:// or https:// address')
    button = ProfileButton(profile_id=profile.id, label=label, action_type=action_type,
                           action_value=action_value, position=len(profile.buttons))
    db.session.add(button)
    db.session.commit()
    return button


def delete_button(profile: NfcProfile, button_id: str):
    button = ProfileButton.query.filter_by(id=button_id, profile_id=profile.id).first()
    if button is None:
        raise ProfileError('Button not found')
    db.session.delete(button)
    db.session.commit()


def button_href(button) -> str|None:
    """Target of a profile button, or None for unknown types and non-web links."""
    if button.action_type == 'link':
        return button.action_value if is_web_url(button.action_value) else None
    if button.action_type == 'email':
        return f"mailto:{button.action_value}"
    if button.action_type == 'call':
        return f"tel:{button.action_value}"
    return None


def record_button_click(profile: NfcProfile, button: ProfileButton):
    try:
        db.session.add(ButtonClick(button_id=button.id, profile_id=profile.id))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Error recording button click {button.id}: {e}")
