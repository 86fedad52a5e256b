from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func
import uuid

CODE_TYPES = ('profile', 'review')
ROLE_ADMIN = 'admin'
ROLE_USER = 'user'
BUTTON_ACTIONS = ('link', 'email', 'call')

DEFAULT_BUTTON_COLOR = '#8899ac'
DEFAULT_BUTTON_TEXT_COLOR = '#FFFFFF'


def _gen_uuid():
    return str(uuid.uuid4())

db = SQLAlchemy()

class Profile(db.Model):
    """Auth identity. One row per signed-up user."""
    __tablename__ = 'profiles'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

class UserRole(db.Model):
    __tablename__ = 'user_roles'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, unique=True)
    role = db.Column(db.String(32), nullable=False, default=ROLE_USER)  # admin|user

class Code(db.Model):
    __tablename__ = 'nfc_codes'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    code = db.Column(db.String(32), nullable=False, unique=True)
    type = db.Column(db.String(16), nullable=False, default='profile')  # profile|review
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    assigned_to = db.Column(db.String(36), db.ForeignKey('profiles.id'))
    assigned_at = db.Column(db.DateTime(timezone=True))
    url = db.Column(db.String(64), unique=True)
    redirect_url = db.Column(db.Text)
    is_hidden = db.Column(db.Boolean, nullable=False, default=False)
    title = db.Column(db.String(255))
    description = db.Column(db.Text)
    created_by = db.Column(db.String(36), db.ForeignKey('profiles.id'))
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

class NfcProfile(db.Model):
    __tablename__ = 'nfc_profiles'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    code_id = db.Column(db.String(36), db.ForeignKey('nfc_codes.id'), nullable=False, unique=True)
    full_name = db.Column(db.String(255))
    job_title = db.Column(db.String(255))
    company = db.Column(db.String(255))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(64))
    website = db.Column(db.Text)
    bio = db.Column(db.Text)
    facebook_url = db.Column(db.Text)
    instagram_url = db.Column(db.Text)
    twitter_url = db.Column(db.Text)
    youtube_url = db.Column(db.Text)
    linkedin_url = db.Column(db.Text)
    button_color = db.Column(db.String(16), default=DEFAULT_BUTTON_COLOR)
    button_text_color = db.Column(db.String(16), default=DEFAULT_BUTTON_TEXT_COLOR)
    background_color = db.Column(db.String(16))
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    code = db.relationship('Code', lazy='joined')
    buttons = db.relationship('ProfileButton', order_by='ProfileButton.position',
                              cascade='all, delete-orphan', lazy='selectin')

class ProfileButton(db.Model):
    __tablename__ = 'profile_buttons'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    profile_id = db.Column(db.String(36), db.ForeignKey('nfc_profiles.id'), nullable=False)
    label = db.Column(db.String(255), nullable=False)
    action_type = db.Column(db.String(16), nullable=False, default='link')  # link|email|call
    action_value = db.Column(db.Text, nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

class ProfileVisit(db.Model):
    __tablename__ = 'profile_visits'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    # nfc_codes.id of the review plaque that was scanned
    profile_id = db.Column(db.String(36), nullable=False, index=True)
    visited_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    user_agent = db.Column(db.Text)
    referrer = db.Column(db.Text)

class ButtonClick(db.Model):
    __tablename__ = 'profile_button_clicks'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    button_id = db.Column(db.String(36), nullable=False, index=True)
    profile_id = db.Column(db.String(36), nullable=False)
    clicked_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

class Secret(db.Model):
    __tablename__ = 'secrets'
    id = db.Column(db.String(36), primary_key=True, default=_gen_uuid)
    name = db.Column(db.String(128), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=False)
