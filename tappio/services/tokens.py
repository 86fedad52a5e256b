import time, uuid, jwt
from flask import current_app

# Session JWT (HS256, signed with SECRET_KEY)
def sign_session_token(user_id: str, now: int|None=None) -> str:
    if now is None:
        now = int(time.time())
    ttl = int(current_app.config.get('ACCESS_TOKEN_EXPIRE_MINUTES', 1440)) * 60
    payload = {
        'sub': user_id,
        'jti': uuid.uuid4().hex,
        'iat': now,
        'exp': now + ttl,
    }
    key = current_app.config['SECRET_KEY']
    return jwt.encode(payload, key, algorithm=current_app.config['JWT_ALG'])

def decode_session_token(token: str) -> str|None:
    """Return the user id carried by ``token``, or None if it is invalid or expired."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, current_app.config['SECRET_KEY'],
                             algorithms=[current_app.config['JWT_ALG']])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get('sub')
