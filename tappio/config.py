import os

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() not in ('0', 'false', 'no')


def _read_secret_file(name: str):
    # Render Secret Files (/etc/secrets)
    try:
        with open(f'/etc/secrets/{name}', 'r') as f:
            return f.read().strip()
    except OSError:
        return None


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session token (JWT in an HttpOnly cookie)
    JWT_ALG = 'HS256'
    ACCESS_COOKIE_NAME = 'access_token'

    # Google Places
    PLACES_API_URL = 'https://places.googleapis.com/v1'
    PLACES_DEBOUNCE_MS = 500
    PLACES_MIN_QUERY_LENGTH = 3

    MAX_CODES_PER_BATCH = 1000

    def __init__(self):
        # Read at instantiation so values loaded from .env are seen
        env = os.environ.get
        self.SECRET_KEY = env('SECRET_KEY', 'dev')
        self.SQLALCHEMY_DATABASE_URI = env('DATABASE_URL', 'sqlite:///local.db')
        self.REDIS_URL = env('REDIS_URL', 'redis://localhost:6379/0')
        self.USE_REDIS = _flag('USE_REDIS', '1')
        self.BASE_URL = env('BASE_URL', 'http://localhost:5000')
        self.ADMIN_API_KEY = env('ADMIN_API_KEY')
        self.ADMIN_EMAIL = env('ADMIN_EMAIL')
        self.ADMIN_PASSWORD = env('ADMIN_PASSWORD')

        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(env('ACCESS_TOKEN_EXPIRE_MINUTES', '1440'))
        self.SESSION_COOKIE_NAME = env('SESSION_COOKIE_NAME', 'tappio_session')
        self.ACCESS_COOKIE_SECURE = _flag('ACCESS_COOKIE_SECURE', '0')

        self.GOOGLE_PLACES_API_KEY = env('GOOGLE_PLACES_API_KEY')
        self.PLACES_TIMEOUT = float(env('PLACES_TIMEOUT', '10'))

        # Query cache / rate limits (counts per window seconds)
        self.QUERY_CACHE_TTL = int(env('QUERY_CACHE_TTL', '30'))
        self.ROLE_CACHE_TTL = int(env('ROLE_CACHE_TTL', '30'))
        self.LOGIN_RATE_LIMIT = (int(env('LOGIN_RATE_LIMIT', '5')), 60)
        self.CLAIM_RATE_LIMIT = (int(env('CLAIM_RATE_LIMIT', '10')), 60)

        if (not self.SECRET_KEY) or self.SECRET_KEY == 'dev':
            self.SECRET_KEY = _read_secret_file('secret_key') or self.SECRET_KEY
        if not self.GOOGLE_PLACES_API_KEY:
            self.GOOGLE_PLACES_API_KEY = _read_secret_file('google_places_api_key')

        level = (env('LOG_LEVEL') or 'INFO').upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}")
        self.LOG_LEVEL = level
