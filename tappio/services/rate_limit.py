import time
from .store import r


class RateLimitExceeded(ValueError):
    pass


def check_rate(scope: str, ident: str, limit=20, window=60):
    """Count one hit for ``ident`` in the current fixed window of ``scope``."""
    k = f"rl:{scope}:{ident}:{int(time.time()//window)}"
    v = r().incr(k)
    r().expire(k, window)
    if v > limit:
        raise RateLimitExceeded('Too many attempts, please wait a minute and try again')
