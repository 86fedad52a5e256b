import time, threading, logging
import redis
from flask import current_app

logger = logging.getLogger(__name__)

_r = None
_lock = threading.Lock()

class _MemStore:
    def __init__(self):
        self._data = {}
        self._exp = {}
        self._lock = threading.Lock()

    def _cleanup(self):
        now = time.time()
        expired = [k for k, ts in self._exp.items() if ts <= now]
        for k in expired:
            self._data.pop(k, None)
            self._exp.pop(k, None)

    def incr(self, key):
        with self._lock:
            self._cleanup()
            v = int(self._data.get(key, '0')) + 1
            self._data[key] = str(v)
            return v

    def expire(self, key, ttl):
        with self._lock:
            self._cleanup()
            self._exp[key] = time.time() + ttl

    def setex(self, key, ttl, value):
        with self._lock:
            self._cleanup()
            self._data[key] = value
            self._exp[key] = time.time() + ttl

    def get(self, key):
        with self._lock:
            self._cleanup()
            return self._data.get(key)

    def delete(self, *keys):
        with self._lock:
            removed = 0
            for k in keys:
                if self._data.pop(k, None) is not None:
                    removed += 1
                self._exp.pop(k, None)
            return removed

def r():
    global _r
    if _r is not None:
        return _r
    with _lock:
        if _r is not None:
            return _r
        # Decide whether to use Redis or memory store
        url = current_app.config.get('REDIS_URL')
        if current_app.config.get('USE_REDIS') and url:
            try:
                client = redis.from_url(url, decode_responses=True)
                # Test connection once; fallback to memory on failure
                client.ping()
                _set(client)
                logger.info("Using Redis store")
                return _r
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable ({e}); falling back to in-memory store")
        _set(_MemStore())
        return _r

def _set(store):
    global _r
    _r = store

def reset():
    """Drop the current store; the next call to r() picks a new one."""
    _set(None)
